# contextqa/rag/corpus.py
"""
Reference corpus: the fixed, ordered list of context texts queries are
matched against.

The built-in rows are used unless CORPUS_PATH points at a YAML/JSON file
holding either a list of strings or a mapping with a ``contexts`` list.
"""

import logging
import pathlib
from typing import List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_ROWS: List[str] = [
    "Paris is the capital and most populous city of France. It is located on the "
    "Seine river in the north of the country and is known for the Eiffel Tower, "
    "the Louvre museum and the Notre-Dame cathedral.",
    "The Sun is the star at the center of the Solar System. It is a nearly perfect "
    "ball of hot plasma, about 4.6 billion years old, and its light takes roughly "
    "eight minutes to reach the Earth.",
    "Python is a high-level, general-purpose programming language created by Guido "
    "van Rossum and first released in 1991. Its design emphasizes code readability "
    "and it supports procedural, object-oriented and functional programming.",
    "The Great Wall of China is a series of fortifications built across the "
    "historical northern borders of ancient Chinese states. Its main sections were "
    "built during the Ming dynasty, between 1368 and 1644.",
    "Photosynthesis is the process by which green plants, algae and some bacteria "
    "convert light energy, water and carbon dioxide into glucose and oxygen. It "
    "takes place mainly in the chloroplasts of leaf cells.",
]


def load_cfg(path: str):
    """
    Load a YAML (or JSON, which YAML also parses) file.

    - If the file does not exist → return None.
    - Malformed content → return None.
    """
    p = pathlib.Path(path)
    if not p.exists():
        return None

    text = p.read_text(encoding="utf-8")

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return None


def _rows_from(data) -> Optional[List[str]]:
    if isinstance(data, dict):
        data = data.get("contexts")
    if not isinstance(data, list):
        return None
    rows = [str(r) for r in data if r is not None]
    return rows


def load_corpus(path: Optional[str] = None) -> List[str]:
    """Return the reference rows from `path`, or the built-in rows."""
    if not path:
        return list(DEFAULT_CONTEXT_ROWS)

    rows = _rows_from(load_cfg(path))
    if rows is None:
        logger.warning("Corpus file %s missing or malformed; using built-in rows", path)
        return list(DEFAULT_CONTEXT_ROWS)

    logger.info("Loaded %d reference rows from %s", len(rows), path)
    return rows
