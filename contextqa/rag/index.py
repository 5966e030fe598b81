# contextqa/rag/index.py
import logging
import math
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from contextqa.errors import ContextQAError, EmbeddingFailure

logger = logging.getLogger(__name__)

NO_MATCH = -1


class ReferenceEntry(NamedTuple):
    index: int
    text: str
    embedding: np.ndarray


class MatchResult(NamedTuple):
    best_index: int
    best_score: Optional[float]

    @property
    def found(self) -> bool:
        return self.best_index != NO_MATCH


class SimilarityIndex:
    """
    Read-only embeddings of the reference corpus.

    Built once by build_index(); the embedding matrix is flagged
    non-writeable so concurrent requests can share it without locking.

    Public API:
        entries, texts, dim, embedder
        entry(i)
        size()
    """

    def __init__(self, texts: Sequence[str], vectors: np.ndarray, embedder):
        vecs = np.array(vectors, dtype="float32", copy=True)
        if vecs.ndim != 2 or vecs.shape[0] != len(texts):
            raise EmbeddingFailure(
                f"expected {len(texts)} embeddings, got array of shape {vecs.shape}"
            )
        vecs.setflags(write=False)
        self._vecs = vecs
        self.embedder = embedder
        self.entries: Tuple[ReferenceEntry, ...] = tuple(
            ReferenceEntry(i, t, vecs[i]) for i, t in enumerate(texts)
        )

    @property
    def texts(self) -> List[str]:
        return [e.text for e in self.entries]

    @property
    def dim(self) -> int:
        return int(self._vecs.shape[1])

    def entry(self, i: int) -> ReferenceEntry:
        return self.entries[i]

    def size(self) -> int:
        return len(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def _embed(embedder, texts: List[str]) -> np.ndarray:
    try:
        out = embedder.encode(texts)
        arr = np.asarray(out, dtype="float32")
    except ContextQAError:
        raise
    except Exception as e:
        raise EmbeddingFailure(f"embedding {len(texts)} text(s) failed: {e}") from e
    if arr.ndim == 1:
        arr = arr.reshape(1, -1)
    if arr.ndim != 2 or arr.shape[0] != len(texts):
        raise EmbeddingFailure(
            f"embedder returned shape {arr.shape} for {len(texts)} text(s)"
        )
    return arr


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two vectors, flattened. Zero-magnitude input scores 0.0."""
    a = np.asarray(a, dtype="float64").ravel()
    b = np.asarray(b, dtype="float64").ravel()
    if a.shape != b.shape:
        raise ValueError(f"dimension mismatch: {a.shape[0]} vs {b.shape[0]}")
    denom = float(np.linalg.norm(a) * np.linalg.norm(b))
    if denom == 0.0:
        return 0.0
    return float(np.dot(a, b) / denom)


def build_index(corpus: Sequence[str], embedder) -> SimilarityIndex:
    """Embed the whole corpus in one batch call."""
    texts = list(corpus)
    if not texts:
        logger.warning("Reference corpus is empty; every query will return no match")
        return SimilarityIndex([], np.zeros((0, 0), dtype="float32"), embedder)
    vecs = _embed(embedder, texts)
    idx = SimilarityIndex(texts, vecs, embedder)
    logger.info("Embedded %d reference texts (dim=%d)", idx.size(), idx.dim)
    return idx


def find_best_match(query: str, index: SimilarityIndex) -> MatchResult:
    """
    Return the entry with the highest cosine similarity to `query`.

    Ties keep the lowest index. Returns MatchResult(NO_MATCH, None) for an
    empty index or when no entry produces a finite score.
    """
    if index.size() == 0:
        return MatchResult(NO_MATCH, None)

    qv = _embed(index.embedder, [query])[0]
    if qv.shape[0] != index.dim:
        raise EmbeddingFailure(
            f"query embedding has dim {qv.shape[0]}, index has dim {index.dim}"
        )

    best_index, best_score = NO_MATCH, float("-inf")
    for e in index.entries:
        score = cosine_similarity(qv, e.embedding)
        if not math.isfinite(score):
            continue
        if score > best_score:
            best_index, best_score = e.index, score

    if best_index == NO_MATCH:
        return MatchResult(NO_MATCH, None)
    return MatchResult(best_index, best_score)
