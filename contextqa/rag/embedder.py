# contextqa/rag/embedder.py
from typing import List
import logging
import os
import inspect

import numpy as np

from contextqa.errors import EmbeddingFailure, ModelUnavailable

os.environ.setdefault("TOKENIZERS_PARALLELISM", "false")

logger = logging.getLogger(__name__)


class Embedder:
    """
    Thin wrapper around SentenceTransformer to:
    - Respect an optional HF cache directory (HF_HOME / TRANSFORMERS_CACHE).
    - Only pass `trust_remote_code` if the installed library supports it.
    - Always return float32 numpy arrays of shape (n_texts, dim).

    Construction loads the model and raises ModelUnavailable on failure;
    encode() raises EmbeddingFailure.
    """

    def __init__(self, model_name: str, normalize: bool = False):
        self.model_name = model_name
        self.normalize = normalize

        try:
            from transformers.utils import logging as hf_logging
            hf_logging.set_verbosity_error()
        except ImportError:
            pass

        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise ModelUnavailable(f"sentence-transformers is not installed: {e}") from e

        cache_dir = (
            os.environ.get("HF_HOME")
            or os.environ.get("TRANSFORMERS_CACHE")
            or None
        )

        extra_kwargs = {}
        try:
            sig = inspect.signature(SentenceTransformer.__init__)
            if "trust_remote_code" in sig.parameters:
                extra_kwargs["trust_remote_code"] = False
        except (TypeError, ValueError):
            extra_kwargs = {}

        logger.info("Loading embedding model: %s", model_name)
        try:
            self.model = SentenceTransformer(
                model_name,
                cache_folder=cache_dir,
                **extra_kwargs,
            )
        except Exception as e:
            raise ModelUnavailable(f"could not load embedding model {model_name!r}: {e}") from e
        self.dim = int(self.model.get_sentence_embedding_dimension() or 0)
        logger.info("Model loaded. Embedding dimension: %d", self.dim)

    def encode(self, texts: List[str]) -> np.ndarray:
        """
        Encode a list of texts into embeddings.

        Returns:
            np.ndarray of shape (n_texts, dim) with dtype float32.
        """
        if not texts:
            return np.zeros((0, self.dim), dtype="float32")

        try:
            emb = self.model.encode(
                list(texts),
                convert_to_numpy=True,
                show_progress_bar=False,
                normalize_embeddings=False,
            )
        except Exception as e:
            raise EmbeddingFailure(f"embedding {len(texts)} text(s) failed: {e}") from e

        emb = np.asarray(emb, dtype="float32")
        if emb.ndim == 1:
            emb = emb.reshape(1, -1)

        if self.normalize and emb.size > 0:
            norms = np.linalg.norm(emb, axis=1, keepdims=True) + 1e-12
            emb = emb / norms

        return emb
