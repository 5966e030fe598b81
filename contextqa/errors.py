# contextqa/errors.py
"""Error types raised by the retrieval and gateway layers.

The request handler in ``contextqa.server`` is the only place these are
translated into HTTP responses.
"""


class ContextQAError(Exception):
    """Base class for all service errors."""


class ModelUnavailable(ContextQAError):
    """The embedding model could not be loaded at startup."""


class EmbeddingFailure(ContextQAError):
    """Embedding the corpus or a query failed."""


class GatewayError(ContextQAError):
    """The downstream QA API call failed or returned a non-2xx response."""
