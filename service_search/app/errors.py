"""Exception taxonomy for the search service.

Strategy-level failures (``TransportFailure``, ``ProviderError``,
``EmbeddingFailure``) are raised by collaborators and caught at each retrieval
adapter's boundary. ``OrchestratorFailure`` marks faults in fusion or source
assembly; the hybrid search manager catches it at the top of a request.
None of these reach callers of ``HybridSearchManager.search``.
"""

from typing import Optional


class SearchServiceError(Exception):
    """Base exception for search service operations."""
    pass


class TransportFailure(SearchServiceError):
    """A provider could not be reached (connection error, timeout, HTTP status)."""
    pass


class ProviderError(SearchServiceError):
    """A provider answered with an explicit error payload or an unexpected shape."""

    def __init__(self, message: str, code: Optional[int] = None, info: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.info = info


class EmbeddingFailure(SearchServiceError):
    """Embedding generation failed."""
    pass


class OrchestratorFailure(SearchServiceError):
    """Unexpected fault while fusing or assembling a hybrid result."""
    pass
