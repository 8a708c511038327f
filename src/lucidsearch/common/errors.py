"""lucidsearch.common.errors

Exception hierarchy for the LucidSearch pipeline.

Every wrapper around an external collaborator raises a subclass of
:class:`LucidSearchError`, so callers can decide per stage whether a failure
is skipped (one chunk, one document, one source) or ends the request.

Classes
-------
LucidSearchError
    Base class carrying an optional ``details`` mapping.
ConfigurationError
    Invalid or missing configuration. Raised at startup.
SearchError
    A search source failed.
FetchError
    A document could not be retrieved.
RetryableFetchError
    Transport failures persisted through every fetch attempt.
EmbeddingError
    The embedding provider failed.
VectorStoreError
    The vector index rejected or could not serve a call.
GenerationError
    The answer-generation provider failed.
PipelineCancelled
    The caller abandoned the run.
"""

from typing import Any


class LucidSearchError(Exception):
    """Base exception for all LucidSearch errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(LucidSearchError):
    """Raised when configuration is missing or invalid."""


class SearchError(LucidSearchError):
    """Raised when a search source fails (transport, status or decode)."""


class FetchError(LucidSearchError):
    """Raised when a document cannot be fetched or parsed."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        if status_code is not None:
            details["status_code"] = status_code
        self.url = url
        self.status_code = status_code
        super().__init__(message, details)


class RetryableFetchError(FetchError):
    """Raised when transport errors persisted through every attempt."""


class EmbeddingError(LucidSearchError):
    """Raised when the embedding provider fails for a piece of text."""


class VectorStoreError(LucidSearchError):
    """Raised when a vector index operation fails."""


class GenerationError(LucidSearchError):
    """Raised when the answer-generation provider fails."""


class PipelineCancelled(LucidSearchError):
    """Raised when a run is stopped through its cancellation token."""


__all__ = [
    "LucidSearchError",
    "ConfigurationError",
    "SearchError",
    "FetchError",
    "RetryableFetchError",
    "EmbeddingError",
    "VectorStoreError",
    "GenerationError",
    "PipelineCancelled",
]
