"""Exception hierarchy for the retrieval and insight pipeline.

Store operations raise InvalidInputError only. Extraction and embedding
collaborators raise ExtractionError and UpstreamError; the orchestration
layer classifies those per document.
"""

from typing import Any


class FlowchainError(Exception):
    """Base exception for all Flowchain RAG errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize with a message and optional debugging context.

        Args:
            message: Human-readable error message.
            details: Optional dictionary of additional context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InvalidInputError(FlowchainError, ValueError):
    """Raised when caller-supplied data violates a precondition."""


class ExtractionError(FlowchainError, ValueError):
    """Raised when a source document cannot be read or parsed."""

    def __init__(self, path: str, message: str, details: dict[str, Any] | None = None) -> None:
        details = dict(details or {})
        details["path"] = path
        self.path = path
        super().__init__(message, details)


class UpstreamError(FlowchainError):
    """Raised when the embedding provider fails (rate limit, network, bad input)."""

    retryable = False


class UpstreamTimeoutError(UpstreamError):
    """Raised when an embedding call exceeds its timeout."""

    retryable = True
