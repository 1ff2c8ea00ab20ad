"""Domain exception classes for retrieval and synthesis errors."""


class DomainError(Exception):
    """Base class for all domain-specific errors."""

    pass


class ValidationError(DomainError):
    """Raised when input validation fails (e.g. a malformed query)."""

    pass


class DimensionMismatchError(ValidationError, ValueError):
    """Raised when two vectors of different dimensionality are compared."""

    def __init__(self, left: int, right: int):
        self.left = left
        self.right = right
        super().__init__(f"Embedding dimension {left} does not match dimension {right}")


class BackendError(DomainError):
    """Base class for failures of an embedding or generation backend.

    Backend errors are never retried in place; the synthesizer moves on to the
    next backend in its cascade.
    """

    def __init__(self, backend: str, message: str):
        self.backend = backend
        super().__init__(f"{backend}: {message}")


class ProviderUnavailableError(BackendError):
    """Raised when a backend cannot be used at all (missing credentials or model)."""

    pass


class ProviderError(BackendError):
    """Raised when a backend answers with a non-success status or a malformed payload."""

    pass
