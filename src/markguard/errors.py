"""Exception types raised by MarkGuard operations."""


class MarkGuardError(Exception):
    """Base class for all MarkGuard errors."""


class ConfigurationError(MarkGuardError):
    """Raised when the configuration cannot support the requested operation (e.g., a missing API key)."""


class TransportError(MarkGuardError):
    """
    Raised when a transform backend call fails.

    Attributes:
        status_code: The HTTP status returned by the backend, if any.
        body: The raw response body returned by the backend, if any.

    """

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        """Initialize the error with optional HTTP details."""
        super().__init__(message)
        self.status_code = status_code
        self.body = body
