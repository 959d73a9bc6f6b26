from typing import Any, Optional


class ChronosError(Exception):
    """Base error for the job-management client."""


class ConfigurationError(ChronosError):
    pass


class ValidationError(ChronosError):
    """Raised locally, before any network call. Never retried."""


class CronValidationError(ValidationError):
    pass


class TransportError(ChronosError):
    """A classified failure of one HTTP exchange with the provider."""

    retryable = False

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class Unauthorized(TransportError):
    def __init__(self, status: int = 401):
        super().__init__("Invalid API key or unauthorized access", status)


class NotFound(TransportError):
    def __init__(self, status: int = 404):
        super().__init__("Resource not found", status)


class RateLimited(TransportError):
    # 429 is surfaced as-is; the client does not back off on it
    def __init__(self, status: int = 429):
        super().__init__("Rate limit exceeded. Please try again later", status)


class ServerError(TransportError):
    retryable = True

    def __init__(self, status: int, message: Optional[str] = None):
        super().__init__(f"Server error: {message or 'Internal server error'}", status)


class ClientError(TransportError):
    def __init__(self, status: int, message: Optional[str] = None):
        text = f"HTTP {status}"
        if message:
            text = f"{text}: {message}"
        super().__init__(text, status)


class NetworkError(TransportError):
    retryable = True

    def __init__(self, detail: str):
        super().__init__(f"Network error: {detail}")


class MalformedResponse(ChronosError):
    """The provider answered 2xx with a body that does not have the expected shape."""

    def __init__(self, detail: str):
        super().__init__(f"Malformed provider response: {detail}")


class OperationError(ChronosError):
    """Wraps a classified error with the high-level operation that failed.

    ``str(err)`` reads ``Failed to <operation> [<subject>]: <reason>``.
    """

    def __init__(self, operation: str, cause: Exception, subject: Any = None):
        self.operation = operation
        self.subject = subject
        self.cause = cause
        target = operation if subject is None else f"{operation} {subject}"
        super().__init__(f"Failed to {target}: {cause}")

    @property
    def kind(self) -> str:
        return type(self.cause).__name__


def classify_status(status: int, message: Optional[str] = None) -> TransportError:
    if status == 401:
        return Unauthorized(status)
    if status == 404:
        return NotFound(status)
    if status == 429:
        return RateLimited(status)
    if status >= 500:
        return ServerError(status, message)
    return ClientError(status, message)
