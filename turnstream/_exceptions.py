"""Typed error hierarchy for transport and stream decoding failures."""


class TurnstreamError(Exception):
    """Base exception for all turnstream errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        request_id: str | None = None,
        method: str | None = None,
        path: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.request_id = request_id
        self.method = method
        self.path = path


class AuthenticationError(TurnstreamError):
    """401 — invalid or missing token."""


class PermissionDeniedError(TurnstreamError):
    """403 — insufficient permissions."""


class NotFoundError(TurnstreamError):
    """404 — endpoint does not exist."""


class ValidationError(TurnstreamError):
    """400/422 — invalid request body."""


class RateLimitError(TurnstreamError):
    """429 — too many requests."""


class APIError(TurnstreamError):
    """500+ or transport failure."""


class StreamDecodeError(TurnstreamError):
    """A frame carried a payload that is not a JSON object."""

    def __init__(self, message: str, payload: str = ""):
        super().__init__(message)
        self.payload = payload


# Map HTTP status codes to exception classes.
STATUS_MAP: dict[int, type[TurnstreamError]] = {
    400: ValidationError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    422: ValidationError,
    429: RateLimitError,
}
