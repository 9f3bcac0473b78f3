"""Business error types.

Every error that crosses a module boundary derives from BusinessError so the
HTTP layer and ChatSession can catch one type and map it to a status code or
a user-facing notice.
"""

from typing import Optional


class BusinessError(Exception):
    """Base business error.

    Attributes:
        code: machine-readable code (e.g. "STORE_READ_ERROR").
        message: human-readable message; this is what callers see.
        http_status: status code used when the error is mapped to HTTP.
        extra: additional diagnostic fields (upstream status text, body, ...).
    """

    http_status_default = 400

    def __init__(self, code: str, message: str, http_status: Optional[int] = None, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status if http_status is not None else self.http_status_default
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """Transport failure: DNS, connect timeout, dropped connection."""

    http_status_default = 500


class ApiError(BusinessError):
    """Upstream returned a non-success status other than 429/402."""

    http_status_default = 500


class RateLimitError(BusinessError):
    """Upstream throttled the request (429)."""

    http_status_default = 429


class QuotaExceededError(BusinessError):
    """Upstream credits or quota are exhausted (402)."""

    http_status_default = 402


class ValidationError(BusinessError):
    """Request payload failed validation."""


class ConfigurationError(BusinessError):
    """Missing or rejected credential, or another fatal setup problem."""

    http_status_default = 500


class NotFoundError(BusinessError):
    """A conversation or message id does not exist."""

    http_status_default = 404
