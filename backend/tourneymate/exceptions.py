from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error envelope returned by every failing endpoint."""

    error: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    status_code = 500
    default_code = "internal_server_error"

    def __init__(self, detail: str, *, code: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.code = code or self.default_code


class ValidationError(DomainException):
    status_code = 400
    default_code = "validation_failed"


class AuthenticationFailure(DomainException):
    status_code = 401
    default_code = "auth_failed"


class AuthorizationFailure(DomainException):
    status_code = 403
    default_code = "forbidden"


class NotFoundError(DomainException):
    status_code = 404
    default_code = "not_found"


class ConflictError(DomainException):
    status_code = 409
    default_code = "conflict"


class RateLimited(DomainException):
    status_code = 429
    default_code = "rate_limit_exceeded"


class StoreUnavailable(DomainException):
    """A backing store could not be reached or returned unusable data.

    The message is logged but never sent to the client.
    """

    status_code = 500
    default_code = "store_unavailable"


def public_message(exc: DomainException) -> str:
    """Return the message that may be shown to the caller for ``exc``."""

    if exc.status_code >= 500:
        return "internal server error"
    return exc.detail
