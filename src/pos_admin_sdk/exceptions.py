from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    """A failed call against the POS backend.

    ``operation`` names the resource call that failed (``"sales.create_sale"``)
    so a stage failure in the sale saga can be traced back to its request.
    """

    code: str
    message: str
    details: object | None
    status_code: int
    raw_payload: object | None = None
    operation: str | None = None

    def __str__(self) -> str:
        where = f" in {self.operation}" if self.operation else ""
        return f"[{self.status_code}] {self.code}{where}: {self.message}"


class UnauthorizedError(ApiError):
    """401 from any resource; the bearer token is missing, stale or revoked."""


class AuthError(UnauthorizedError):
    pass


class SessionExpiredError(AuthError):
    """The refresh credential was rejected; local session state has been cleared."""


class NotAuthenticatedError(AuthError):
    """No bearer token or worker email is stored locally."""


class ForbiddenError(ApiError):
    """The worker may not act on this branch or resource."""


class NotFoundError(ApiError):
    pass


class ValidationError(ApiError):
    """400/422: the backend rejected a sale, detail, card or stock payload."""


class ConflictError(ApiError):
    pass


class RateLimitError(ApiError):
    pass


class ServerError(ApiError):
    pass


class TransportError(ApiError):
    """No HTTP response: connection, DNS or timeout failure."""


class RequestCancelledError(TransportError):
    """The branch context changed while the request was pending.

    Only the response is discarded; a mutation may already have been applied.
    """


_STATUS_ERRORS: dict[int, type[ApiError]] = {
    400: ValidationError,
    401: AuthError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
    429: RateLimitError,
}


def error_type_for_status(status_code: int) -> type[ApiError]:
    if status_code >= 500:
        return ServerError
    return _STATUS_ERRORS.get(status_code, ApiError)
