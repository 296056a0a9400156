from fastapi import HTTPException


class ApiError(HTTPException):
    """Base error carrying the status code of its class.

    Raised from handlers like a plain HTTPException and rendered by the app's
    handler as ``{"success": false, "error": message}``.
    """
    status_code: int = 500
    default_message: str = "Server Error"

    def __init__(self, message: str | None = None, headers: dict[str, str] | None = None) -> None:
        super().__init__(status_code=type(self).status_code, detail=message or self.default_message, headers=headers)

    @property
    def message(self) -> str:
        return str(self.detail)


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid input data"


class InvalidOrExpiredToken(ApiError):
    status_code = 400
    default_message = "Invalid token"


class NotAuthenticated(ApiError):
    status_code = 401
    default_message = "Not authorized to access this route"


class InvalidToken(NotAuthenticated):
    pass


class TokenExpired(NotAuthenticated):
    default_message = "Session has expired"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Not authorized to perform this action"


class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found"


class RateLimited(ApiError):
    status_code = 429
    default_message = "Too many requests"


class EmailDeliveryError(ApiError):
    status_code = 500
    default_message = "Email could not be sent"


class UpstreamUnavailable(ApiError):
    status_code = 500
    default_message = "Database unavailable"
