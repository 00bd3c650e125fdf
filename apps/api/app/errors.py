"""Application exception types."""

from app.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(self, status_code: int, code: str, message: str, details: dict | None = None) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(code=code, message=message, details=details)
        super().__init__(message)


def unauthenticated(message: str = "Authentication required") -> ApiError:
    return ApiError(status_code=401, code="UNAUTHORIZED", message=message)


def forbidden(message: str = "You can only modify your own posts") -> ApiError:
    return ApiError(status_code=403, code="FORBIDDEN", message=message)


def not_found(message: str = "Resource not found") -> ApiError:
    return ApiError(status_code=404, code="RESOURCE_NOT_FOUND", message=message)


def email_conflict() -> ApiError:
    return ApiError(status_code=409, code="EMAIL_ALREADY_REGISTERED", message="User already exists")


__all__ = ["ApiError", "email_conflict", "forbidden", "not_found", "unauthenticated"]
