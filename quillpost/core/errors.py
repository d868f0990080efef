"""HTTP-mapped error taxonomy.

Every class is an ``HTTPException`` so FastAPI renders it without a custom
handler; services raise them directly, the same way endpoints raise
``HTTPException``.
"""
from fastapi import HTTPException, status


class AppError(HTTPException):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None, headers: dict[str, str] | None = None):
        super().__init__(status_code=type(self).status_code, detail=detail or self.default_detail, headers=headers)


class ClientInputError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class PayloadTooLargeError(ClientInputError):
    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    default_detail = "Payload too large"


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authenticated"

    def __init__(self, detail: str | None = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class InternalError(AppError):
    pass


class StoreTimeoutError(InternalError):
    default_detail = "Store operation timed out"
