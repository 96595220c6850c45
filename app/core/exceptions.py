"""
Application error kinds.

Every error is an HTTPException, so services raise them directly and FastAPI
turns them into responses. The registered handler adds the error kind to the
body: {"detail": "...", "error": "conflict"}.
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse


class AppError(HTTPException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "internal"

    def __init__(self, detail: str, headers: dict = None):
        super().__init__(status_code=type(self).status_code, detail=detail, headers=headers)


class NotAuthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "not_authenticated"

    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class NotAuthorized(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "not_authorized"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"


class ValidationError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    kind = "validation_error"


class InfraError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    kind = "infra_error"

    def __init__(self, detail: str = "Database unavailable"):
        super().__init__(detail)


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.kind},
        headers=exc.headers,
    )
