"""
Application Errors

Domain exceptions raised by services and repositories. A FastAPI handler
registered in ``app.main`` renders them as ``{"success": false, "message": ...}``.
"""

from typing import Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed input."""

    default_message = "Invalid request"


class NotFoundError(AppError):
    """No matching reset code or account.

    Defaults to 400 so reset-code lookups do not reveal which records exist.
    """

    default_message = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class TooManyRequestsError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests"

    def __init__(self, message: Optional[str] = None, retry_after: int = 0):
        super().__init__(message, headers={"Retry-After": str(retry_after)})
        self.retry_after = retry_after


class StorageError(AppError):
    """Backing store failure. The message is always generic."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


def error_body(message: str) -> dict:
    """Standard failure payload."""
    return {"success": False, "message": message}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message),
        headers=exc.headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies get the same envelope as every other failure."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Invalid request body"),
    )
