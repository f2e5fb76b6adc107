import logging
from typing import Optional

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core import error_codes

logger = logging.getLogger("uvicorn.error")

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


class CustomHTTPException(Exception):
    """A custom HTTPException that we can use for additional context."""
    def __init__(self, status_code: int, detail: str, error_code: str = None, headers: dict = None):
        self.status_code = status_code
        self.detail = detail
        self.error_code = error_code
        self.headers = headers
        super().__init__(detail)


class ServiceError(Exception):
    """Base class for failures raised by the service layer.

    Each subclass carries the HTTP status and error code the API layer
    responds with, so services stay free of framework types.
    """
    status_code: int = 500
    error_code: str = error_codes.UNKNOWN_FAILURE
    message: str = GENERIC_ERROR_MESSAGE
    headers: Optional[dict] = None

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidIdentity(ServiceError):
    status_code = 400
    error_code = error_codes.INVALID_IDENTITY
    message = "Invalid user ID"


class SelfFollowRejected(ServiceError):
    status_code = 400
    error_code = error_codes.SELF_FOLLOW_REJECTED
    message = "You cannot follow yourself"


class UserNotFound(ServiceError):
    status_code = 404
    error_code = error_codes.USER_NOT_FOUND
    message = "User not found"

    def __init__(self, user_id: Optional[str] = None, message: Optional[str] = None):
        self.user_id = user_id
        super().__init__(message)


class AlreadyFollowing(ServiceError):
    status_code = 409
    error_code = error_codes.ALREADY_FOLLOWING
    message = "Already following this user"


class NotFollowing(ServiceError):
    status_code = 404
    error_code = error_codes.NOT_FOLLOWING
    message = "You are not following this user"


class Unauthenticated(ServiceError):
    status_code = 401
    error_code = error_codes.UNAUTHENTICATED
    message = "Not authenticated"
    headers = {"WWW-Authenticate": "Bearer"}


class TransientStoreFailure(ServiceError):
    status_code = 503
    error_code = error_codes.TRANSIENT_STORE_FAILURE
    message = "Service temporarily unavailable. Please retry."


class UnknownFailure(ServiceError):
    status_code = 500
    error_code = error_codes.UNKNOWN_FAILURE
    message = GENERIC_ERROR_MESSAGE


def error_response(status_code: int, message: str, error_code: str = None, headers: dict = None, data=None) -> JSONResponse:
    content = {"success": False, "message": message, "error_code": error_code}
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=content, headers=headers or {})


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle validation errors and return a structured JSON response."""
    logger.error(f"Validation error on {request.url}: {exc.errors()}")

    errors = exc.errors()
    # Sanitize un-serializable objects in ctx
    for error in errors:
        ctx = error.get("ctx")
        if ctx and isinstance(ctx.get("error"), Exception):
            ctx["error"] = str(ctx["error"])
        error.pop("input", None)

    return error_response(
        status_code=400,
        message="Validation failed. Please check your request data.",
        error_code=error_codes.VALIDATION_ERROR,
        data=errors,
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Custom HTTP exception handler for better error responses."""
    if isinstance(exc, CustomHTTPException):
        logger.error(f"Custom HTTP error on {request.url}: {exc.detail}")
        return error_response(exc.status_code, exc.detail, exc.error_code, exc.headers)
    elif isinstance(exc, (HTTPException, StarletteHTTPException)):
        logger.error(f"HTTP error on {request.url}: {exc.detail}")
        if exc.status_code == 404 and exc.detail == "Not Found":
            return error_response(404, "Route not found", error_codes.NOT_FOUND_ERROR)
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    logger.error(f"Unexpected error on {request.url}: {str(exc)}")
    return error_response(500, GENERIC_ERROR_MESSAGE, error_codes.INTERNAL_SERVER_ERROR)


async def service_exception_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Map service-layer failures to their HTTP status without leaking internals."""
    if exc.status_code >= 500:
        logger.error(f"Service failure on {request.url}: {exc!r}", exc_info=exc.__cause__ or exc)
    else:
        logger.info(f"Request rejected on {request.url}: {exc.error_code}")
    return error_response(exc.status_code, exc.message, exc.error_code, exc.headers)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.url}: {exc}")
    return error_response(500, GENERIC_ERROR_MESSAGE, error_codes.INTERNAL_SERVER_ERROR)
