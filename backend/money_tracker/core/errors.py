"""
Domain errors and their HTTP mapping.

Services raise these instead of HTTPException so they stay usable outside a
request; register_exception_handlers() turns them into JSON responses.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# Location prefixes FastAPI adds to validation errors; dropped from field names
_LOCATION_PREFIXES = {"body", "query", "path", "header"}


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "Internal server error"
    headers: Optional[dict[str, str]] = None

    def __init__(self, detail: Optional[str] = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Validation failed"

    def __init__(self, errors: list[dict[str, str]], detail: Optional[str] = None):
        super().__init__(detail)
        self.errors = errors


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Could not validate credentials"
    headers = {"WWW-Authenticate": "Bearer"}


class InvalidCredentials(AppError):
    # Same message for unknown email and wrong password
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Invalid email or password"


class DuplicateEmail(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    detail = "Email already registered"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Not found"


class InternalError(AppError):
    pass


def format_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic error dicts into [{"field": ..., "message": ...}]"""
    formatted = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        # Keep the bare location when that's all there is (e.g. missing body)
        parts = [part for part in loc if part not in _LOCATION_PREFIXES] or loc
        message = str(error.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        formatted.append({"field": ".".join(parts), "message": message})
    return formatted


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    content: dict[str, Any] = {"detail": exc.detail}
    if isinstance(exc, ValidationFailed):
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = format_validation_errors(exc.errors())
    logger.info(f"Validation failed on {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": ValidationFailed.detail, "errors": errors},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Full detail goes to the log only; the client gets an opaque 500
    logger.exception(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": InternalError.detail},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
