"""
API error taxonomy and the exception handlers that render it.

Every error leaves the API as
``{"success": false, "error": {"code", "message", "details"?}}``.
"""
import logging
import traceback
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import IS_PRODUCTION
from utils.responses import error_response

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "RATE_LIMITED",
}


class ApiError(Exception):
    """Error with an HTTP status and a stable machine-readable code."""

    def __init__(self, message: str, status_code: int = 500, code: Optional[str] = None,
                 details: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code or _STATUS_CODES.get(status_code, "INTERNAL_SERVER_ERROR")
        self.details = details


class NotFoundError(ApiError):
    def __init__(self, resource: str, code: Optional[str] = None):
        super().__init__(f"{resource} not found", 404, code or "NOT_FOUND")


class ValidationFailed(ApiError):
    def __init__(self, message: str, code: str = "VALIDATION_ERROR", details: Any = None):
        super().__init__(message, 400, code, details)


async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    return error_response(exc.code, exc.message, status=exc.status_code, details=exc.details)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return error_response("VALIDATION_ERROR", "Validation failed", status=400, details=details)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = _STATUS_CODES.get(exc.status_code, "INTERNAL_SERVER_ERROR")
    return error_response(code, str(exc.detail), status=exc.status_code)


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Duplicate key on {request.method} {request.url.path}: {exc.orig}")
    return error_response(
        "DUPLICATE_KEY_ERROR",
        "Duplicate key error",
        status=409,
        details={"message": "A record with the same unique value already exists"},
    )


async def operational_error_handler(request: Request, exc: OperationalError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return error_response(
        "DATABASE_CONNECTION_ERROR",
        "Database connection error",
        status=500,
        details={"message": "Unable to connect to the database. Please try again later."},
    )


def unhandled_error_response(request: Request, exc: Exception):
    """Response for exceptions that escaped every handler; used by the outermost middleware."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    details = None
    if not IS_PRODUCTION:
        details = {"stack": traceback.format_exception(type(exc), exc, exc.__traceback__)}
    return error_response("INTERNAL_SERVER_ERROR", "Internal Server Error", status=500, details=details)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(OperationalError, operational_error_handler)
