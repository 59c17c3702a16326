import logging
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from blogapi.core.responses import error_response

logger = logging.getLogger(__name__)

# SQLSTATE codes shared by PostgreSQL drivers
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"


class BlogAPIError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code = 500
    code = "API_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationError(BlogAPIError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(BlogAPIError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(BlogAPIError):
    status_code = 409
    code = "UNIQUE_VIOLATION"


class InvalidReferenceError(BlogAPIError):
    status_code = 400
    code = "FOREIGN_KEY_VIOLATION"


class StorageError(BlogAPIError):
    status_code = 500
    code = "STORAGE_ERROR"


def classify_integrity_error(exc: IntegrityError) -> BlogAPIError:
    """Turn a driver-level integrity failure into one of our API errors."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    text = str(orig).lower()

    if sqlstate == UNIQUE_VIOLATION or "unique constraint" in text:
        return ConflictError("A record with this value already exists")
    if sqlstate == FOREIGN_KEY_VIOLATION or "foreign key constraint" in text:
        return InvalidReferenceError("Related record not found")
    if sqlstate == NOT_NULL_VIOLATION or "not null constraint" in text:
        return ValidationError("A required value is missing")
    return BlogAPIError("Database error occurred", code="DATABASE_ERROR")


def _http_error_code(status_code: int) -> str:
    if status_code == 404:
        return "NOT_FOUND"
    if status_code == 405:
        return "METHOD_NOT_ALLOWED"
    return "HTTP_ERROR"


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(BlogAPIError)
    async def api_error_handler(request: Request, exc: BlogAPIError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.warning(f"{request.method} {request.url.path}: {exc.message}")
        return error_response(exc.status_code, exc.message, exc.code)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"{request.method} {request.url.path}: invalid request {exc.errors()}")
        return error_response(400, "Validation error occurred", "VALIDATION_ERROR", details=exc.errors())

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        error = classify_integrity_error(exc)
        logger.warning(f"{request.method} {request.url.path}: {error.code} ({exc.orig})")
        return error_response(error.status_code, error.message, error.code)

    @app.exception_handler(NoResultFound)
    async def no_result_handler(request: Request, exc: NoResultFound):
        logger.warning(f"{request.method} {request.url.path}: record not found")
        return error_response(404, "Record not found", "NOT_FOUND")

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception(f"{request.method} {request.url.path}: database error")
        return error_response(500, "Database error occurred", "DATABASE_ERROR")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Route {request.url.path} not found"
        return error_response(exc.status_code, str(message), _http_error_code(exc.status_code))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path}: unhandled error")
        settings = request.app.state.settings
        message = "Internal server error" if settings.is_production else str(exc)
        return error_response(500, message, "INTERNAL_SERVER_ERROR")
