"""Exception hierarchy and handlers that render every error in one envelope.

    {
        "error": {
            "code": "ERROR_CODE",
            "message": "Human-readable message, safe to show the user",
            "details": {...}   # optional
        }
    }

Service code raises the CharterDeskException subclasses below; routers may
still raise HTTPException for simple 400/404 cases. Unexpected errors are
logged with their traceback and answered with a generic 500.
"""

import logging
from typing import Union

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class CharterDeskException(Exception):
    """Base exception for CharterDesk application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class BusinessLogicError(CharterDeskException):
    """A business rule rejected the request (duplicate invitation, weak password, ...)."""

    def __init__(
        self,
        message: str,
        error_code: str = "BUSINESS_LOGIC_ERROR",
        details: dict | None = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code=error_code,
            details=details,
        )


class ResourceNotFoundError(CharterDeskException):
    """A referenced entity does not exist."""

    def __init__(self, resource: str, identifier: str | None = None):
        message = f"{resource} not found" if identifier is None else f"{resource} not found: {identifier}"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
        )


class PermissionDeniedError(CharterDeskException):
    def __init__(self, message: str = "Permission denied"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="PERMISSION_DENIED",
        )


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: Union[dict, list, None] = None,
    headers: dict | None = None,
) -> JSONResponse:
    content = {"error": {"code": error_code, "message": message}}
    if details:
        content["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _request_context(request: Request) -> dict:
    return {"path": request.url.path, "method": request.method}


async def charterdesk_exception_handler(
    request: Request,
    exc: CharterDeskException,
) -> JSONResponse:
    logger.warning(
        "%s: %s",
        exc.error_code,
        exc.message,
        extra={"error_code": exc.error_code, **_request_context(request)},
    )
    return create_error_response(
        status_code=exc.status_code,
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details,
    )


async def http_exception_handler(
    request: Request,
    exc: Union[HTTPException, StarletteHTTPException],
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "HTTP %s: %s", exc.status_code, exc.detail, extra=_request_context(request)
        )
    return create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code=f"HTTP_{exc.status_code}",
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: Union[RequestValidationError, ValidationError],
) -> JSONResponse:
    logger.info(
        "Validation error on %s",
        request.url.path,
        extra=_request_context(request),
    )
    errors = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Validation error",
        error_code="VALIDATION_ERROR",
        details={"errors": errors},
    )


async def database_exception_handler(
    request: Request,
    exc: IntegrityError,
) -> JSONResponse:
    """Unique / foreign-key / not-null violations that slipped past the checks."""
    logger.error(
        "Integrity error on %s: %s", request.url.path, exc, extra=_request_context(request)
    )

    error_msg = str(getattr(exc, "orig", exc)).lower()
    if "unique" in error_msg:
        message, error_code = "A record with this value already exists", "DUPLICATE_RECORD"
    elif "foreign key" in error_msg:
        message, error_code = "Referenced record does not exist", "FOREIGN_KEY_VIOLATION"
    elif "not null" in error_msg:
        message, error_code = "Required field is missing", "NULL_VALUE_NOT_ALLOWED"
    else:
        message, error_code = "Database constraint violation", "INTEGRITY_ERROR"

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message=message,
        error_code=error_code,
    )


async def operational_exception_handler(
    request: Request,
    exc: OperationalError,
) -> JSONResponse:
    logger.error(
        "Database operational error on %s: %s",
        request.url.path,
        exc,
        extra=_request_context(request),
    )
    return create_error_response(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        message="Database temporarily unavailable. Please try again.",
        error_code="DATABASE_UNAVAILABLE",
    )


async def general_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.error(
        "Unhandled exception on %s: %s",
        request.url.path,
        exc,
        extra=_request_context(request),
        exc_info=exc,
    )
    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="An unexpected error occurred. Please try again later.",
        error_code="INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app):
    """Register all custom exception handlers with the FastAPI app."""
    app.add_exception_handler(CharterDeskException, charterdesk_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, database_exception_handler)
    app.add_exception_handler(OperationalError, operational_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
