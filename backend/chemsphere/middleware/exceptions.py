"""Exception types and handlers that give every error the same JSON shape.

    {"error": {"code": "...", "message": "...", "details": {...}}}

Domain code raises the ChemSphereError subclasses below; the handlers
registered by `register_exception_handlers()` translate them (and FastAPI,
validation and database errors) into that envelope. Internal details of
unexpected failures are logged, never returned.
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


class ChemSphereError(Exception):
    """Base exception for ChemSphere application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: Union[dict, list, None] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class BusinessLogicError(ChemSphereError):
    """A request that is well-formed but breaks an inventory rule."""

    def __init__(
        self,
        message: str,
        error_code: str = "BUSINESS_LOGIC_ERROR",
        details: Union[dict, list, None] = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code=error_code,
            details=details,
        )


class InsufficientStockError(BusinessLogicError):
    def __init__(self, chemical_name: str, requested: float, available: float):
        super().__init__(
            message=(
                f"Insufficient stock for {chemical_name}: "
                f"requested {requested:g}, available {available:g}"
            ),
            error_code="INSUFFICIENT_STOCK",
            details={
                "chemical": chemical_name,
                "requested": requested,
                "available": available,
            },
        )


class ConfirmationMismatchError(BusinessLogicError):
    def __init__(self, expected: str):
        super().__init__(
            message=f"Confirmation text must be exactly '{expected}'",
            error_code="CONFIRMATION_MISMATCH",
        )


class ResourceNotFoundError(ChemSphereError):
    """Exception for resources not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
        )


class PermissionDeniedError(ChemSphereError):
    """Exception for permission denied."""

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
    content = {
        "error": {
            "code": error_code,
            "message": message,
        }
    }

    if details:
        content["error"]["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=headers,
    )


async def chemsphere_exception_handler(
    request: Request,
    exc: ChemSphereError,
) -> JSONResponse:
    logger.warning(
        "ChemSphere exception: %s - %s",
        exc.error_code,
        exc.message,
        extra={"path": request.url.path, "method": request.method},
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
            "HTTP %s: %s",
            exc.status_code,
            exc.detail,
            extra={"path": request.url.path, "method": request.method},
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
    logger.warning(
        "Validation error on %s",
        request.url.path,
        extra={"path": request.url.path, "method": request.method},
    )

    # Drop the "body" / "query" prefix so fields read like the payload keys
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"] if loc not in ("body", "query", "path")),
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


# Substring of the driver message -> (code, message). First match wins.
_INTEGRITY_MESSAGES = (
    ("unique", "DUPLICATE_RECORD", "A record with this value already exists"),
    ("foreign key", "FOREIGN_KEY_VIOLATION", "Referenced record does not exist"),
    ("not null", "NULL_VALUE_NOT_ALLOWED", "Required field is missing"),
    ("quantity_non_negative", "CHECK_VIOLATION", "Quantity cannot go below zero"),
    ("check", "CHECK_VIOLATION", "Value violates a database constraint"),
)


async def database_exception_handler(
    request: Request,
    exc: IntegrityError,
) -> JSONResponse:
    """Integrity errors (duplicate email, negative stock, ...) become 422s."""
    logger.error("Database integrity error on %s: %s", request.url.path, exc)

    error_msg = str(getattr(exc, "orig", exc)).lower()
    code, message = "INTEGRITY_ERROR", "Database constraint violation"
    for needle, known_code, known_message in _INTEGRITY_MESSAGES:
        if needle in error_msg:
            code, message = known_code, known_message
            break

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message=message,
        error_code=code,
    )


async def operational_exception_handler(
    request: Request,
    exc: OperationalError,
) -> JSONResponse:
    """Handle database operational errors (connection issues, etc.)."""
    logger.error("Database operational error on %s: %s", request.url.path, exc)

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
        exc_info=True,
    )

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="An unexpected error occurred. Please try again later.",
        error_code="INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app):
    """Register all custom exception handlers with FastAPI app."""
    app.add_exception_handler(ChemSphereError, chemsphere_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, database_exception_handler)
    app.add_exception_handler(OperationalError, operational_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
