"""
Exception handlers for consistent API error responses.

Every error leaves the API as::

    {"detail": <localized message>, "message": <technical message>,
     "error_code": ..., "errors": [...], "path": ...}
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from .error_handling import APIError
from .messages import resolve_locale, translate

logger = logging.getLogger(__name__)


def _error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    errors: Optional[List[Dict[str, Any]]] = None,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    locale = resolve_locale(request.headers.get("accept-language"))
    content: Dict[str, Any] = {
        "detail": translate(error_code, locale),
        "message": message,
        "error_code": error_code,
        "path": str(request.url.path),
    }
    if errors:
        content["errors"] = errors
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors"""
    logger.warning(
        "%s at %s: %s", exc.error_code, request.url.path, exc.message
    )
    details = {k: v for k, v in exc.details.items() if k != "validation_errors"}
    return _error_response(
        request,
        exc.status_code,
        exc.error_code,
        exc.message,
        errors=getattr(exc, "errors", None),
        details=details,
    )


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert request body/query validation failures into a field-error list"""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.warning("Request validation failed at %s: %s", request.url.path, errors)
    return _error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "Request validation failed",
        errors=errors,
    )


async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
    """Unique and foreign key violations that slipped past service checks"""
    logger.error("Database integrity error at %s: %s", request.url.path, exc.orig)
    return _error_response(
        request,
        status.HTTP_409_CONFLICT,
        "CONFLICT",
        "Database constraint violation",
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Anything else is reported as a generic failure"""
    logger.error("Unhandled error at %s", request.url.path, exc_info=exc)
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "Internal server error",
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app"""
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(IntegrityError, handle_integrity_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
