"""
Global exception handlers for the REST surface.

Every failure leaves the API as ``{"error": {"message", "code",
"details"?}}``:

- ``ApiError`` keeps its own status and code.
- ``RequestValidationError`` becomes 400 ``VALIDATION_ERROR`` with one
  ``"field: message"`` entry per violation.
- Unknown routes become 404 ``ROUTE_NOT_FOUND``.
- Anything else is logged with its traceback and reported as a generic
  500 ``INTERNAL_ERROR``.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.errors import ApiError, InternalError, ValidationError
from ..schemas.common import format_validation_errors

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_api_error_handler(app)
    _register_validation_error_handler(app)
    _register_http_error_handler(app)
    _register_generic_error_handler(app)


def _register_api_error_handler(app: FastAPI) -> None:

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.http_status >= 500:
            logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
        else:
            logger.info("%s on %s", exc.code, request.url.path)
        headers = {"WWW-Authenticate": "Bearer"} if exc.http_status == status.HTTP_401_UNAUTHORIZED else None
        return JSONResponse(status_code=exc.http_status, content=exc.to_response(), headers=headers)


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = format_validation_errors(exc.errors())
        logger.warning("Validation error on %s: %s", request.url.path, details)
        error = ValidationError("Invalid data", details=details)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error.to_response())


def _register_http_error_handler(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            body = {"error": {"message": f"Route {request.url.path} not found", "code": "ROUTE_NOT_FOUND"}}
        else:
            body = {"error": {"message": str(exc.detail), "code": "HTTP_ERROR"}}
        return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all; never leaks internal details."""
        logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=InternalError().to_response(),
        )
