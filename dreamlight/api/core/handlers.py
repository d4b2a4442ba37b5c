"""Exception handlers that turn errors into ``{"success": false}`` envelopes."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...core.exceptions import DreamlightError
from .response import error_response

logger = logging.getLogger(__name__)


def _format_validation_errors(exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "form")]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DreamlightError)
    async def dreamlight_error_handler(request: Request, exc: DreamlightError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return error_response(exc.message, exc.status_code, exc.errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == 404 and message == "Not Found":
            message = "Route not found"
        return error_response(message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response("Validation error", 400, _format_validation_errors(exc))

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
        return error_response("Duplicate or conflicting entry", 400)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return error_response("Server Error", 500)
