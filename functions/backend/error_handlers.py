"""
Global exception handlers that normalize every failure into the JSON envelope.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.errors import (
    INTERNAL_ERROR_MESSAGE,
    PhoneValidationError,
    ServiceError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"


def _envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"success": False, "message": message}
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if isinstance(exc, PhoneValidationError):
            logger.info("Rejected phone on %s", request.url.path)
        elif isinstance(exc, UpstreamError):
            logger.error(
                "Upstream failure on %s: %s", request.url.path, exc.message
            )
        elif exc.http_status >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            return _envelope(exc.status_code, METHOD_NOT_ALLOWED_MESSAGE)
        return _envelope(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ):
        logger.info("Validation error on %s: %s", request.url.path, exc.errors())
        errors = exc.errors()
        message = errors[0].get("msg") if errors else "Invalid request data"
        return _envelope(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception on %s: %s", request.url.path, exc, exc_info=True
        )
        return _envelope(
            status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or INTERNAL_ERROR_MESSAGE
        )
