"""Error Handlers — global exception handlers for the SIAKAD API.

Invariants:
    - SiakadError → its http_status with the structured envelope (4xx business/data, 5xx system)
    - RequestValidationError → field-level error details
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Three-layer handler: domain (SiakadError), validation (Pydantic), catch-all (Exception)
    - Log level follows classification: rejections are warnings, system errors are errors
    - Enrollment errors are logged once, by EnrollmentService, not again here
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from siakad.core.errors import (
    EnrollmentError, ErrorCategory, ErrorSeverity, SiakadError, is_system_error,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_siakad_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_siakad_error_handler(app: FastAPI) -> None:
    """Register SIAKAD domain/infrastructure error handler."""

    @app.exception_handler(SiakadError)
    async def siakad_error_handler(request: Request, exc: SiakadError):
        """Handle all SIAKAD domain/infrastructure errors."""
        # EnrollmentService already logged the rejection with its ids
        if not isinstance(exc, EnrollmentError):
            log = logger.error if is_system_error(exc) else logger.warning
            log(
                f"SiakadError: {exc.message}",
                extra={"error_code": exc.code, "path": request.url.path},
            )
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": ErrorCategory.INTERNAL.value,
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": ErrorCategory.VALIDATION.value,
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
