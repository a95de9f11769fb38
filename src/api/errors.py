"""
API error handling - Converts domain errors to structured bodies.

Every RegistrationError becomes {"error": {"message", "code"}} with the
status code the exception class declares. Malformed request bodies are
reported the same way as a missing field. Anything else becomes a
generic 500 body with code "internal_error".
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.domain.exceptions import InvalidParametersError, RegistrationError

logger = logging.getLogger(__name__)


def error_response(error: RegistrationError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"error": {"message": error.message, "code": error.code}},
    )


async def registration_error_handler(request: Request, exc: RegistrationError) -> JSONResponse:
    logger.info("%s %s failed: %s", request.method, request.url.path, exc.code)
    return error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    location = errors[0].get("loc", ()) if errors else ()
    names = [part for part in location if isinstance(part, str) and part != "body"]
    field = names[-1] if names else "data"
    return error_response(InvalidParametersError(field, message=f"Invalid {field} received"))


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report any other failure as a structured 500 without internal details."""
    logger.error(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=500,
        content={"error": {"message": "Internal server error", "code": "internal_error"}},
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register the structured-error handlers on app."""
    app.add_exception_handler(RegistrationError, registration_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
