"""
FastAPI exception handlers for custom exceptions.

WHY: Exception handlers convert our custom exceptions into properly
formatted JSON responses with correct HTTP status codes, so the portal
frontend can show the message of any failed call the same way.

The public CMS and Smart Objects endpoints are called by customer sites
and proxies that expect a flat {"error": message} body instead, so every
handler checks the path first.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppException, InvalidRequestError
from app.middleware.public_cors import is_public_path

logger = logging.getLogger(__name__)

INTERNAL_SERVER_ERROR = "Internal server error"


def public_error_response(status_code: int, message: str) -> JSONResponse:
    """Error body of the public endpoints."""
    return JSONResponse(status_code=status_code, content={"error": message})


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handle custom AppException and its subclasses.

    Args:
        request: The FastAPI request object
        exc: The custom exception instance

    Returns:
        JSONResponse with error details
    """
    if exc.status_code >= 500:
        logger.error(
            f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}",
            extra={"status_code": exc.status_code},
        )
    else:
        logger.info(
            f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}",
            extra={"status_code": exc.status_code},
        )

    if is_public_path(request.url.path):
        if exc.status_code >= 500:
            return JSONResponse(
                status_code=500,
                content={"error": INTERNAL_SERVER_ERROR, "message": exc.message},
            )
        return public_error_response(exc.status_code, exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    WHY: Request bodies are validated by pydantic before our code runs;
    this keeps those failures in the same shape as ValidationError.
    """
    if is_public_path(request.url.path):
        return public_error_response(400, InvalidRequestError.default_message)

    errors = []
    for error in exc.errors():
        errors.append(
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
        )

    return JSONResponse(
        status_code=400,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "status_code": 400,
            "details": {"errors": errors},
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle 404/405 and other HTTP errors raised by Starlette routing."""
    if is_public_path(request.url.path):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTPException",
            "message": exc.detail,
            "status_code": exc.status_code,
            "details": None,
        },
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all handler for unexpected exceptions.

    The traceback is logged. Portal responses carry a generic message only;
    public responses carry the exception text, which the site developer
    needs to debug an integration.
    """
    logger.exception(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc,
    )

    if is_public_path(request.url.path):
        return JSONResponse(
            status_code=500,
            content={"error": INTERNAL_SERVER_ERROR, "message": str(exc)},
        )

    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "message": "An unexpected error occurred",
            "status_code": 500,
            "details": None,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler above to the application."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
