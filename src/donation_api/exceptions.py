"""FastAPI exception handlers for converting errors to HTTP responses.

- DonationError: JSON ``{"error": ..., "error_code": ...}`` with the error's status
- 404 / 405 from routing: plain text ``Not Found.`` with status 404

Usage:
    from donation_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_404_NOT_FOUND, HTTP_405_METHOD_NOT_ALLOWED

from donation_shared.models.errors import DonationError, ErrorCode

logger = logging.getLogger(__name__)

NOT_FOUND_BODY = "Not Found."


async def donation_error_handler(request: Request, exc: DonationError) -> JSONResponse:
    """Handle DonationError exceptions and convert to JSON response.

    Args:
        request: The incoming request (unused but required by FastAPI)
        exc: The DonationError exception

    Returns:
        JSONResponse with error details and the error's status code.
    """
    if exc.code == ErrorCode.INTERNAL_ERROR:
        logger.error("Request to %s failed: %s", request.url.path, exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


async def not_found_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """Answer unknown paths and unsupported methods with a plain 404.

    Other HTTP exceptions keep FastAPI's default rendering.
    """
    if exc.status_code in (HTTP_404_NOT_FOUND, HTTP_405_METHOD_NOT_ALLOWED):
        return PlainTextResponse(NOT_FOUND_BODY, status_code=HTTP_404_NOT_FOUND)
    return await http_exception_handler(request, exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(DonationError, donation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, not_found_handler)  # type: ignore[arg-type]
