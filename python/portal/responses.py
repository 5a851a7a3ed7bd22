"""Response helpers and exception handlers for the existence-check service.

Response shapes follow what browser callers of the function expect:
- Success: the JSON payload itself (e.g. {"exists": true})
- Client error: {"error": "<message>"}
- Server error: the failure reason as plain text, status 500
"""

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse

from portal.errors import ApiError, ProviderError
from portal.logging import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def success_response(data: Any) -> dict[str, Any]:
    """Wrap a payload for service-level endpoints such as /health."""
    return {"data": data}


def error_response(message: str) -> dict[str, str]:
    """Create a client error body."""
    return {"error": message}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Handle ApiError exceptions and return proper JSON response."""
    return JSONResponse(status_code=exc.status_code, content=error_response(exc.message))


async def provider_error_handler(request: Request, exc: ProviderError) -> PlainTextResponse:
    """Report an unexpected provider failure as 500 with its reason text."""
    logger.warning(
        "provider_error",
        error_code=exc.code,
        provider_status=exc.status_code,
        error=exc.message,
    )
    return PlainTextResponse(exc.message, status_code=500)


async def unhandled_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    """Handle unhandled exceptions and return 500.

    Logs the exception server-side but never leaks details to client.
    """
    logger.exception("unhandled_exception", error_type=type(exc).__name__)
    return PlainTextResponse(INTERNAL_ERROR_MESSAGE, status_code=500)
