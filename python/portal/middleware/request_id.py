"""X-Request-ID middleware for the existence-check service.

Each request gets a correlation id. A well-formed incoming X-Request-ID is
kept (UUIDs are lowercased); anything else is replaced with a fresh UUID4.
The id is bound into the log context for the duration of the request,
echoed on the response, and one access entry is logged per request.

Registered last so it wraps CORS too: pre-flight responses carry the id.
"""

import re
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from portal.logging import clear_request_context, get_logger, set_request_context

REQUEST_ID_HEADER = "X-Request-ID"

# Short opaque tokens; a hyphenated UUID is one of these too
_TOKEN_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,128}")
_UUID_PATTERN = re.compile(r"[0-9a-fA-F]{8}(-[0-9a-fA-F]{4}){3}-[0-9a-fA-F]{12}")

logger = get_logger(__name__)


def resolve_request_id(incoming: str | None) -> str:
    """Return the id to use for a request that sent `incoming`."""
    if not incoming or not _TOKEN_PATTERN.fullmatch(incoming):
        return str(uuid.uuid4())
    if _UUID_PATTERN.fullmatch(incoming):
        return incoming.lower()
    return incoming


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Correlate each request with an id and log its outcome.

    Args:
        app: The ASGI application.
        log_requests: Log a `request_completed` entry per request.
    """

    def __init__(self, app, log_requests: bool = True):
        super().__init__(app)
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.monotonic()
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        set_request_context(request_id, path=request.url.path, method=request.method)

        try:
            response = await call_next(request)
        except Exception:
            # Left for the unhandled-exception handler to answer
            logger.exception("request_failed")
            raise
        else:
            response.headers[REQUEST_ID_HEADER] = request_id
            if self.log_requests:
                logger.info(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=round((time.monotonic() - started) * 1000, 2),
                )
            return response
        finally:
            clear_request_context()
