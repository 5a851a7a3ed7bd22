"""FastAPI application for the email existence check.

The service is the only holder of the service-role key. It answers one
question for browser clients, so CORS is open and OPTIONS pre-flight is
answered before routing.

Middleware Ordering:
- Middleware runs in reverse order of registration
- CORSMiddleware is registered in create_app
- RequestIDMiddleware is added LAST (add_request_id_middleware) so it runs
  FIRST and every response, including pre-flight, carries X-Request-ID

HTTP Client Lifecycle:
- httpx.AsyncClient is created at startup, stored in app.state
- AdminAuthClient wraps the shared client
- Client is closed gracefully at shutdown
"""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from portal.api.routes import create_api_router
from portal.api.routes.check_email_exists import EMAIL_REQUIRED_MESSAGE
from portal.auth.client import AdminAuthClient
from portal.config import get_settings
from portal.errors import ApiError, ProviderError
from portal.logging import configure_logging, get_logger
from portal.middleware.cors import CORSMiddleware
from portal.middleware.request_id import RequestIDMiddleware
from portal.responses import (
    api_error_handler,
    error_response,
    provider_error_handler,
    unhandled_exception_handler,
)

configure_logging()

logger = get_logger(__name__)


def create_admin_client(http: httpx.AsyncClient) -> AdminAuthClient:
    """Build the service-role auth client from settings.

    Raises:
        ValueError: If SUPABASE_SERVICE_ROLE_KEY is not configured.
    """
    settings = get_settings()
    if not settings.supabase_service_role_key:
        raise ValueError("SUPABASE_SERVICE_ROLE_KEY is required for the existence-check service")
    return AdminAuthClient(http, settings.base_url, settings.supabase_service_role_key)


def create_app(admin_client: AdminAuthClient | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        admin_client: Optional prebuilt admin client (for testing).

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.httpx_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout_s, connect=10.0),
        )
        app.state.admin_client = admin_client or create_admin_client(app.state.httpx_client)
        logger.info("admin_client_initialized")

        yield

        await app.state.httpx_client.aclose()
        logger.info("httpx_client_closed")

    app = FastAPI(
        title="check-email-exists",
        description="Reports whether an account exists for an email address",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(ProviderError, provider_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Missing, malformed or non-object bodies carry no email either.
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content=error_response(EMAIL_REQUIRED_MESSAGE))

    app.include_router(create_api_router())

    app.add_middleware(CORSMiddleware, allowed_origins=settings.cors_origin_list)
    logger.info("cors_middleware_enabled", origins=settings.cors_origin_list)

    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    Call after create_app so it wraps everything else.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")
