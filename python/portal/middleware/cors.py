"""Pure ASGI CORS middleware for the existence-check service.

Browser clients call the service cross-origin, so every response carries
the allow-origin header and OPTIONS pre-flight is answered here with an
empty 200 before any route runs.
"""

from starlette.datastructures import MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"


class CORSMiddleware:
    """Inject CORS headers on every HTTP response.

    Args:
        app: The ASGI application.
        allowed_origins: Origins to allow; "*" allows any origin.
    """

    def __init__(self, app: ASGIApp, allowed_origins: list[str] | None = None):
        self.app = app
        self.allowed_origins = allowed_origins or ["*"]

    def _allow_origin(self, scope: Scope) -> str | None:
        if "*" in self.allowed_origins:
            return "*"
        origin = None
        for key, value in scope.get("headers", []):
            if key == b"origin":
                origin = value.decode("latin-1")
                break
        if origin in self.allowed_origins:
            return origin
        return None

    def _cors_headers(self, allow_origin: str | None) -> dict[str, str]:
        if allow_origin is None:
            return {}
        headers = {
            "access-control-allow-origin": allow_origin,
            "access-control-allow-headers": ALLOW_HEADERS,
        }
        if allow_origin != "*":
            headers["vary"] = "Origin"
        return headers

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        cors_headers = self._cors_headers(self._allow_origin(scope))

        if scope["method"] == "OPTIONS":
            response = Response(content=b"", status_code=200, headers=cors_headers)
            await response(scope, receive, send)
            return

        async def send_with_cors(message: dict) -> None:
            if message["type"] == "http.response.start":
                resp_headers = MutableHeaders(scope=message)
                for key, value in cors_headers.items():
                    resp_headers[key] = value
            await send(message)

        await self.app(scope, receive, send_with_cors)
