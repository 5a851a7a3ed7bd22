"""Thin launcher for the existence-check service.

This is the uvicorn entrypoint. All application logic lives in the portal package.
Run with: uvicorn main:app --reload

The app instance is created here (not in portal.service) so tests can import
create_app without every environment variable configured.
"""

from portal.service import add_request_id_middleware, create_app

app = create_app()
# Added LAST so it runs FIRST (outermost)
add_request_id_middleware(app)

__all__ = ["app"]
