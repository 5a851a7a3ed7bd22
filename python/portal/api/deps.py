"""FastAPI dependencies for route handlers."""

from fastapi import Request

from portal.auth.client import AdminAuthClient


def get_admin_client(request: Request) -> AdminAuthClient:
    """Get the service-role auth client from app state.

    Created at startup with the shared httpx.AsyncClient.
    """
    return request.app.state.admin_client
