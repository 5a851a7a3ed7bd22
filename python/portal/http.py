"""Shared plumbing for Supabase REST clients.

Every platform client (auth, store, storage, functions) goes through
PlatformClient._request so that:
- the anon/service key and the user's access token are attached the same way
- any failure, including an undecodable body, surfaces as ProviderError
- no client retries; timeouts come from the shared httpx.AsyncClient
"""

from collections.abc import Callable
from typing import Any

import httpx

from portal.errors import ProviderError, provider_error_from_response

AccessTokenProvider = Callable[[], str | None]


class PlatformClient:
    """Base class for clients talking to one Supabase service.

    Args:
        http: Shared httpx.AsyncClient for connection pooling.
        base_url: Service root (e.g. "https://xyz.supabase.co/rest/v1").
        api_key: Project key sent as `apikey` (anon or service role).
        access_token: Callable returning the signed-in user's JWT, if any.
            Falls back to the api key when it returns None.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        *,
        access_token: AccessTokenProvider | None = None,
    ):
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._access_token = access_token

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        token = self._access_token() if self._access_token else None
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {token or self._api_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        error_code: str,
        headers: dict[str, str] | None = None,
        **kwargs,
    ) -> httpx.Response:
        """Send a request and raise ProviderError on any failure.

        Args:
            method: HTTP method.
            path: Path relative to the service root.
            error_code: Code used when the provider does not supply one.
            headers: Extra headers merged over the auth headers.
            **kwargs: Passed through to httpx (json, params, content...).

        Returns:
            The successful response.

        Raises:
            ProviderError: On transport failure or non-2xx status.
        """
        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            response = await self._http.request(
                method, url, headers=self._headers(headers), **kwargs
            )
        except httpx.HTTPError as exc:
            raise ProviderError(str(exc) or type(exc).__name__, code=error_code) from exc

        if response.is_error:
            raise provider_error_from_response(response, code=error_code)

        return response

    def _decode(self, response: httpx.Response) -> Any:
        """Parse a successful response body as JSON.

        Raises:
            ProviderError: If the body is not JSON.
        """
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(
                f"Invalid JSON in response (status {response.status_code})",
                status_code=response.status_code,
                code="E_INVALID_RESPONSE",
            ) from exc
