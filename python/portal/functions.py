"""Client for the deployed existence-check function."""

import httpx

from portal.http import PlatformClient


class ExistenceCheckClient(PlatformClient):
    """Ask the existence-check function whether an email is registered.

    Called with the anon key; the function itself holds the admin key.
    """

    def __init__(self, http: httpx.AsyncClient, functions_url: str, api_key: str):
        super().__init__(http, functions_url, api_key)

    async def exists(self, email: str) -> bool:
        """Return whether an identity with `email` exists.

        Raises:
            ProviderError: If the function fails or rejects the request.
        """
        response = await self._request(
            "POST",
            "/check-email-exists",
            error_code="E_EXISTENCE_CHECK_FAILED",
            json={"email": email},
        )
        return bool(self._decode(response).get("exists"))
