"""Supabase Storage client abstraction.

Provides a clean interface for the blob operations documents need:
- Upload of file bytes
- Removal of objects
- Time-limited signed URLs (for viewing files)

All methods receive the full storage_path directly - no prefix manipulation.
Requests carry the user's JWT so bucket policies see the acting user.
"""

from abc import ABC, abstractmethod
from uuid import uuid4

import httpx

from portal.errors import ProviderError
from portal.http import AccessTokenProvider, PlatformClient


class StorageClientBase(ABC):
    """Abstract base class for storage client implementations."""

    @abstractmethod
    async def upload(self, path: str, data: bytes, *, content_type: str) -> str:
        """Upload an object. Never overwrites an existing object.

        Args:
            path: Full storage path (e.g., "{user_id}/{uuid}-report.pdf").
            data: File content.
            content_type: MIME type stored with the object.

        Returns:
            The stored path.

        Raises:
            StorageError: If the upload fails.
        """
        ...

    @abstractmethod
    async def remove(self, paths: list[str]) -> None:
        """Delete objects from storage.

        Args:
            paths: Full storage paths.

        Raises:
            StorageError: If removal fails.
        """
        ...

    @abstractmethod
    async def create_signed_url(self, path: str, *, expires_in: int) -> str:
        """Create a signed download URL.

        Args:
            path: Full storage path.
            expires_in: URL validity in seconds.

        Returns:
            Absolute signed URL string.

        Raises:
            StorageError: If signing fails.
        """
        ...


class StorageError(ProviderError):
    """Storage operation error."""

    def __init__(self, message: str, code: str = "E_STORAGE_ERROR", status_code: int | None = None):
        super().__init__(message, status_code=status_code, code=code)


class StorageClient(PlatformClient, StorageClientBase):
    """Production Supabase Storage client.

    Uses the shared httpx.AsyncClient against the Supabase Storage API.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        supabase_url: str,
        api_key: str,
        *,
        bucket: str = "documents",
        access_token: AccessTokenProvider | None = None,
    ):
        """Initialize the storage client.

        Args:
            http: Shared HTTP client.
            supabase_url: Supabase project URL (e.g., https://xxx.supabase.co).
            api_key: Project anon key.
            bucket: Storage bucket name.
            access_token: Provider of the signed-in user's JWT.
        """
        self._project_url = supabase_url.rstrip("/")
        self._storage_url = f"{self._project_url}/storage/v1"
        self._bucket = bucket
        super().__init__(http, self._storage_url, api_key, access_token=access_token)

    async def _storage_request(self, method: str, path: str, *, error_code: str, **kwargs):
        try:
            return await self._request(method, path, error_code=error_code, **kwargs)
        except ProviderError as e:
            if isinstance(e, StorageError):
                raise
            raise StorageError(e.message, code=e.code, status_code=e.status_code) from e

    async def upload(self, path: str, data: bytes, *, content_type: str) -> str:
        """Upload via POST /object/{bucket}/{path}."""
        await self._storage_request(
            "POST",
            f"/object/{self._bucket}/{path}",
            error_code="E_UPLOAD_FAILED",
            headers={"Content-Type": content_type, "x-upsert": "false"},
            content=data,
        )
        return path

    async def remove(self, paths: list[str]) -> None:
        """Remove via DELETE /object/{bucket} with a prefixes body."""
        await self._storage_request(
            "DELETE",
            f"/object/{self._bucket}",
            error_code="E_REMOVE_FAILED",
            json={"prefixes": paths},
        )

    async def create_signed_url(self, path: str, *, expires_in: int) -> str:
        """Create signed download URL via Supabase Storage API."""
        # Supabase uses POST /object/sign/{bucket}/{path}
        response = await self._storage_request(
            "POST",
            f"/object/sign/{self._bucket}/{path}",
            error_code="E_SIGN_DOWNLOAD_FAILED",
            json={"expiresIn": expires_in},
        )

        data = self._decode(response)
        signed_path = data.get("signedURL") or data.get("signedUrl") or ""
        if not signed_path:
            raise StorageError(
                "Failed to sign download: missing signed URL",
                code="E_SIGN_DOWNLOAD_FAILED",
            )

        # Supabase may return relative paths (with or without /storage/v1).
        if signed_path.startswith("http://") or signed_path.startswith("https://"):
            return signed_path

        if signed_path.startswith("/storage/"):
            return f"{self._project_url}{signed_path}"

        if signed_path.startswith("/object/"):
            return f"{self._storage_url}{signed_path}"

        if signed_path.startswith("storage/"):
            return f"{self._project_url}/{signed_path}"

        # Bare path relative to the storage API
        return f"{self._storage_url}/{signed_path.lstrip('/')}"


class FakeStorageClient(StorageClientBase):
    """In-memory bucket with the same overwrite and not-found rules.

    Set `failures[operation] = message` to make the next call of that
    operation ("upload", "remove", "create_signed_url") fail.
    """

    def __init__(self):
        self._objects: dict[str, tuple[bytes, str]] = {}  # path -> (content, content_type)
        self.failures: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []

    def _maybe_fail(self, operation: str) -> None:
        message = self.failures.pop(operation, None)
        if message is not None:
            raise StorageError(message)

    async def upload(self, path: str, data: bytes, *, content_type: str) -> str:
        self.calls.append(("upload", path))
        self._maybe_fail("upload")
        if path in self._objects:
            raise StorageError("The resource already exists", code="Duplicate", status_code=409)
        self._objects[path] = (bytes(data), content_type)
        return path

    async def remove(self, paths: list[str]) -> None:
        for path in paths:
            self.calls.append(("remove", path))
        self._maybe_fail("remove")
        for path in paths:
            self._objects.pop(path, None)

    async def create_signed_url(self, path: str, *, expires_in: int) -> str:
        self.calls.append(("create_signed_url", path))
        self._maybe_fail("create_signed_url")
        if path not in self._objects:
            raise StorageError("Object not found", code="not_found", status_code=404)
        return f"https://fake-storage.test/sign/{path}?token=fake-{uuid4()}&expires_in={expires_in}"

    # Inspection

    def put_object(self, path: str, content: bytes, content_type: str = "application/pdf") -> None:
        """Seed a blob without recording a call."""
        self._objects[path] = (content, content_type)

    def get_object(self, path: str) -> bytes | None:
        """Stored bytes at `path`, or None."""
        if path not in self._objects:
            return None
        return self._objects[path][0]

    def clear(self) -> None:
        """Reset to an empty bucket with no history."""
        self._objects.clear()
        self.failures.clear()
        self.calls.clear()
