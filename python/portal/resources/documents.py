"""Document manager: uploads, viewing and blob-aware deletes.

A document is a storage object plus a row describing it. They are created
and deleted as a unit, in a fixed order, and the first failure aborts:

    upload: store blob at {user_id}/{uuid}-{name} -> insert row
    delete: remove blob -> delete row

A blob left behind by a failed insert is not cleaned up.
"""

import mimetypes
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from portal.auth.context import SessionContext
from portal.cache import QueryCache
from portal.errors import ProviderError
from portal.logging import get_logger
from portal.notify import Notifier
from portal.resources.definitions import DOCUMENTS
from portal.resources.manager import ResourceManager
from portal.schemas import Document
from portal.storage import StorageClientBase, build_document_path
from portal.store import StoreClientBase

logger = get_logger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024
DEFAULT_SIGNED_URL_EXPIRY_S = 3600
DEFAULT_CONTENT_TYPE = "application/octet-stream"

UPLOADING_MESSAGE = "Uploading document..."
VIEW_FAILED_MESSAGE = "Could not create a viewable link."


@dataclass(frozen=True)
class PickedFile:
    """A file chosen by the user for upload."""

    name: str
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: str | Path) -> "PickedFile":
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, content=path.read_bytes(), content_type=content_type)


class DocumentManager(ResourceManager[Document]):
    """Manage the user's documents and their stored blobs.

    Args:
        storage: Blob storage client.
        max_upload_bytes: Largest accepted file.
        signed_url_expiry_s: Validity of view links.
        opener: Called with a signed URL to show the document.
    """

    def __init__(
        self,
        *,
        session: SessionContext,
        store: StoreClientBase,
        storage: StorageClientBase,
        cache: QueryCache,
        notifier: Notifier,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        signed_url_expiry_s: int = DEFAULT_SIGNED_URL_EXPIRY_S,
        opener: Callable[[str], object] = webbrowser.open,
    ):
        super().__init__(DOCUMENTS, session=session, store=store, cache=cache, notifier=notifier)
        self._storage = storage
        self._max_upload_bytes = max_upload_bytes
        self._signed_url_expiry_s = signed_url_expiry_s
        self._opener = opener
        self._uploading = False

    @property
    def uploading(self) -> bool:
        return self._uploading

    @property
    def busy(self) -> bool:
        return self._uploading or super().busy

    @property
    def size_limit_message(self) -> str:
        return f"File size cannot exceed {self._max_upload_bytes // (1024 * 1024)} MB."

    async def upload(self, file: PickedFile) -> bool:
        """Store a file and record it.

        Files over the size limit are rejected before any network call.

        Returns:
            True when both the blob and the row were written.
        """
        if self.busy:
            logger.info("document_upload_ignored", phase=self._state.phase.value)
            return False

        if file.size > self._max_upload_bytes:
            self._notifier.error(self.size_limit_message)
            return False

        self._uploading = True
        toast = self._notifier.loading(UPLOADING_MESSAGE)
        try:
            user = await self._session.wait_for_user()
            storage_path = build_document_path(user.id, file.name)
            content_type = file.content_type or DEFAULT_CONTENT_TYPE

            await self._storage.upload(storage_path, file.content, content_type=content_type)
            await self._store.insert(
                self.spec.table,
                {
                    "user_id": user.id,
                    "name": file.name,
                    "storage_path": storage_path,
                    "file_type": content_type,
                    "file_size": file.size,
                },
            )
        except ProviderError as e:
            logger.warning("document_upload_failed", error=e.message, error_code=e.code)
            self._notifier.dismiss(toast.id)
            self._notifier.error(e.message)
            return False
        finally:
            self._uploading = False

        self._cache.invalidate(self.cache_key(user.id))
        self._notifier.dismiss(toast.id)
        logger.info("document_uploaded", file_size=file.size, file_type=content_type)
        self._notifier.success(self.spec.created_message)
        return True

    async def rename(self, item_id: str, name: str) -> bool:
        """Change a document's display name. The stored blob is untouched."""
        return await self.update(item_id, {"name": name})

    async def view(self, item_id: str) -> str | None:
        """Open a short-lived signed link to one owned document.

        Returns:
            The signed URL, or None when it could not be created.
        """
        item = await self._find(item_id)
        if item is None:
            self._notifier.error(self.spec.not_found_message)
            return None

        try:
            url = await self._storage.create_signed_url(
                item.storage_path, expires_in=self._signed_url_expiry_s
            )
        except ProviderError as e:
            logger.warning("document_view_failed", error=e.message, error_code=e.code)
            self._notifier.error(VIEW_FAILED_MESSAGE)
            return None

        self._opener(url)
        return url

    async def _delete_remote(self, item: Document, user_id: str) -> None:
        await self._storage.remove([item.storage_path])
        await super()._delete_remote(item, user_id)
