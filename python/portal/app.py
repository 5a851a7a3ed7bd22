"""Portal composition root.

Builds one shared httpx.AsyncClient and everything that hangs off it:

    AuthClient ──> SessionContext ──> route guard decisions
        │
        └─ access token ──> StoreClient, StorageClient
                               │
    QueryCache, Notifier ──────┴──> links, memos, documents, profile managers
                                    AccountService

Usage:
    async with Portal() as portal:
        await portal.account.sign_in(email, password)
        links = await portal.links.list()
"""

import webbrowser
from collections.abc import Callable

import httpx

from portal.account import AccountService
from portal.auth.client import AuthClient
from portal.auth.context import SessionContext, SessionState
from portal.auth.guard import GuardDecision, decide
from portal.auth.session_store import FileSessionStore, MemorySessionStore, SessionStore
from portal.cache import QueryCache
from portal.config import Settings, get_settings
from portal.functions import ExistenceCheckClient
from portal.logging import get_logger
from portal.notify import Notifier
from portal.resources import LINKS, MEMOS, DocumentManager, ProfileManager, ResourceManager
from portal.schemas import Link, Memo
from portal.storage import StorageClient, StorageClientBase
from portal.store import StoreClient, StoreClientBase

logger = get_logger(__name__)


def create_session_store(settings: Settings) -> SessionStore:
    """In-memory unless PERSIST_SESSION is on."""
    if settings.persist_session:
        return FileSessionStore(settings.session_file)
    return MemorySessionStore()


class Portal:
    """The signed-in user's portal.

    Args:
        settings: Configuration (defaults to environment settings).
        http: Shared HTTP client; created and owned by the portal if omitted.
        auth: Identity client override (tests).
        store: Store client override (tests).
        storage: Storage client override (tests).
        existence: Existence-check client override (tests).
        opener: Called with signed document URLs.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        http: httpx.AsyncClient | None = None,
        auth: AuthClient | None = None,
        store: StoreClientBase | None = None,
        storage: StorageClientBase | None = None,
        existence: ExistenceCheckClient | None = None,
        opener: Callable[[str], object] = webbrowser.open,
    ):
        settings = settings or get_settings()
        self.settings = settings
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout_s, connect=10.0),
        )
        anon_key = settings.supabase_anon_key or ""

        self.auth = auth or AuthClient(
            self.http, settings.base_url, anon_key, store=create_session_store(settings)
        )
        self.store = store or StoreClient(
            self.http, settings.base_url, anon_key, access_token=self.auth.access_token
        )
        self.storage = storage or StorageClient(
            self.http,
            settings.base_url,
            anon_key,
            bucket=settings.storage_bucket,
            access_token=self.auth.access_token,
        )
        self.existence = existence or ExistenceCheckClient(
            self.http, settings.functions_url, anon_key
        )

        self.session = SessionContext(self.auth)
        self.cache = QueryCache()
        self.notifier = Notifier()

        shared = {
            "session": self.session,
            "store": self.store,
            "cache": self.cache,
            "notifier": self.notifier,
        }
        self.links: ResourceManager[Link] = ResourceManager(LINKS, **shared)
        self.memos: ResourceManager[Memo] = ResourceManager(MEMOS, **shared)
        self.documents = DocumentManager(
            storage=self.storage,
            max_upload_bytes=settings.max_upload_bytes,
            signed_url_expiry_s=settings.signed_url_expiry_s,
            opener=opener,
            **shared,
        )
        self.profile = ProfileManager(**shared)
        self.account = AccountService(
            self.auth, self.notifier, cache=self.cache, existence=self.existence
        )

        self._remove_listener: Callable[[], None] | None = None
        self._started = False

    def decide(self, path: str) -> GuardDecision:
        """Guard decision for navigating to `path`."""
        return decide(path, self.session.state)

    def _on_session_state(self, state: SessionState) -> None:
        if not state.loading and state.session is None:
            self.cache.clear()

    async def start(self) -> None:
        """Resolve the initial session and start following auth events."""
        if self._started:
            return
        self._started = True
        self._remove_listener = self.session.subscribe(self._on_session_state)
        await self.session.start()
        logger.info("portal_started", signed_in=self.session.user is not None)

    async def close(self) -> None:
        """Stop following auth events and release the HTTP client."""
        self.session.stop()
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        self.cache.clear()
        if self._owns_http:
            await self.http.aclose()
        self._started = False
        logger.info("portal_closed")

    async def __aenter__(self) -> "Portal":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
