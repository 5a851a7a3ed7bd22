"""Pytest configuration and fixtures for portal tests.

Test isolation strategy:
- Platform access goes through in-memory fakes (tests/support) or respx
- Every test starts from a clean settings cache and test environment
- Managers share one QueryCache and Notifier per test, like the Portal does
"""

import sys
from collections.abc import Generator
from pathlib import Path

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from portal.auth.client import User
from portal.auth.context import SessionContext
from portal.cache import QueryCache
from portal.config import Settings, clear_settings_cache
from portal.notify import Notifier
from portal.resources import LINKS, MEMOS, DocumentManager, ProfileManager, ResourceManager
from portal.service import add_request_id_middleware, create_app
from portal.storage import FakeStorageClient
from tests.helpers import make_session, make_user
from tests.support.fake_platform import FakeAdminClient, FakeAuthClient, FakeStoreClient

TEST_SUPABASE_URL = "https://project.supabase.test"

TEST_ENV = {
    "PORTAL_ENV": "test",
    "SUPABASE_URL": TEST_SUPABASE_URL,
    "SUPABASE_ANON_KEY": "anon-test-key",
    "SUPABASE_SERVICE_ROLE_KEY": "service-role-test-key",
}


@pytest.fixture(autouse=True)
def test_env(monkeypatch) -> Generator[None, None, None]:
    """Point settings at a fake project and reset the settings cache."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("PERSIST_SESSION", raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    return Settings(**TEST_ENV)


@pytest.fixture
def user() -> User:
    return make_user(email="owner@example.com")


@pytest.fixture
def other_user() -> User:
    return make_user(email="other@example.com")


@pytest.fixture
def auth(user: User) -> FakeAuthClient:
    """Auth double already holding a session for `user`."""
    return FakeAuthClient(session=make_session(user))


@pytest_asyncio.fixture
async def session_context(auth: FakeAuthClient) -> SessionContext:
    context = SessionContext(auth)
    await context.start()
    yield context
    context.stop()


@pytest.fixture
def store() -> FakeStoreClient:
    return FakeStoreClient()


@pytest.fixture
def storage() -> FakeStorageClient:
    return FakeStorageClient()


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache()


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def links(session_context, store, cache, notifier) -> ResourceManager:
    return ResourceManager(
        LINKS, session=session_context, store=store, cache=cache, notifier=notifier
    )


@pytest.fixture
def memos(session_context, store, cache, notifier) -> ResourceManager:
    return ResourceManager(
        MEMOS, session=session_context, store=store, cache=cache, notifier=notifier
    )


@pytest.fixture
def opened_urls() -> list[str]:
    return []


@pytest.fixture
def documents(session_context, store, storage, cache, notifier, opened_urls) -> DocumentManager:
    return DocumentManager(
        session=session_context,
        store=store,
        storage=storage,
        cache=cache,
        notifier=notifier,
        opener=opened_urls.append,
    )


@pytest.fixture
def profiles(session_context, store, cache, notifier) -> ProfileManager:
    return ProfileManager(session=session_context, store=store, cache=cache, notifier=notifier)


@pytest.fixture
def admin() -> FakeAdminClient:
    """Service-role lookup double that knows one account."""
    return FakeAdminClient({"owner@example.com"})


@pytest.fixture
def client(admin: FakeAdminClient) -> Generator[TestClient, None, None]:
    """Existence-check service with request-id and CORS middleware."""
    app = create_app(admin_client=admin)
    add_request_id_middleware(app, log_requests=False)
    with TestClient(app) as test_client:
        yield test_client
