"""In-memory stand-ins for the hosted platform.

FakeAuthClient mirrors the AuthClient surface used by SessionContext,
AccountService and the Portal. FakeStoreClient implements StoreClientBase
over per-table lists and applies filters exactly like PostgREST `eq`.

Both record calls and support one-shot failure injection:

    store.failures["insert"] = "duplicate key value"
    auth.failures["sign_in_with_password"] = "Invalid login credentials"
"""

import itertools
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from portal.auth.client import AuthEvent, Session, Subscription, User
from portal.errors import ProviderError
from portal.store.client import Row, StoreClientBase, _require_scope
from tests.helpers import make_session, make_user


class FakeAuthClient:
    """Identity provider double holding the session in memory."""

    def __init__(self, session: Session | None = None):
        self._session = session
        self._listeners: dict[int, Any] = {}
        self._ids = itertools.count(1)
        self.failures: dict[str, ProviderError] = {}
        self.calls: list[str] = []
        self.users: dict[str, str] = {}  # email -> password
        self.confirm_signups = False
        self.password: str | None = None

    # AuthClient surface

    @property
    def current_session(self) -> Session | None:
        return self._session

    def access_token(self) -> str | None:
        return self._session.access_token if self._session else None

    def on_auth_state_change(self, listener) -> Subscription:
        sub_id = next(self._ids)
        self._listeners[sub_id] = listener
        return Subscription(id=sub_id, _unsubscribe=lambda i: self._listeners.pop(i, None))

    def _emit(self, event: AuthEvent) -> None:
        for listener in list(self._listeners.values()):
            listener(event, self._session)

    def _maybe_fail(self, operation: str) -> None:
        self.calls.append(operation)
        error = self.failures.pop(operation, None)
        if error is not None:
            raise error

    async def get_session(self) -> Session | None:
        self._maybe_fail("get_session")
        self._emit(AuthEvent.INITIAL_SESSION)
        return self._session

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        self._maybe_fail("sign_in_with_password")
        if self.users.get(email) != password:
            raise ProviderError("Invalid login credentials", 400, "invalid_credentials")
        self._session = make_session(make_user(email=email))
        self._emit(AuthEvent.SIGNED_IN)
        return self._session

    async def sign_up(self, email: str, password: str) -> Session | None:
        self._maybe_fail("sign_up")
        self.users[email] = password
        if self.confirm_signups:
            return None
        self._session = make_session(make_user(email=email))
        self._emit(AuthEvent.SIGNED_IN)
        return self._session

    async def sign_out(self) -> None:
        self._session = None
        self._emit(AuthEvent.SIGNED_OUT)
        self._maybe_fail("sign_out")

    async def update_user(self, *, password: str | None = None, data: dict | None = None) -> User:
        self._maybe_fail("update_user")
        if self._session is None:
            raise ProviderError("Auth session missing!", 401, "session_not_found")
        if password is not None:
            self.password = password
        self._emit(AuthEvent.USER_UPDATED)
        return self._session.user

    # Test helpers

    def sign_in_as(self, user: User) -> Session:
        """Switch to a session for `user` and notify listeners."""
        self._session = make_session(user)
        self._emit(AuthEvent.SIGNED_IN)
        return self._session

    def expire(self) -> None:
        """Drop the session as if the provider signed the user out."""
        self._session = None
        self._emit(AuthEvent.SIGNED_OUT)


def _matches(row: Row, filters: Mapping[str, Any]) -> bool:
    for column, value in filters.items():
        if value is None:
            if row.get(column) is not None:
                return False
        elif str(row.get(column)) != str(value):
            return False
    return True


class FakeStoreClient(StoreClientBase):
    """PostgREST double over in-memory tables."""

    def __init__(self):
        self.tables: dict[str, list[Row]] = {}
        self.failures: dict[str, str] = {}
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self._clock = datetime(2024, 1, 1, tzinfo=UTC)

    def _now(self) -> str:
        # Strictly increasing so ordering by timestamp is deterministic
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def _record(self, operation: str, table: str, filters: Mapping[str, Any] | None = None) -> None:
        self.calls.append((operation, table, dict(filters or {})))
        message = self.failures.pop(operation, None)
        if message is not None:
            raise ProviderError(message, status_code=400, code="PGRST000")

    def _table(self, table: str) -> list[Row]:
        return self.tables.setdefault(table, [])

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any],
        order: str | None = None,
        descending: bool = True,
    ) -> list[Row]:
        _require_scope(filters)
        self._record("select", table, filters)
        rows = [dict(r) for r in self._table(table) if _matches(r, filters)]
        if order:
            rows.sort(key=lambda r: str(r.get(order) or ""), reverse=descending)
        return rows

    async def select_one(self, table: str, *, filters: Mapping[str, Any]) -> Row | None:
        _require_scope(filters)
        self._record("select_one", table, filters)
        for row in self._table(table):
            if _matches(row, filters):
                return dict(row)
        return None

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        self._record("insert", table)
        stored = {"id": str(uuid4()), "created_at": self._now(), **row}
        stored.setdefault("updated_at", stored["created_at"])
        self._table(table).append(stored)
        return dict(stored)

    async def update(
        self, table: str, values: Mapping[str, Any], *, filters: Mapping[str, Any]
    ) -> list[Row]:
        _require_scope(filters)
        self._record("update", table, filters)
        updated = []
        for row in self._table(table):
            if _matches(row, filters):
                row.update(values)
                updated.append(dict(row))
        return updated

    async def upsert(self, table: str, row: Mapping[str, Any], *, on_conflict: str = "id") -> Row:
        self._record("upsert", table, {on_conflict: row.get(on_conflict)})
        for existing in self._table(table):
            if existing.get(on_conflict) == row.get(on_conflict):
                existing.update(row)
                return dict(existing)
        stored = dict(row)
        self._table(table).append(stored)
        return dict(stored)

    async def delete(self, table: str, *, filters: Mapping[str, Any]) -> list[Row]:
        _require_scope(filters)
        self._record("delete", table, filters)
        kept, deleted = [], []
        for row in self._table(table):
            (deleted if _matches(row, filters) else kept).append(row)
        self.tables[table] = kept
        return [dict(r) for r in deleted]

    # Test helpers

    def seed(self, table: str, **row: Any) -> Row:
        """Insert a row directly, bypassing failure injection and the call log."""
        stored = {"id": str(uuid4()), "created_at": self._now(), **row}
        stored.setdefault("updated_at", stored["created_at"])
        self._table(table).append(stored)
        return dict(stored)

    def calls_for(self, operation: str) -> list[tuple[str, str, dict[str, Any]]]:
        return [call for call in self.calls if call[0] == operation]


class FakeAdminClient:
    """Service-role lookup double for the existence-check service."""

    def __init__(self, emails: set[str] | None = None):
        self.emails = {e.lower() for e in emails or set()}
        self.failure: Exception | None = None
        self.lookups: list[str] = []

    async def get_user_by_email(self, email: str) -> User:
        self.lookups.append(email)
        if self.failure is not None:
            raise self.failure
        if email.lower() not in self.emails:
            raise ProviderError("User not found", status_code=404, code="user_not_found")
        return make_user(email=email)
