"""Supabase Auth (GoTrue) client.

Provides:
- AuthClient: sign-up, password sign-in, sign-out, user update, token refresh,
  and a session-change subscription (the identity provider interface the
  portal consumes)
- AdminAuthClient: service-role lookup of a user by email

Endpoints used (relative to {SUPABASE_URL}/auth/v1):
- POST /signup
- POST /token?grant_type=password
- POST /token?grant_type=refresh_token
- POST /logout
- PUT  /user
- GET  /admin/users?filter=...
"""

import itertools
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx
import jwt
from jwt.exceptions import DecodeError

from portal.auth.session_store import MemorySessionStore, SessionStore
from portal.errors import ProviderError
from portal.http import PlatformClient
from portal.logging import get_logger

logger = get_logger(__name__)

# Refresh a restored session this many seconds before it actually expires
EXPIRY_MARGIN_SECONDS = 10

USER_NOT_FOUND_MESSAGE = "User not found"
USER_NOT_FOUND_CODE = "user_not_found"

ADMIN_PAGE_SIZE = 50


@dataclass(frozen=True)
class User:
    """Identity issued by the auth provider."""

    id: str
    email: str | None = None
    user_metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=str(data["id"]),
            email=data.get("email"),
            user_metadata=dict(data.get("user_metadata") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "email": self.email, "user_metadata": dict(self.user_metadata)}


def token_expiry(access_token: str) -> int | None:
    """Read the `exp` claim of an access token without verifying it.

    Verification is the platform's job; the client only needs to know
    when to refresh.
    """
    try:
        claims = jwt.decode(access_token, options={"verify_signature": False})
    except DecodeError:
        return None
    exp = claims.get("exp")
    return int(exp) if isinstance(exp, int | float) else None


@dataclass(frozen=True)
class Session:
    """An authenticated session."""

    access_token: str
    refresh_token: str
    user: User
    expires_at: int | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Session":
        """Build a session from a GoTrue token response."""
        expires_at = data.get("expires_at")
        if expires_at is None and data.get("expires_in") is not None:
            expires_at = int(time.time()) + int(data["expires_in"])
        if expires_at is None:
            expires_at = token_expiry(data["access_token"])
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", ""),
            user=User.from_payload(data["user"]),
            expires_at=int(expires_at) if expires_at is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
            "user": self.user.to_dict(),
        }

    def is_expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        now = time.time() if now is None else now
        return self.expires_at - EXPIRY_MARGIN_SECONDS <= now


class AuthEvent(str, Enum):
    """Session-change notifications emitted by AuthClient."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


AuthListener = Callable[[AuthEvent, Session | None], None]


@dataclass
class Subscription:
    """Handle returned by on_auth_state_change."""

    id: int
    _unsubscribe: Callable[[int], None]

    def unsubscribe(self) -> None:
        self._unsubscribe(self.id)


class AuthClient(PlatformClient):
    """Identity provider client holding the current session.

    The session is the only mutable state. It is written exclusively by the
    methods below, each of which notifies subscribers afterwards.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        supabase_url: str,
        anon_key: str,
        *,
        store: SessionStore | None = None,
    ):
        super().__init__(
            http,
            f"{supabase_url.rstrip('/')}/auth/v1",
            anon_key,
            access_token=self.access_token,
        )
        self._store = store or MemorySessionStore()
        self._session: Session | None = None
        self._restored = False
        self._listeners: dict[int, AuthListener] = {}
        self._ids = itertools.count(1)

    @property
    def current_session(self) -> Session | None:
        return self._session

    def access_token(self) -> str | None:
        """Access token of the current session, for other platform clients."""
        return self._session.access_token if self._session else None

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        """Register a listener for session changes.

        Returns:
            Subscription whose unsubscribe() removes the listener.
        """
        sub_id = next(self._ids)
        self._listeners[sub_id] = listener
        return Subscription(id=sub_id, _unsubscribe=self._remove_listener)

    def _remove_listener(self, sub_id: int) -> None:
        self._listeners.pop(sub_id, None)

    def _emit(self, event: AuthEvent, session: Session | None) -> None:
        logger.info("auth_state_changed", auth_event=event.value, signed_in=session is not None)
        for listener in list(self._listeners.values()):
            try:
                listener(event, session)
            except Exception:
                logger.exception("auth_listener_failed", auth_event=event.value)

    def _set_session(self, session: Session | None) -> None:
        self._session = session
        if session is None:
            self._store.clear()
        else:
            self._store.save(session.to_dict())

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def get_session(self) -> Session | None:
        """Resolve the initial session.

        On first call, restores a stored session (refreshing it when the
        access token has expired) and emits INITIAL_SESSION.
        """
        if self._restored:
            return self._session

        self._restored = True
        stored = self._store.load()
        if stored:
            try:
                self._session = Session.from_payload(stored)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("stored_session_invalid", error=str(e))
                self._set_session(None)

        if self._session is not None and self._session.is_expired():
            try:
                await self.refresh_session()
            except ProviderError as e:
                logger.warning("stored_session_refresh_failed", error=e.message)
                self._set_session(None)

        self._emit(AuthEvent.INITIAL_SESSION, self._session)
        return self._session

    async def sign_up(self, email: str, password: str) -> Session | None:
        """Register a new identity.

        Returns:
            The new session, or None when the project requires email
            confirmation before sign-in.

        Raises:
            ProviderError: e.g. a sign-up allow-list rejection, verbatim.
        """
        response = await self._request(
            "POST",
            "/signup",
            error_code="E_SIGN_UP_FAILED",
            json={"email": email, "password": password},
        )
        data = self._decode(response)
        if not data.get("access_token"):
            logger.info("sign_up_pending_confirmation")
            return None

        session = Session.from_payload(data)
        self._set_session(session)
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        """Sign in with email and password."""
        response = await self._request(
            "POST",
            "/token",
            error_code="E_SIGN_IN_FAILED",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = Session.from_payload(self._decode(response))
        self._set_session(session)
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def refresh_session(self) -> Session:
        """Exchange the refresh token for a new session."""
        if self._session is None or not self._session.refresh_token:
            raise ProviderError("Auth session missing!", code="E_SESSION_MISSING")

        response = await self._request(
            "POST",
            "/token",
            error_code="E_REFRESH_FAILED",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self._session.refresh_token},
        )
        session = Session.from_payload(self._decode(response))
        self._set_session(session)
        self._emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    async def sign_out(self) -> None:
        """End the session.

        The local session is always dropped. A provider failure other than
        "already signed out" is raised afterwards.
        """
        if self._session is None:
            return

        error: ProviderError | None = None
        try:
            await self._request("POST", "/logout", error_code="E_SIGN_OUT_FAILED")
        except ProviderError as e:
            if e.status_code not in (401, 403, 404):
                error = e

        self._set_session(None)
        self._emit(AuthEvent.SIGNED_OUT, None)
        if error is not None:
            raise error

    async def update_user(
        self,
        *,
        password: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> User:
        """Update the signed-in user's password and/or metadata."""
        if self._session is None:
            raise ProviderError("Auth session missing!", code="E_SESSION_MISSING")

        body: dict[str, Any] = {}
        if password is not None:
            body["password"] = password
        if data is not None:
            body["data"] = data

        response = await self._request(
            "PUT", "/user", error_code="E_UPDATE_USER_FAILED", json=body
        )
        user = User.from_payload(self._decode(response))
        session = Session(
            access_token=self._session.access_token,
            refresh_token=self._session.refresh_token,
            user=user,
            expires_at=self._session.expires_at,
        )
        self._set_session(session)
        self._emit(AuthEvent.USER_UPDATED, session)
        return user


class AdminAuthClient(PlatformClient):
    """Auth admin client authenticated with the service-role key.

    Never constructed by the portal client; only the existence-check
    service holds the service-role key.
    """

    def __init__(self, http: httpx.AsyncClient, supabase_url: str, service_role_key: str):
        super().__init__(http, f"{supabase_url.rstrip('/')}/auth/v1", service_role_key)

    async def get_user_by_email(self, email: str) -> User:
        """Look up an identity by email (case-insensitive exact match).

        The provider's `filter` is a substring match, so pages are walked
        until an exact match turns up or a short page ends the listing.

        Raises:
            ProviderError: "User not found" (code user_not_found) when no
                identity matches, or the provider's own failure.
        """
        wanted = email.strip().lower()
        page = 1
        while True:
            response = await self._request(
                "GET",
                "/admin/users",
                error_code="E_ADMIN_LOOKUP_FAILED",
                params={"filter": email, "page": page, "per_page": ADMIN_PAGE_SIZE},
            )
            payload = self._decode(response)
            users = payload.get("users") if isinstance(payload, dict) else payload
            if not isinstance(users, list):
                raise ProviderError(
                    "Unexpected admin user listing", code="E_ADMIN_LOOKUP_FAILED"
                )

            for data in users:
                if (data.get("email") or "").lower() == wanted:
                    return User.from_payload(data)

            if len(users) < ADMIN_PAGE_SIZE:
                break
            page += 1

        raise ProviderError(USER_NOT_FOUND_MESSAGE, status_code=404, code=USER_NOT_FOUND_CODE)


def is_user_not_found(error: ProviderError) -> bool:
    """Whether a provider error is the expected "no such user" outcome."""
    return error.code == USER_NOT_FOUND_CODE or error.message == USER_NOT_FOUND_MESSAGE
