"""Process-wide authentication state.

SessionContext is the single owner of "who is signed in". It is written only
by the auth provider's session-change callback and read by everyone else
(route guard, resource managers).

Lifecycle:
    context = SessionContext(auth_client)
    await context.start()   # subscribe, then resolve the initial session
    ...
    context.stop()          # unsubscribe

`loading` is True until the initial session check resolves. Consumers must
not treat loading as signed-out.
"""

import asyncio
import itertools
from collections.abc import Callable
from dataclasses import dataclass

from portal.auth.client import AuthClient, AuthEvent, Session, Subscription, User
from portal.logging import bind_user, get_logger

logger = get_logger(__name__)

StateListener = Callable[["SessionState"], None]


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the authentication state."""

    session: Session | None = None
    loading: bool = True

    @property
    def user(self) -> User | None:
        return self.session.user if self.session else None

    @property
    def is_authenticated(self) -> bool:
        return not self.loading and self.session is not None


class SessionContext:
    """Single-writer holder of the current session."""

    def __init__(self, auth: AuthClient):
        self._auth = auth
        self._state = SessionState()
        self._subscription: Subscription | None = None
        self._listeners: dict[int, StateListener] = {}
        self._ids = itertools.count(1)
        self._user_ready = asyncio.Event()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._state.session

    @property
    def user(self) -> User | None:
        return self._state.user

    @property
    def loading(self) -> bool:
        return self._state.loading

    async def start(self) -> None:
        """Subscribe to session changes and resolve the initial session."""
        if self._subscription is not None:
            return

        self._subscription = self._auth.on_auth_state_change(self._on_auth_event)
        try:
            await self._auth.get_session()
        finally:
            # INITIAL_SESSION normally resolves loading; the initial check is
            # resolved either way.
            if self._state.loading:
                self._apply(SessionState(session=self._auth.current_session, loading=False))

    def stop(self) -> None:
        """Unsubscribe from the auth provider."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called with every new state.

        Returns:
            A function removing the listener.
        """
        listener_id = next(self._ids)
        self._listeners[listener_id] = listener
        return lambda: self._listeners.pop(listener_id, None)

    async def wait_for_user(self) -> User:
        """Suspend until a user is signed in, then return it."""
        while True:
            user = self.user
            if user is not None:
                return user
            await self._user_ready.wait()

    def _on_auth_event(self, event: AuthEvent, session: Session | None) -> None:
        self._apply(SessionState(session=session, loading=False))

    def _apply(self, state: SessionState) -> None:
        previous = self._state
        self._state = state

        if state.user is not None:
            self._user_ready.set()
        else:
            self._user_ready.clear()

        previous_id = previous.user.id if previous.user else None
        current_id = state.user.id if state.user else None
        if previous_id != current_id:
            bind_user(current_id)
            logger.info("session_user_changed", signed_in=current_id is not None)

        for listener in list(self._listeners.values()):
            listener(state)
