"""Profile manager: the signed-in user's single profile row."""

from typing import Any

from portal.auth.context import SessionContext
from portal.cache import QueryCache
from portal.errors import FieldValidationError, ProviderError
from portal.logging import get_logger
from portal.notify import Notifier
from portal.resources.definitions import PROFILES
from portal.resources.manager import ResourceManager
from portal.resources.state import IDLE, DialogPhase, DialogState
from portal.schemas import Profile
from portal.store import StoreClientBase

logger = get_logger(__name__)


class ProfileManager(ResourceManager[Profile]):
    """Load and save the profile row whose id is the user id.

    Profiles are never deleted from the portal.
    """

    def __init__(
        self,
        *,
        session: SessionContext,
        store: StoreClientBase,
        cache: QueryCache,
        notifier: Notifier,
    ):
        super().__init__(PROFILES, session=session, store=store, cache=cache, notifier=notifier)

    async def load(self, *, refresh: bool = False) -> Profile | None:
        """Return the user's profile, or None when no row exists yet."""
        rows = await self.list(refresh=refresh)
        return rows[0] if rows else None

    async def _fetch(self, user_id: str) -> tuple[Profile, ...]:
        row = await self._store.select_one(self.spec.table, filters={"id": user_id})
        return self._parse_rows([row]) if row else ()

    async def save(self, fields: dict[str, Any]) -> bool:
        """Validate and upsert the profile.

        Returns:
            True when saved.
        """
        if self.busy:
            logger.info("resource_submit_ignored", resource=self.spec.name)
            return False

        try:
            form = self.validate(fields)
        except FieldValidationError as e:
            self._field_errors = e.errors
            return False
        self._field_errors = {}

        self._transition(DialogState(DialogPhase.SUBMITTING))
        try:
            user = await self._session.wait_for_user()
            values = self._write_values(form)
            values["id"] = user.id
            await self._store.upsert(self.spec.table, values, on_conflict="id")
        except ProviderError as e:
            logger.warning("profile_save_failed", error=e.message, error_code=e.code)
            self._notifier.error(e.message)
            return False
        finally:
            self._transition(IDLE)

        self._cache.invalidate(self.cache_key(user.id))
        logger.info("profile_saved")
        self._notifier.success(self.spec.updated_message)
        return True

    def request_delete(self, item: Profile) -> None:
        raise TypeError("Profiles cannot be deleted")
