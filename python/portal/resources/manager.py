"""Parametric resource manager.

One implementation serves every personal collection. It owns the
fetch -> cache -> mutate -> invalidate cycle:

- list() waits for a signed-in user, then reads the (resource, user) cache
  entry, fetching owned rows when the entry is not fresh.
- Mutations validate locally first; field errors never reach the network.
- A successful mutation invalidates the whole (resource, user) entry and
  closes the dialog with a success toast.
- A provider failure shows the provider's message as an error toast and
  puts the dialog back where it was. Nothing is raised to the caller.

Every store call carries the ownership filter for the acting user.
"""

from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from portal.auth.context import SessionContext
from portal.cache import CacheEntry, CacheKey, QueryCache
from portal.errors import FieldValidationError, ProviderError
from portal.logging import get_logger
from portal.notify import Notifier
from portal.resources.spec import ResourceSpec
from portal.resources.state import IDLE, DialogPhase, DialogState, InvalidTransitionError
from portal.store import StoreClientBase

logger = get_logger(__name__)

RowT = TypeVar("RowT", bound=BaseModel)


def utcnow_iso() -> str:
    return datetime.now(UTC).isoformat()


class ResourceManager(Generic[RowT]):
    """Fetch, cache and mutate one user-owned collection.

    Args:
        spec: What the collection is (table, models, ordering, messages).
        session: Source of the acting user.
        store: Store client.
        cache: Shared query cache.
        notifier: Toast sink for mutation outcomes.
    """

    def __init__(
        self,
        spec: ResourceSpec,
        *,
        session: SessionContext,
        store: StoreClientBase,
        cache: QueryCache,
        notifier: Notifier,
    ):
        self.spec = spec
        self._session = session
        self._store = store
        self._cache = cache
        self._notifier = notifier
        self._state: DialogState = IDLE
        self._field_errors: dict[str, str] = {}

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> DialogState:
        return self._state

    @property
    def busy(self) -> bool:
        """Whether a mutation is in flight; further mutations are ignored."""
        return self._state.busy

    @property
    def field_errors(self) -> dict[str, str]:
        """Inline errors from the last rejected submit."""
        return dict(self._field_errors)

    def cache_key(self, user_id: str) -> CacheKey:
        return (self.spec.name, user_id)

    def entry(self) -> CacheEntry:
        """Cached entry for the signed-in user (LOADING when signed out)."""
        user = self._session.user
        if user is None:
            return CacheEntry()
        return self._cache.peek(self.cache_key(user.id))

    def _transition(self, state: DialogState) -> None:
        self._state = state

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list(self, *, refresh: bool = False) -> tuple[RowT, ...]:
        """Return the signed-in user's rows, newest first.

        Suspends until a user is signed in. On a failed fetch the previous
        rows are returned and the cache entry is marked stale.
        """
        user = await self._session.wait_for_user()
        entry = await self._cache.fetch(
            self.cache_key(user.id),
            lambda: self._fetch(user.id),
            force=refresh,
        )
        return entry.data

    async def _fetch(self, user_id: str) -> tuple[RowT, ...]:
        rows = await self._store.select(
            self.spec.table,
            filters={self.spec.owner_column: user_id},
            order=self.spec.order_by,
            descending=True,
        )
        logger.debug("resource_listed", resource=self.spec.name, count=len(rows))
        return self._parse_rows(rows)

    def _parse_rows(self, rows: "list[dict[str, Any]]") -> tuple[RowT, ...]:
        """Build row models; a row of the wrong shape fails the whole read."""
        try:
            return tuple(self.spec.row_model.model_validate(row) for row in rows)
        except ValidationError as e:
            raise ProviderError(
                f"Unexpected {self.spec.name} row: {e.errors()[0]['msg']}",
                code="E_INVALID_ROW",
            ) from e

    async def _find(self, item_id: str) -> RowT | None:
        for item in await self.list():
            if str(getattr(item, self.spec.id_column)) == str(item_id):
                return item
        return None

    # ------------------------------------------------------------------
    # Dialog transitions
    # ------------------------------------------------------------------

    def open_create(self) -> None:
        """Open an empty form for a new item."""
        if not self.spec.creatable:
            raise InvalidTransitionError(self._state.phase, f"create {self.spec.name}")
        if self._state.phase not in (DialogPhase.IDLE, DialogPhase.COMPOSING):
            raise InvalidTransitionError(self._state.phase, "open a form")
        self._field_errors = {}
        self._transition(DialogState(DialogPhase.COMPOSING))

    def open_edit(self, item: RowT) -> None:
        """Open the form pre-filled with `item`."""
        if self._state.phase not in (DialogPhase.IDLE, DialogPhase.COMPOSING):
            raise InvalidTransitionError(self._state.phase, "open a form")
        self._field_errors = {}
        self._transition(DialogState(DialogPhase.COMPOSING, item))

    def request_delete(self, item: RowT) -> None:
        """Ask for confirmation before deleting `item`."""
        if self._state.phase not in (DialogPhase.IDLE, DialogPhase.CONFIRMING_DELETE):
            raise InvalidTransitionError(self._state.phase, "request a delete")
        self._transition(DialogState(DialogPhase.CONFIRMING_DELETE, item))

    def cancel(self) -> None:
        """Close an open form or confirmation. Ignored while a request is in flight."""
        if self._state.busy:
            logger.info(
                "resource_cancel_ignored", resource=self.spec.name, phase=self._state.phase.value
            )
            return
        self._field_errors = {}
        self._transition(IDLE)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def validate(self, fields: dict[str, Any]) -> BaseModel:
        """Validate form fields.

        Raises:
            FieldValidationError: With one message per invalid field.
        """
        try:
            return self.spec.form_model.model_validate(fields)
        except ValidationError as e:
            raise FieldValidationError.from_pydantic(e) from e

    async def submit(self, fields: dict[str, Any]) -> bool:
        """Submit the open form: create when composing new, update when editing.

        Returns:
            True when the write succeeded and the dialog closed.
        """
        if self.busy:
            logger.info(
                "resource_submit_ignored", resource=self.spec.name, phase=self._state.phase.value
            )
            return False
        if self._state.phase is not DialogPhase.COMPOSING:
            raise InvalidTransitionError(self._state.phase, "submit")

        try:
            form = self.validate(fields)
        except FieldValidationError as e:
            self._field_errors = e.errors
            return False
        self._field_errors = {}

        item = self._state.item
        self._transition(DialogState(DialogPhase.SUBMITTING, item))
        try:
            user = await self._session.wait_for_user()
            if item is None:
                await self._create_remote(form, user.id)
            else:
                await self._update_remote(item, form, user.id)
        except ProviderError as e:
            logger.warning(
                "resource_write_failed",
                resource=self.spec.name,
                action="create" if item is None else "update",
                error=e.message,
                error_code=e.code,
            )
            self._transition(DialogState(DialogPhase.COMPOSING, item))
            self._notifier.error(e.message)
            return False

        self._cache.invalidate(self.cache_key(user.id))
        self._transition(IDLE)
        logger.info(
            "resource_written",
            resource=self.spec.name,
            action="create" if item is None else "update",
        )
        self._notifier.success(
            self.spec.created_message if item is None else self.spec.updated_message
        )
        return True

    async def create(self, fields: dict[str, Any]) -> bool:
        """Create an item, opening the form first when idle."""
        if self._state.phase is DialogPhase.IDLE:
            self.open_create()
        elif self._state.editing:
            raise InvalidTransitionError(self._state.phase, "create while editing")
        return await self.submit(fields)

    async def update(self, item_id: str, fields: dict[str, Any]) -> bool:
        """Update one owned item by id, opening its form first when idle."""
        if self.busy:
            logger.info(
                "resource_submit_ignored", resource=self.spec.name, phase=self._state.phase.value
            )
            return False

        current = self._state.item
        editing_target = self._state.editing and str(
            getattr(current, self.spec.id_column)
        ) == str(item_id)
        if not editing_target:
            item = await self._find(item_id)
            if item is None:
                self._notifier.error(self.spec.not_found_message)
                return False
            self.open_edit(item)
        return await self.submit(fields)

    async def confirm_delete(self) -> bool:
        """Delete the item awaiting confirmation.

        Returns:
            True when the item was deleted and the confirmation closed.
        """
        if self.busy:
            logger.info(
                "resource_delete_ignored", resource=self.spec.name, phase=self._state.phase.value
            )
            return False
        if self._state.phase is not DialogPhase.CONFIRMING_DELETE:
            raise InvalidTransitionError(self._state.phase, "confirm a delete")

        item = self._state.item
        self._transition(DialogState(DialogPhase.DELETING, item))
        try:
            user = await self._session.wait_for_user()
            await self._delete_remote(item, user.id)
        except ProviderError as e:
            logger.warning(
                "resource_delete_failed",
                resource=self.spec.name,
                error=e.message,
                error_code=e.code,
            )
            self._transition(DialogState(DialogPhase.CONFIRMING_DELETE, item))
            self._notifier.error(e.message)
            return False

        self._cache.invalidate(self.cache_key(user.id))
        self._transition(IDLE)
        logger.info("resource_deleted", resource=self.spec.name)
        self._notifier.success(self.spec.deleted_message)
        return True

    # ------------------------------------------------------------------
    # Store operations (overridden by managers with extra steps)
    # ------------------------------------------------------------------

    def _owner_filter(self, item: RowT, user_id: str) -> dict[str, str]:
        return {
            self.spec.id_column: str(getattr(item, self.spec.id_column)),
            self.spec.owner_column: user_id,
        }

    def _write_values(self, form: BaseModel) -> dict[str, Any]:
        values = form.model_dump()
        if self.spec.touch_column:
            values[self.spec.touch_column] = utcnow_iso()
        return values

    async def _create_remote(self, form: BaseModel, user_id: str) -> None:
        values = self._write_values(form)
        values[self.spec.owner_column] = user_id
        await self._store.insert(self.spec.table, values)

    async def _update_remote(self, item: RowT, form: BaseModel, user_id: str) -> None:
        rows = await self._store.update(
            self.spec.table,
            self._write_values(form),
            filters=self._owner_filter(item, user_id),
        )
        if not rows:
            raise ProviderError(self.spec.not_found_message, status_code=404, code="not_found")

    async def _delete_remote(self, item: RowT, user_id: str) -> None:
        rows = await self._store.delete(self.spec.table, filters=self._owner_filter(item, user_id))
        if not rows:
            raise ProviderError(self.spec.not_found_message, status_code=404, code="not_found")
