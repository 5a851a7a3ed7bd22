"""Transient user notifications (toasts).

Managers report outcomes here instead of raising: a success message after
each mutation, the provider's message verbatim on failure, and a loading
toast while an upload is in flight. Listeners (a UI, a CLI printer, tests)
receive every toast as it is shown.
"""

import itertools
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from portal.logging import get_logger

logger = get_logger(__name__)


class ToastKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    LOADING = "loading"


@dataclass(frozen=True)
class Toast:
    id: int
    kind: ToastKind
    message: str


ToastListener = Callable[[Toast], None]


class Notifier:
    """Holds active toasts and fans them out to listeners."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._active: dict[int, Toast] = {}
        self._history: list[Toast] = []
        self._listeners: list[ToastListener] = []

    @property
    def active(self) -> list[Toast]:
        """Toasts shown and not yet dismissed, oldest first."""
        return list(self._active.values())

    @property
    def history(self) -> list[Toast]:
        """Every toast shown since creation."""
        return list(self._history)

    def subscribe(self, listener: ToastListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _show(self, kind: ToastKind, message: str) -> Toast:
        toast = Toast(id=next(self._ids), kind=kind, message=message)
        self._active[toast.id] = toast
        self._history.append(toast)
        for listener in list(self._listeners):
            try:
                listener(toast)
            except Exception:
                logger.exception("toast_listener_failed", toast_id=toast.id)
        return toast

    def success(self, message: str) -> Toast:
        return self._show(ToastKind.SUCCESS, message)

    def error(self, message: str) -> Toast:
        return self._show(ToastKind.ERROR, message)

    def loading(self, message: str) -> Toast:
        return self._show(ToastKind.LOADING, message)

    def dismiss(self, toast_id: int) -> None:
        """Remove a toast. Unknown ids are ignored."""
        self._active.pop(toast_id, None)

    def clear(self) -> None:
        self._active.clear()
