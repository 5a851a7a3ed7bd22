"""Dialog state machine shared by every resource manager.

    IDLE -> COMPOSING(new) | COMPOSING(edit, item) -> SUBMITTING -> IDLE
    IDLE -> CONFIRMING_DELETE(item) -> DELETING -> IDLE

A failed submit returns to COMPOSING with the same item; a failed delete
returns to CONFIRMING_DELETE with the same item.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class DialogPhase(str, Enum):
    IDLE = "idle"
    COMPOSING = "composing"
    SUBMITTING = "submitting"
    CONFIRMING_DELETE = "confirming_delete"
    DELETING = "deleting"


BUSY_PHASES = frozenset({DialogPhase.SUBMITTING, DialogPhase.DELETING})


class InvalidTransitionError(Exception):
    """Raised when an operation is not allowed from the current phase."""

    def __init__(self, phase: DialogPhase, action: str):
        self.phase = phase
        self.action = action
        super().__init__(f"Cannot {action} while {phase.value}")


@dataclass(frozen=True)
class DialogState:
    """Current phase plus the item it concerns (None when composing a new one)."""

    phase: DialogPhase = DialogPhase.IDLE
    item: Any = None

    @property
    def busy(self) -> bool:
        return self.phase in BUSY_PHASES

    @property
    def editing(self) -> bool:
        return self.phase is DialogPhase.COMPOSING and self.item is not None


IDLE = DialogState()
