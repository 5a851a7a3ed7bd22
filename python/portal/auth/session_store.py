"""Where the auth session lives between calls.

MemorySessionStore is the default: nothing survives a restart and the user
signs in again. FileSessionStore keeps the session on disk when
PERSIST_SESSION is enabled.
"""

import json
import os
from pathlib import Path
from typing import Any, Protocol

from portal.logging import get_logger

logger = get_logger(__name__)


class SessionStore(Protocol):
    """Storage for the serialized session."""

    def load(self) -> dict[str, Any] | None: ...

    def save(self, data: dict[str, Any]) -> None: ...

    def clear(self) -> None: ...


class MemorySessionStore:
    """Keeps the session in process memory only."""

    def __init__(self):
        self._data: dict[str, Any] | None = None

    def load(self) -> dict[str, Any] | None:
        return self._data

    def save(self, data: dict[str, Any]) -> None:
        self._data = data

    def clear(self) -> None:
        self._data = None


class FileSessionStore:
    """Keeps the session in a JSON file readable only by the owner."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> dict[str, Any] | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("session_file_unreadable", path=str(self.path), error=str(e))
            return None
        return data if isinstance(data, dict) else None

    def save(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
