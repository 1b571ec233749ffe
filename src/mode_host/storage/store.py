"""Key-value stores backing persisted host and mode state."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from mode_host.runtime import telemetry


class KeyValueStore(Protocol):
    """Session-scoped storage for small JSON-compatible values."""

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value or ``default`` when ``key`` is absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store ``value``; ``None`` removes the key."""
        ...

    def __contains__(self, key: object) -> bool:
        ...


class MemoryStore:
    """Process-local store; state ends with the process."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._data)


class JsonFileStore(MemoryStore):
    """Store mirrored to a JSON file, rewritten atomically on every change.

    An unreadable or malformed file is logged and treated as empty rather
    than aborting startup. A failed write leaves both the file and the
    in-memory copy as they were and re-raises.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(self._load())

    def set(self, key: str, value: Any) -> None:
        before = dict(self._data)
        super().set(key, value)
        try:
            self._flush()
        except Exception:
            self._data = before
            raise

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            telemetry.record_event(
                "storage.load_failed",
                level="warning",
                data={"path": str(self.path), "error": str(exc)},
                logger_name="mode_host.storage",
            )
            return {}
        if not isinstance(data, dict):
            telemetry.record_event(
                "storage.load_failed",
                level="warning",
                data={"path": str(self.path), "error": "root is not an object"},
                logger_name="mode_host.storage",
            )
            return {}
        return data

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._data, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


__all__ = ["KeyValueStore", "MemoryStore", "JsonFileStore"]
