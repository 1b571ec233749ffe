"""Host configuration resolved from ``MODE_HOST_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from .telemetry import ENV_PREFIX

FALLBACK_MODE_ID = "position"
ACTIVE_MODE_KEY = "mode_host.active_mode"
NO_MODE_SENTINEL = "none"
SELECT_MODE_COMMAND = "mode_host.selectMode"
DISABLE_ALL_COMMAND = "mode_host.disableAll"


def _read(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(f"{ENV_PREFIX}{name}")
    if value is None:
        return None
    value = value.strip()
    return value or None


def _read_int(environ: Mapping[str, str], name: str, fallback: int) -> int:
    value = _read(environ, name)
    if value is None:
        return fallback
    try:
        return int(value)
    except ValueError:
        return fallback


@dataclass(frozen=True, slots=True)
class HostConfig:
    """Settings shared by the session, the registry and host adapters.

    ``default_mode`` is used when no active mode was persisted;
    ``fallback_mode`` is the hard-coded last resort. ``state_file`` of
    ``None`` keeps persisted state in memory only.
    """

    default_mode: Optional[str] = None
    fallback_mode: str = FALLBACK_MODE_ID
    state_file: Optional[Path] = None
    state_key: str = ACTIVE_MODE_KEY
    busy_backoff_ms: int = 10
    busy_backoff_max_ms: int = 250

    def __post_init__(self) -> None:
        if not self.fallback_mode:
            raise ValueError("fallback_mode cannot be empty")
        if not self.state_key:
            raise ValueError("state_key cannot be empty")
        if self.busy_backoff_ms <= 0 or self.busy_backoff_max_ms <= 0:
            raise ValueError("busy backoff values must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HostConfig":
        env = os.environ if environ is None else environ
        state_file = _read(env, "STATE_FILE")
        return cls(
            default_mode=_read(env, "DEFAULT_MODE"),
            fallback_mode=_read(env, "FALLBACK_MODE") or FALLBACK_MODE_ID,
            state_file=Path(state_file).expanduser() if state_file else None,
            state_key=_read(env, "STATE_KEY") or ACTIVE_MODE_KEY,
            busy_backoff_ms=_read_int(env, "BUSY_BACKOFF_MS", 10),
            busy_backoff_max_ms=_read_int(env, "BUSY_BACKOFF_MAX_MS", 250),
        )

    def with_overrides(self, **changes: object) -> "HostConfig":
        """Return a copy with every non-``None`` override applied."""

        applied = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **applied)  # type: ignore[arg-type]


__all__ = [
    "HostConfig",
    "ACTIVE_MODE_KEY",
    "FALLBACK_MODE_ID",
    "NO_MODE_SENTINEL",
    "SELECT_MODE_COMMAND",
    "DISABLE_ALL_COMMAND",
]
