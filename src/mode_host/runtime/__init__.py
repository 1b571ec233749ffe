"""Runtime services: telemetry and configuration."""

from . import telemetry
from .config import ACTIVE_MODE_KEY, FALLBACK_MODE_ID, NO_MODE_SENTINEL, HostConfig

__all__ = [
    "telemetry",
    "HostConfig",
    "ACTIVE_MODE_KEY",
    "FALLBACK_MODE_ID",
    "NO_MODE_SENTINEL",
]
