"""Exception taxonomy shared by the registry, registrar and session."""

from __future__ import annotations

from typing import Optional


class ModeHostError(RuntimeError):
    """Base class for every error raised or reported by the host."""


class UnknownModeError(ModeHostError):
    """Activation was requested for an id that was never registered."""

    def __init__(self, mode_id: str) -> None:
        super().__init__(f"Unknown mode '{mode_id}'")
        self.mode_id = mode_id


class TransitionBusyError(ModeHostError):
    """A transition was requested while another one is still in flight."""

    def __init__(self, requested: Optional[str]) -> None:
        target = requested if requested is not None else "<deactivate>"
        super().__init__(f"Transition to '{target}' refused: registry is busy")
        self.requested = requested


class ModeActivationError(ModeHostError):
    """A mode's ``activate`` raised; the underlying error is ``__cause__``."""

    def __init__(self, mode_id: str, reason: str) -> None:
        super().__init__(f"Mode '{mode_id}' failed to activate: {reason}")
        self.mode_id = mode_id
        self.reason = reason


class StatePersistError(ModeHostError):
    """The store refused to record the active mode id."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Could not persist '{key}': {reason}")
        self.key = key
        self.reason = reason


class CommandCollisionError(ModeHostError):
    """A command id is already bound; the new registration is skipped."""

    def __init__(self, command_id: str, *, owner: Optional[str] = None) -> None:
        message = f"Command '{command_id}' is already registered"
        if owner:
            message = f"{message} (requested by '{owner}')"
        super().__init__(message)
        self.command_id = command_id
        self.owner = owner


__all__ = [
    "ModeHostError",
    "UnknownModeError",
    "TransitionBusyError",
    "ModeActivationError",
    "StatePersistError",
    "CommandCollisionError",
]
