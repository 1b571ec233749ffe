"""Forwards host editor notifications to the mode manager."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mode_host.runtime import telemetry

from .events import DOCUMENT_CHANGED, EDITOR_CHANGED, DocumentChange

if TYPE_CHECKING:  # pragma: no cover
    from mode_host.modes.mode_manager import ModeManager


class PositionDispatcher:
    """Stateless bridge from the host's cursor feed to the active mode.

    Every event is forwarded on its own; modes that need debouncing do it
    themselves. A mode whose ``update`` raises is logged and the feed keeps
    flowing.
    """

    def __init__(self, manager: "ModeManager") -> None:
        self.manager = manager

    def cursor_moved(self, line: int, column: int) -> None:
        if line < 0 or column < 0:
            telemetry.record_event(
                "dispatch.invalid_position",
                level="debug",
                data={"line": line, "column": column},
                logger_name="mode_host.host",
            )
            return
        try:
            self.manager.dispatch(line, column)
        except Exception as exc:
            active = self.manager.active_mode
            telemetry.record_event(
                "dispatch.update_failed",
                level="error",
                data={"mode": active.id if active else "-", "error": repr(exc)},
                logger_name="mode_host.host",
            )

    __call__ = cursor_moved

    def editor_changed(self, editor: str) -> None:
        self.manager.events.emit(EDITOR_CHANGED, editor)

    def document_changed(self, change: DocumentChange) -> None:
        self.manager.events.emit(DOCUMENT_CHANGED, change)


__all__ = ["PositionDispatcher"]
