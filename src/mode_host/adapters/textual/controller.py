"""Textual-facing adapter that feeds editor events into a host session."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from mode_host.host import MODE_CHANGED, STATUS_CHANGED, DocumentChange, Subscription
from mode_host.modes import TransitionResult
from mode_host.runtime.config import SELECT_MODE_COMMAND
from mode_host.selection import Choice
from mode_host.session import Session

IDLE_STATUS = "No mode"


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_status: Callable[[str], None]
    show_mode: Callable[[str], None] = _noop
    # Optional realtime log callback a host may use to surface debug lines
    log: Callable[[str], None] = _noop
    pick_mode: Callable[[], None] = _noop


class TextualModeAdapter:
    """Bridges a TextArea-style widget and a ``Session``."""

    def __init__(self, session: Session, hooks: TextualUIHooks) -> None:
        self.session = session
        self.hooks = hooks
        self._document_version = 0
        self._subscriptions: List[Subscription] = [
            session.events.subscribe(STATUS_CHANGED, lambda _item: self._refresh_status()),
            session.events.subscribe(MODE_CHANGED, self._on_mode_changed),
        ]
        self._refresh_status()

    def handle_cursor(self, line: int, column: int) -> None:
        self._log_state("cursor ->", line=line, column=column)
        self.session.dispatcher.cursor_moved(line, column)

    def handle_text_change(self, text: str, *, document: str = "untitled") -> None:
        self._document_version += 1
        self._log_state("text ->", document=document, version=self._document_version)
        self.session.dispatcher.document_changed(
            DocumentChange(text=text, document=document, version=self._document_version)
        )

    def handle_editor_change(self, editor: str) -> None:
        self._log_state("editor ->", editor=editor)
        self.session.dispatcher.editor_changed(editor)

    def choices(self) -> List[Choice]:
        return self.session.selection.choices()

    async def select_mode(self, choice_id: str) -> TransitionResult:
        result = await self.session.selection.select(choice_id)
        self._log_state(
            "select <-",
            choice=choice_id,
            ok=result.ok,
            status=result.status,
            message=result.message,
        )
        self._refresh_status()
        return result

    def click_status(self) -> Optional[str]:
        """Run the command linked to the visible status item.

        The select-mode command opens the host's picker instead of being
        executed, since it needs the chosen id.
        """

        command = self.session.manager.status_bar.clicked()
        self._log_state("status click ->", command=command)
        if command == SELECT_MODE_COMMAND:
            self.hooks.pick_mode()
        elif command is not None:
            self.session.manager.registrar.table.execute(command)
        return command

    def status_text(self) -> str:
        rendered = self.session.manager.status_bar.render()
        return rendered or IDLE_STATUS

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions.clear()

    def _on_mode_changed(self, payload: object) -> None:
        active = self.session.manager.active_mode
        self.hooks.show_mode(active.name if active else IDLE_STATUS)
        self._refresh_status()

    def _refresh_status(self) -> None:
        self.hooks.update_status(self.status_text())

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot = self._state_metadata()
        snapshot.update({key: value for key, value in fields.items() if value is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))

    def _state_metadata(self) -> Dict[str, object]:
        manager = self.session.manager
        active = manager.active_mode
        return {
            "mode": active.id if active else "-",
            "state": manager.state.value,
        }


__all__ = ["TextualModeAdapter", "TextualUIHooks", "IDLE_STATUS"]
