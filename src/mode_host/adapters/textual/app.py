"""Executable Textual app hosting the built-in modes around a TextArea."""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import List, Optional, Sequence

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Log, OptionList, Static, TextArea
from textual.widgets.option_list import Option

from mode_host.modes.builtin import default_modes
from mode_host.runtime import telemetry
from mode_host.runtime.config import HostConfig
from mode_host.selection import Choice
from mode_host.session import Session

from .controller import TextualModeAdapter, TextualUIHooks


class ModePicker(ModalScreen[Optional[str]]):
    """Lists every mode plus "disable all"; dismisses with the picked id."""

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, choices: List[Choice]) -> None:
        super().__init__()
        self._choices = choices

    def compose(self) -> ComposeResult:
        options = []
        for choice in self._choices:
            marker = "● " if choice.active else "  "
            label = f"{marker}{choice.name}"
            if choice.description:
                label = f"{label} - {choice.description}"
            options.append(Option(label, id=choice.id))
        yield OptionList(*options, id="mode-picker")

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(event.option.id)

    def action_cancel(self) -> None:
        self.dismiss(None)


class StatusLine(Static):
    """Status text; a click runs the command linked to the visible item."""

    async def on_click(self) -> None:
        await self.app.run_action("status_click")


class ModeHostApp(App[None]):
    """Minimal Textual UI driving the mode host from a TextArea."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#editor {
		height: 1fr;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}

	#event-log {
		height: 8;
		border: round $accent;
	}

	#mode-picker {
		width: 70;
		height: auto;
		max-height: 16;
		border: round $accent;
	}

	ModePicker {
		align: center middle;
	}
	"""

    BINDINGS = [
        ("ctrl+p", "pick_mode", "Modes"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, *, config: Optional[HostConfig] = None) -> None:
        super().__init__()
        self._config = config or HostConfig.from_env()
        self.session: Session | None = None
        self.adapter: TextualModeAdapter | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical():
            yield TextArea("", id="editor")
            yield StatusLine("", id="status-line")
            yield Log(id="event-log")
        yield Footer()

    async def on_mount(self) -> None:
        self.session = Session.create(
            default_modes(), config=self._config, notify=self._notify_failure
        )
        hooks = TextualUIHooks(
            update_status=self._update_status,
            show_mode=self._show_mode,
            log=self._log_line,
            pick_mode=self.action_pick_mode,
        )
        self.adapter = TextualModeAdapter(self.session, hooks)
        await self.session.start()

    async def on_unmount(self) -> None:
        if self.adapter:
            self.adapter.close()
        if self.session:
            await self.session.stop()

    def on_text_area_selection_changed(self, event: TextArea.SelectionChanged) -> None:
        if self.adapter:
            line, column = event.text_area.cursor_location
            self.adapter.handle_cursor(line, column)

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if self.adapter:
            self.adapter.handle_text_change(event.text_area.text, document="editor")

    def action_pick_mode(self) -> None:
        if not self.adapter:
            return
        self.push_screen(ModePicker(self.adapter.choices()), self._on_mode_picked)

    def action_status_click(self) -> None:
        if self.adapter:
            self.adapter.click_status()

    def _on_mode_picked(self, choice_id: Optional[str]) -> None:
        if choice_id and self.adapter:
            self.run_worker(self.adapter.select_mode(choice_id))

    def _update_status(self, status: str) -> None:
        self.query_one("#status-line", Static).update(status)

    def _show_mode(self, name: str) -> None:
        self.sub_title = name

    def _notify_failure(self, message: str) -> None:
        self.notify(message, severity="error")

    def _log_line(self, line: str) -> None:
        self.query_one("#event-log", Log).write_line(line)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the mode host Textual demo.")
    parser.add_argument(
        "--state-file",
        type=Path,
        default=None,
        help="JSON file persisting the active mode (default: MODE_HOST_STATE_FILE)",
    )
    parser.add_argument(
        "--default-mode",
        default=None,
        help="Mode to start with when none was persisted",
    )
    parser.add_argument(
        "--log-preset",
        choices=("development", "production", "quiet"),
        default=os.environ.get("MODE_HOST_LOG_PRESET", "quiet"),
        help="Telemetry preset (default: quiet, so logs do not draw over the UI)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    telemetry.configure(preset=args.log_preset)
    config = HostConfig.from_env().with_overrides(
        state_file=args.state_file, default_mode=args.default_mode
    )
    ModeHostApp(config=config).run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
