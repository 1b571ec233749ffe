"""Plain cursor-position indicator; the host's last-resort mode."""

from __future__ import annotations

from ..base_mode import Mode


class PositionMode(Mode):
    id = "position"
    name = "Position"
    description = "Shows the cursor line and column in the status bar"

    def update(self, line: int, column: int) -> None:
        if self.env is None:
            return
        self.env.status.set_text(f"Ln {line + 1}, Col {column + 1}")
