"""Personal records for the furthest line and column reached."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping

from ..base_mode import Mode, ModeEnvironment


@dataclass(slots=True)
class Records:
    max_line: int = 0
    max_column: int = 0

    @classmethod
    def from_state(cls, data: Any) -> "Records":
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            max_line=int(data.get("max_line", 0)),
            max_column=int(data.get("max_column", 0)),
        )


class RecordsMode(Mode):
    id = "records"
    name = "Records"
    description = "Tracks the furthest line and column you have reached"

    def __init__(self) -> None:
        super().__init__()
        self.records = Records()

    def activate(self, env: ModeEnvironment) -> None:
        super().activate(env)
        self.records = Records.from_state(env.load_state("records"))
        env.register_command("records.show", self.show, title="Show records")
        env.register_command("records.reset", self.reset, title="Reset records")
        self._render()

    def deactivate(self) -> None:
        if self.env is not None:
            self.env.save_state("records", asdict(self.records))
        super().deactivate()

    def show(self) -> str:
        return f"Max line {self.records.max_line + 1}, max column {self.records.max_column + 1}"

    def reset(self) -> None:
        self.records = Records()
        if self.env is not None:
            self.env.save_state("records", asdict(self.records))
        self._render()

    def update(self, line: int, column: int) -> None:
        changed = False
        if line > self.records.max_line:
            self.records.max_line = line
            changed = True
        if column > self.records.max_column:
            self.records.max_column = column
            changed = True
        if changed and self.env is not None:
            self.env.save_state("records", asdict(self.records))
        self._render()

    def _render(self) -> None:
        if self.env is not None:
            self.env.status.set_text(
                f"Max: L{self.records.max_line + 1}, C{self.records.max_column + 1}"
            )
