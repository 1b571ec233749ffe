"""Global command table the host exposes to every mode."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from mode_host.errors import CommandCollisionError
from mode_host.runtime.telemetry import span

from .models import CommandHandle, CommandRef


@dataclass(slots=True)
class TableStats:
    """Lightweight snapshot describing table state."""

    command_count: int
    owners: tuple[str, ...]


class CommandConflictError(CommandCollisionError):
    """Raised by the table when an id is bound twice."""

    def __init__(self, command: CommandRef, existing: CommandRef) -> None:
        super().__init__(command.id, owner=command.owner)
        self.command = command
        self.existing = existing


class CommandTable:
    """Owns command references; duplicate ids are rejected, never replaced."""

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._commands: Dict[str, CommandRef] = {}
        self._logger_name = logger_name

    def __contains__(self, command_id: object) -> bool:
        return command_id in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    def get(self, command_id: str) -> CommandRef:
        try:
            return self._commands[command_id]
        except KeyError as exc:
            raise KeyError(f"Command '{command_id}' is not registered") from exc

    def register(self, command: CommandRef) -> CommandHandle:
        with span(
            "commands::register",
            logger_name=self._logger_name,
            component="commands",
            metadata={"command_id": command.id, "owner": command.owner or "-"},
        ) as handle:
            existing = self._commands.get(command.id)
            if existing is not None:
                handle.add_metadata("existing_owner", existing.owner or "-")
                raise CommandConflictError(command, existing)
            self._commands[command.id] = command
            return CommandHandle(command=command, table=self)

    def unregister(self, command_id: str) -> Optional[CommandRef]:
        return self._commands.pop(command_id, None)

    def execute(self, command_id: str, *args: object, **kwargs: object) -> object:
        command = self.get(command_id)
        with span(
            "commands::execute",
            logger_name=self._logger_name,
            component="commands",
            metadata={"command_id": command_id},
        ):
            return command(*args, **kwargs)

    def ids(self) -> frozenset[str]:
        return frozenset(self._commands)

    def stats(self) -> TableStats:
        owners = {command.owner for command in self._commands.values() if command.owner}
        return TableStats(
            command_count=len(self._commands),
            owners=tuple(sorted(owners)),
        )


__all__ = ["CommandTable", "CommandConflictError", "TableStats"]
