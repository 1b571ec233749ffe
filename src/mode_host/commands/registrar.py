"""De-duplicating layer over the host command table."""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Dict, List, Optional

from mode_host.errors import CommandCollisionError
from mode_host.runtime import telemetry

from .models import CommandHandle, CommandRef
from .table import CommandConflictError, CommandTable

GLOBAL_OWNER = "<global>"
COLLISION_HISTORY = 64


class CommandRegistrar:
    """Binds each command id at most once and tracks handles per owner.

    Owners are mode ids; commands registered without an owner belong to
    ``GLOBAL_OWNER`` and live until ``release_all``. Only the most recent
    ``COLLISION_HISTORY`` collisions are kept.
    """

    def __init__(self, table: CommandTable | None = None) -> None:
        self.table = table or CommandTable(logger_name="mode_host.commands")
        self._registered: set[str] = set()
        self._handles: Dict[str, List[CommandHandle]] = {}
        self.collisions: Deque[CommandCollisionError] = deque(maxlen=COLLISION_HISTORY)

    def register_once(
        self,
        command_id: str,
        handler: Callable[..., object],
        *,
        owner: Optional[str] = None,
        title: str = "",
    ) -> Optional[CommandHandle]:
        return self.register_ref(
            CommandRef(id=command_id, handler=handler, title=title, owner=owner)
        )

    def register_ref(self, command: CommandRef) -> Optional[CommandHandle]:
        owner = command.owner or GLOBAL_OWNER
        if command.id in self._registered:
            self._record_collision(CommandCollisionError(command.id, owner=owner))
            return None
        try:
            handle = self.table.register(command)
        except CommandConflictError as exc:
            self._record_collision(exc)
            return None
        self._registered.add(command.id)
        self._handles.setdefault(owner, []).append(handle)
        return handle

    def is_registered(self, command_id: str) -> bool:
        return command_id in self._registered

    def registered_ids(self) -> frozenset[str]:
        return frozenset(self._registered)

    def ids_for(self, owner: Optional[str]) -> tuple[str, ...]:
        return tuple(handle.id for handle in self._handles.get(owner or GLOBAL_OWNER, ()))

    def release(self, owner: Optional[str]) -> int:
        """Dispose every handle held for ``owner``; returns how many."""

        handles = self._handles.pop(owner or GLOBAL_OWNER, [])
        for handle in reversed(handles):
            self._registered.discard(handle.id)
            handle.dispose()
        if handles:
            telemetry.record_event(
                "commands.release",
                level="debug",
                data={"owner": owner or GLOBAL_OWNER, "count": len(handles)},
                logger_name="mode_host.commands",
            )
        return len(handles)

    def release_all(self) -> int:
        released = 0
        for owner in list(self._handles):
            released += self.release(owner)
        return released

    def _record_collision(self, error: CommandCollisionError) -> None:
        self.collisions.append(error)
        telemetry.record_event(
            "command.collision",
            level="warning",
            data={"command_id": error.command_id, "owner": error.owner or GLOBAL_OWNER},
            logger_name="mode_host.commands",
        )


class CommandScope:
    """Registrar view bound to one owner, handed to modes via their environment."""

    def __init__(self, registrar: CommandRegistrar, owner: str) -> None:
        self._registrar = registrar
        self.owner = owner

    def register(
        self, command_id: str, handler: Callable[..., object], *, title: str = ""
    ) -> Optional[CommandHandle]:
        return self._registrar.register_once(
            command_id, handler, owner=self.owner, title=title
        )


__all__ = ["CommandRegistrar", "CommandScope", "COLLISION_HISTORY", "GLOBAL_OWNER"]
