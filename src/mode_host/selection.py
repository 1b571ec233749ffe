"""Selection surface: the list a mode picker shows, and what picking does."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List

from mode_host.modes.base_mode import TransitionResult
from mode_host.runtime.config import NO_MODE_SENTINEL

if TYPE_CHECKING:  # pragma: no cover
    from mode_host.modes.mode_manager import ModeManager

DISABLE_ALL_ID = NO_MODE_SENTINEL


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(frozen=True, slots=True)
class Choice:
    id: str
    name: str
    description: str = ""
    active: bool = False


class ModeSelection:
    def __init__(
        self, manager: "ModeManager", notify: Callable[[str], None] = _noop
    ) -> None:
        self.manager = manager
        self.notify = notify

    def choices(self) -> List[Choice]:
        """Every registered mode in registration order, then "disable all"."""

        active = self.manager.active_mode
        entries = [
            Choice(
                id=descriptor.id,
                name=descriptor.name,
                description=descriptor.description,
                active=active is not None and active.id == descriptor.id,
            )
            for descriptor in self.manager.list_all()
        ]
        entries.append(
            Choice(
                id=DISABLE_ALL_ID,
                name="Disable all modes",
                description="Turn every mode off",
                active=active is None,
            )
        )
        return entries

    async def select(self, choice_id: str) -> TransitionResult:
        if choice_id == DISABLE_ALL_ID:
            result = await self.manager.deactivate_all()
        else:
            result = await self.manager.activate(choice_id)
        if not result.ok:
            self.notify(result.message or f"Could not switch to '{choice_id}'")
        return result


__all__ = ["Choice", "ModeSelection", "DISABLE_ALL_ID"]
