"""Mode contract and the environment handed to modes on activation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence

from mode_host.commands import CommandHandle, CommandRef, CommandScope
from mode_host.errors import ModeHostError
from mode_host.host.events import Disposable, DisposableBag, HostEventBus
from mode_host.host.status import StatusItem
from mode_host.runtime.config import SELECT_MODE_COMMAND
from mode_host.storage import KeyValueStore


@dataclass(frozen=True, slots=True)
class ModeDescriptor:
    """Read-only identity used by selection surfaces."""

    id: str
    name: str
    description: str = ""


@dataclass(slots=True)
class TransitionResult:
    """Outcome of ``ModeManager.activate`` / ``deactivate_all``."""

    ok: bool
    status: str
    mode_id: Optional[str] = None
    message: Optional[str] = None
    error: Optional[ModeHostError] = None

    def __bool__(self) -> bool:
        return self.ok


@dataclass(slots=True)
class ModeEnvironment:
    """Services a mode may use while it is active.

    ``subscriptions`` is the session-wide bag released at shutdown; modes
    that need per-activation cleanup keep their own disposables and release
    them in ``deactivate``.
    """

    mode_id: str
    store: KeyValueStore
    commands: CommandScope
    subscriptions: DisposableBag
    events: HostEventBus
    status: StatusItem

    def register_command(
        self, command_id: str, handler: Callable[..., object], *, title: str = ""
    ) -> Optional[CommandHandle]:
        return self.commands.register(command_id, handler, title=title)

    def subscribe(self, disposable: Disposable) -> Disposable:
        return self.subscriptions.add(disposable)

    def state_key(self, key: str) -> str:
        return f"mode_host.{self.mode_id}.{key}"

    def load_state(self, key: str, default: Any = None) -> Any:
        return self.store.get(self.state_key(key), default)

    def save_state(self, key: str, value: Any) -> None:
        self.store.set(self.state_key(key), value)


class Mode:
    """Base class for modes.

    Subclasses set ``id``/``name`` and override ``update``. The default
    ``activate`` shows the mode's status item, linked to the select-mode
    command, and ``deactivate`` hides it; both are safe to call repeatedly.
    """

    id: str = "mode"
    name: str = "Mode"
    description: str = ""

    def __init__(self) -> None:
        self.env: Optional[ModeEnvironment] = None

    @property
    def descriptor(self) -> ModeDescriptor:
        return ModeDescriptor(id=self.id, name=self.name, description=self.description)

    @property
    def is_active(self) -> bool:
        return self.env is not None

    def commands(self) -> Sequence[CommandRef]:
        """Commands the registry binds before ``activate`` runs."""

        return ()

    def activate(self, env: ModeEnvironment) -> Optional[Awaitable[None]]:
        self.env = env
        env.status.link(SELECT_MODE_COMMAND, tooltip="Click to change mode")
        env.status.show(self.name)
        return None

    def deactivate(self) -> None:
        env, self.env = self.env, None
        if env is not None:
            env.status.hide()

    def update(self, line: int, column: int) -> None:  # pragma: no cover - default no-op
        del line, column

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


__all__ = ["Mode", "ModeDescriptor", "ModeEnvironment", "TransitionResult"]
