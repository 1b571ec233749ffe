"""Session bootstrap: wires the manager together and restores the last mode."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from mode_host.commands import CommandRegistrar
from mode_host.host import DisposableBag, HostEventBus, PositionDispatcher, StatusBar
from mode_host.modes import Mode, ModeManager, TransitionResult
from mode_host.runtime import telemetry
from mode_host.runtime.config import (
    DISABLE_ALL_COMMAND,
    NO_MODE_SENTINEL,
    SELECT_MODE_COMMAND,
    HostConfig,
)
from mode_host.selection import ModeSelection
from mode_host.storage import JsonFileStore, KeyValueStore, MemoryStore


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass
class Session:
    """Everything one host session owns, constructed once and passed around."""

    manager: ModeManager
    config: HostConfig
    dispatcher: PositionDispatcher
    selection: ModeSelection
    notify: Callable[[str], None] = _noop
    diagnostics: List[str] = field(default_factory=list)
    started: bool = False

    @classmethod
    def create(
        cls,
        modes: Iterable[Mode],
        *,
        config: Optional[HostConfig] = None,
        store: Optional[KeyValueStore] = None,
        notify: Callable[[str], None] = _noop,
    ) -> "Session":
        config = config or HostConfig.from_env()
        if store is None:
            store = JsonFileStore(config.state_file) if config.state_file else MemoryStore()
        events = HostEventBus()
        manager = ModeManager(
            store=store,
            registrar=CommandRegistrar(),
            events=events,
            status_bar=StatusBar(events),
            subscriptions=DisposableBag(),
            config=config,
        )
        for mode in modes:
            manager.register(mode)
        return cls(
            manager=manager,
            config=config,
            dispatcher=PositionDispatcher(manager),
            selection=ModeSelection(manager, notify=notify),
            notify=notify,
        )

    @property
    def store(self) -> KeyValueStore:
        return self.manager.store

    @property
    def events(self) -> HostEventBus:
        return self.manager.events

    def initial_mode(self) -> Optional[str]:
        """Resolve which mode ``start`` should bring up; ``None`` means stay idle."""

        persisted = self.manager.persisted_mode()
        if persisted == NO_MODE_SENTINEL:
            return None
        if persisted is not None and persisted in self.manager:
            return persisted
        if persisted is not None:
            telemetry.record_event(
                "session.persisted_unknown",
                level="warning",
                data={"mode": persisted},
                logger_name="mode_host.session",
            )
        default = self.config.default_mode
        if default and default in self.manager:
            return default
        return self.config.fallback_mode

    async def start(self) -> TransitionResult:
        self._register_commands()
        self.started = True

        target = self.initial_mode()
        if target is None:
            telemetry.record_event(
                "session.restore",
                data={"mode": NO_MODE_SENTINEL},
                logger_name="mode_host.session",
            )
            return TransitionResult(ok=True, status="disabled")

        result = await self.manager.activate(target)
        fallback = self.config.fallback_mode
        if not result.ok and target != fallback:
            telemetry.record_event(
                "session.fallback",
                level="warning",
                data={"failed": target, "fallback": fallback, "reason": result.status},
                logger_name="mode_host.session",
            )
            result = await self.manager.activate(fallback)

        if not result.ok:
            diagnostic = (
                f"No mode could be activated ({result.message or result.status}); "
                "all modes are off"
            )
            self.diagnostics.append(diagnostic)
            self.notify(diagnostic)
        telemetry.record_event(
            "session.restore",
            data={"mode": result.mode_id or "-", "status": result.status},
            logger_name="mode_host.session",
        )
        return result

    async def stop(self) -> None:
        if not self.started:
            return
        await self.manager.shutdown()
        self.manager.subscriptions.dispose()
        self.started = False

    def _register_commands(self) -> None:
        registrar = self.manager.registrar
        registrar.register_once(
            SELECT_MODE_COMMAND, self.selection.select, title="Select mode"
        )
        registrar.register_once(
            DISABLE_ALL_COMMAND,
            lambda: self.selection.select(NO_MODE_SENTINEL),
            title="Disable all modes",
        )


__all__ = ["Session", "SELECT_MODE_COMMAND", "DISABLE_ALL_COMMAND"]
