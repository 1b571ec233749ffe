"""Mode manager: registry of modes plus the activation state machine."""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import replace
from enum import Enum
from typing import Dict, List, Optional

from mode_host.commands import CommandRegistrar, CommandScope
from mode_host.errors import (
    ModeActivationError,
    ModeHostError,
    StatePersistError,
    TransitionBusyError,
    UnknownModeError,
)
from mode_host.host.events import MODE_CHANGED, DisposableBag, HostEventBus
from mode_host.host.status import StatusBar
from mode_host.runtime import telemetry
from mode_host.runtime.config import HostConfig, NO_MODE_SENTINEL
from mode_host.storage import KeyValueStore, MemoryStore

from .base_mode import Mode, ModeDescriptor, ModeEnvironment, TransitionResult


class ActivationState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    BUSY = "busy"


class ModeManager:
    """Owns registered modes and is the only caller of their lifecycle.

    Transitions (``activate``, ``deactivate_all``, ``shutdown``) are
    serialized: while one is in flight the state is ``BUSY`` and further
    requests are refused with a ``busy`` result instead of being queued.
    Refusals, unknown ids, failing modes and store write errors are reported
    through ``TransitionResult``; nothing raises across these entry points
    except cancellation, which is re-raised after the previous mode is back.
    """

    def __init__(
        self,
        *,
        store: Optional[KeyValueStore] = None,
        registrar: Optional[CommandRegistrar] = None,
        events: Optional[HostEventBus] = None,
        status_bar: Optional[StatusBar] = None,
        subscriptions: Optional[DisposableBag] = None,
        config: Optional[HostConfig] = None,
    ) -> None:
        self.config = config or HostConfig()
        self.store: KeyValueStore = store if store is not None else MemoryStore()
        self.registrar = registrar or CommandRegistrar()
        self.events = events or HostEventBus()
        self.status_bar = status_bar or StatusBar(self.events)
        self.subscriptions = subscriptions or DisposableBag()
        self._modes: Dict[str, Mode] = {}
        self._active: Optional[str] = None
        self._state = ActivationState.IDLE

    @property
    def state(self) -> ActivationState:
        return self._state

    @property
    def active_mode(self) -> Optional[Mode]:
        if self._active is None:
            return None
        return self._modes.get(self._active)

    def register(self, mode: Mode) -> Mode:
        if not mode.id:
            raise ValueError("Mode id cannot be empty")
        if mode.id == NO_MODE_SENTINEL:
            raise ValueError(f"Mode id '{NO_MODE_SENTINEL}' is reserved")
        if mode.id in self._modes:
            raise ValueError(f"Mode '{mode.id}' already registered")
        self._modes[mode.id] = mode
        telemetry.record_event(
            "mode.register",
            level="debug",
            data={"mode": mode.id},
            logger_name="mode_host.modes",
        )
        return mode

    def __contains__(self, mode_id: object) -> bool:
        return mode_id in self._modes

    def get(self, mode_id: str) -> Mode:
        try:
            return self._modes[mode_id]
        except KeyError as exc:
            raise UnknownModeError(mode_id) from exc

    def get_active(self) -> Optional[Mode]:
        return self.active_mode

    def list_all(self) -> List[ModeDescriptor]:
        return [mode.descriptor for mode in self._modes.values()]

    def persisted_mode(self) -> Optional[str]:
        value = self.store.get(self.config.state_key)
        return value if isinstance(value, str) and value else None

    async def activate(self, mode_id: str) -> TransitionResult:
        mode = self._modes.get(mode_id)
        if mode is None:
            return self._refuse("unknown_mode", mode_id, UnknownModeError(mode_id))
        if self._state is ActivationState.BUSY:
            return self._refuse("busy", mode_id, TransitionBusyError(mode_id))
        if self._active == mode_id:
            return TransitionResult(ok=True, status="unchanged", mode_id=mode_id)

        previous = self._active
        self._state = ActivationState.BUSY
        try:
            with telemetry.span(
                "mode::activate",
                logger_name="mode_host.modes",
                component="modes",
                metadata={"mode": mode_id, "previous": previous or "-"},
            ):
                if previous is not None:
                    self._teardown(self._modes[previous])
                try:
                    await self._bring_up(mode)
                except asyncio.CancelledError:
                    telemetry.record_event(
                        "mode.activation_cancelled",
                        level="warning",
                        data={"mode": mode_id, "previous": previous or "-"},
                        logger_name="mode_host.modes",
                    )
                    self._discard(mode)
                    await self._restore(previous)
                    raise
                except Exception as exc:
                    error = ModeActivationError(mode.id, str(exc) or type(exc).__name__)
                    error.__cause__ = exc
                    telemetry.record_event(
                        "mode.activation_failed",
                        level="error",
                        data={"mode": mode.id, "error": repr(exc)},
                        logger_name="mode_host.modes",
                    )
                    return await self._recover(mode, previous, error, "activation_failed")

                persist_error = self._persist(mode_id)
                if persist_error is not None:
                    return await self._recover(
                        mode, previous, persist_error, "persist_failed"
                    )

                self._active = mode_id
                telemetry.record_event(
                    "mode.activate",
                    data={"mode": mode_id, "previous": previous or "-"},
                    logger_name="mode_host.modes",
                )
                self.events.emit(MODE_CHANGED, mode.descriptor)
                return TransitionResult(ok=True, status="activated", mode_id=mode_id)
        finally:
            self._settle()

    async def deactivate_all(self) -> TransitionResult:
        if self._state is ActivationState.BUSY:
            return self._refuse("busy", None, TransitionBusyError(None))

        current = self.active_mode
        if current is None:
            persist_error = self._persist(NO_MODE_SENTINEL)
            if persist_error is not None:
                return TransitionResult(
                    ok=False,
                    status="persist_failed",
                    message=str(persist_error),
                    error=persist_error,
                )
            return TransitionResult(ok=True, status="unchanged")

        self._state = ActivationState.BUSY
        try:
            # The sentinel is written first so a failing store leaves the mode up.
            persist_error = self._persist(NO_MODE_SENTINEL)
            if persist_error is not None:
                return TransitionResult(
                    ok=False,
                    status="persist_failed",
                    mode_id=current.id,
                    message=f"{persist_error}; '{current.id}' stays active",
                    error=persist_error,
                )
            self._teardown(current)
            self.events.emit(MODE_CHANGED, None)
            return TransitionResult(ok=True, status="deactivated", mode_id=current.id)
        finally:
            self._settle()

    def dispatch(self, line: int, column: int) -> None:
        mode = self.active_mode
        if mode is None:
            return
        with telemetry.span(
            f"mode_update::{mode.id}",
            logger_name="mode_host.modes",
            metadata={"mode": mode.id, "line": line, "column": column},
        ):
            mode.update(line, column)

    async def shutdown(self) -> None:
        """Wait out any in-flight transition, then release everything.

        The persisted active id is left alone so the next session restores
        the same mode.
        """

        delay = self.config.busy_backoff_ms / 1000.0
        ceiling = self.config.busy_backoff_max_ms / 1000.0
        while self._state is ActivationState.BUSY:
            await asyncio.sleep(delay)
            delay = min(delay * 2, ceiling)

        self._state = ActivationState.BUSY
        try:
            current = self.active_mode
            if current is not None:
                self._teardown(current)
            released = self.registrar.release_all()
            telemetry.record_event(
                "mode.shutdown",
                data={"released_commands": released},
                logger_name="mode_host.modes",
            )
        finally:
            self._settle()

    async def _bring_up(self, mode: Mode) -> None:
        for command in mode.commands():
            self.registrar.register_ref(replace(command, owner=mode.id))
        outcome = mode.activate(self._environment(mode))
        if inspect.isawaitable(outcome):
            await outcome

    async def _recover(
        self, mode: Mode, previous: Optional[str], error: ModeHostError, status: str
    ) -> TransitionResult:
        self._discard(mode)
        restored = await self._restore(previous)
        if restored is not None:
            message = f"{error}; restored '{restored}'"
        elif previous is not None:
            message = f"{error}; '{previous}' could not be restored, all modes are off"
        else:
            message = str(error)
        return TransitionResult(
            ok=False, status=status, mode_id=mode.id, message=message, error=error
        )

    async def _restore(self, previous: Optional[str]) -> Optional[str]:
        """Bring ``previous`` back after a failed switch.

        When that fails too the registry ends idle and the persisted id is
        cleared, so the next session starts from the configured default.
        """

        if previous is None:
            return None
        prior = self._modes[previous]
        try:
            await self._bring_up(prior)
        except Exception as exc:
            telemetry.record_event(
                "mode.restore_failed",
                level="error",
                data={"mode": previous, "error": repr(exc)},
                logger_name="mode_host.modes",
            )
            self._discard(prior)
            self._persist(None)
            self.events.emit(MODE_CHANGED, None)
            return None
        self._active = previous
        return previous

    def _persist(self, value: Optional[str]) -> Optional[StatePersistError]:
        try:
            self.store.set(self.config.state_key, value)
        except Exception as exc:
            error = StatePersistError(self.config.state_key, str(exc) or type(exc).__name__)
            error.__cause__ = exc
            telemetry.record_event(
                "mode.persist_failed",
                level="error",
                data={"key": self.config.state_key, "value": value or "-", "error": repr(exc)},
                logger_name="mode_host.modes",
            )
            return error
        return None

    def _teardown(self, mode: Mode) -> None:
        self._active = None
        self._discard(mode)
        telemetry.record_event(
            "mode.deactivate",
            data={"mode": mode.id},
            logger_name="mode_host.modes",
        )

    def _discard(self, mode: Mode) -> None:
        try:
            mode.deactivate()
        except Exception as exc:
            telemetry.record_event(
                "mode.deactivate_failed",
                level="error",
                data={"mode": mode.id, "error": repr(exc)},
                logger_name="mode_host.modes",
            )
        self.registrar.release(mode.id)

    def _environment(self, mode: Mode) -> ModeEnvironment:
        return ModeEnvironment(
            mode_id=mode.id,
            store=self.store,
            commands=CommandScope(self.registrar, mode.id),
            subscriptions=self.subscriptions,
            events=self.events,
            status=self.status_bar.item(mode.id, mode.name),
        )

    def _settle(self) -> None:
        self._state = (
            ActivationState.ACTIVE if self._active is not None else ActivationState.IDLE
        )

    def _refuse(
        self, status: str, mode_id: Optional[str], error: ModeHostError
    ) -> TransitionResult:
        telemetry.record_event(
            f"mode.{status}",
            level="warning",
            data={"mode": mode_id or "-", "state": self._state.value},
            logger_name="mode_host.modes",
        )
        return TransitionResult(
            ok=False,
            status=status,
            mode_id=mode_id,
            message=str(error),
            error=error,
        )


__all__ = ["ActivationState", "ModeManager"]
