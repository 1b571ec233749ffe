from __future__ import annotations

import asyncio
from typing import List, Optional

from mode_host.host import EDITOR_CHANGED
from mode_host.modes import Mode, ModeEnvironment
from mode_host.modes.builtin import PositionMode, RecordsMode
from mode_host.runtime.config import ACTIVE_MODE_KEY, NO_MODE_SENTINEL, HostConfig
from mode_host.session import DISABLE_ALL_COMMAND, SELECT_MODE_COMMAND, Session
from mode_host.storage import MemoryStore


class BrokenMode(Mode):
    def __init__(self, mode_id: str) -> None:
        super().__init__()
        self.id = mode_id
        self.name = mode_id.title()
        self.attempts = 0

    def activate(self, env: ModeEnvironment) -> None:
        self.attempts += 1
        raise RuntimeError("no display")


def make_session(
    *modes: Mode,
    persisted: Optional[str] = None,
    default_mode: Optional[str] = None,
    fallback_mode: str = "position",
    notices: Optional[List[str]] = None,
) -> Session:
    store = MemoryStore({ACTIVE_MODE_KEY: persisted} if persisted else {})
    config = HostConfig(default_mode=default_mode, fallback_mode=fallback_mode)
    sink = notices if notices is not None else []
    return Session.create(
        modes or (PositionMode(), RecordsMode()),
        config=config,
        store=store,
        notify=sink.append,
    )


def active_id(session: Session) -> Optional[str]:
    active = session.manager.get_active()
    return active.id if active else None


def test_start_without_state_uses_fallback_mode() -> None:
    session = make_session()

    result = asyncio.run(session.start())

    assert result.ok
    assert active_id(session) == "position"
    assert session.store.get(ACTIVE_MODE_KEY) == "position"


def test_start_restores_persisted_mode() -> None:
    session = make_session(persisted="records")

    asyncio.run(session.start())

    assert active_id(session) == "records"


def test_start_prefers_configured_default_over_fallback() -> None:
    session = make_session(default_mode="records")

    asyncio.run(session.start())

    assert active_id(session) == "records"


def test_unknown_persisted_mode_uses_default() -> None:
    session = make_session(persisted="ghost", default_mode="records")

    assert session.initial_mode() == "records"


def test_unregistered_default_uses_fallback() -> None:
    session = make_session(default_mode="ghost")

    assert session.initial_mode() == "position"


def test_persisted_sentinel_restores_idle() -> None:
    session = make_session(persisted=NO_MODE_SENTINEL, default_mode="records")

    result = asyncio.run(session.start())

    assert result.ok and result.status == "disabled"
    assert session.manager.get_active() is None
    assert session.store.get(ACTIVE_MODE_KEY) == NO_MODE_SENTINEL


def test_failed_restore_tries_fallback_once() -> None:
    notices: List[str] = []
    broken = BrokenMode("broken")
    session = make_session(broken, PositionMode(), persisted="broken", notices=notices)

    result = asyncio.run(session.start())

    assert result.ok
    assert active_id(session) == "position"
    assert broken.attempts == 1
    assert notices == []


def test_double_failure_leaves_idle_with_one_diagnostic() -> None:
    notices: List[str] = []
    broken = BrokenMode("broken")
    backup = BrokenMode("backup")
    session = make_session(
        broken, backup, persisted="broken", fallback_mode="backup", notices=notices
    )

    result = asyncio.run(session.start())

    assert not result.ok
    assert session.manager.get_active() is None
    assert broken.attempts == 1
    assert backup.attempts == 1
    assert len(notices) == 1
    assert session.diagnostics == notices


def test_failing_fallback_is_not_retried() -> None:
    notices: List[str] = []
    backup = BrokenMode("backup")
    session = make_session(backup, fallback_mode="backup", notices=notices)

    asyncio.run(session.start())

    assert backup.attempts == 1
    assert len(notices) == 1


def test_global_commands_drive_selection() -> None:
    session = make_session()
    table = session.manager.registrar.table

    async def scenario() -> None:
        await session.start()
        result = await table.execute(SELECT_MODE_COMMAND, "records")
        assert result.ok
        assert active_id(session) == "records"

        disabled = await table.execute(DISABLE_ALL_COMMAND)
        assert disabled.ok
        assert session.manager.get_active() is None

    asyncio.run(scenario())

    assert session.store.get(ACTIVE_MODE_KEY) == NO_MODE_SENTINEL


def test_selection_lists_modes_and_disable_entry() -> None:
    session = make_session()

    asyncio.run(session.start())
    choices = session.selection.choices()

    assert [choice.id for choice in choices] == ["position", "records", NO_MODE_SENTINEL]
    assert [choice.active for choice in choices] == [True, False, False]


def test_selection_notifies_on_failure() -> None:
    notices: List[str] = []
    session = make_session(notices=notices)

    result = asyncio.run(session.selection.select("ghost"))

    assert result.status == "unknown_mode"
    assert notices == ["Unknown mode 'ghost'"]


def test_stop_releases_everything_and_keeps_persisted_mode() -> None:
    session = make_session(persisted="records")

    async def scenario() -> None:
        await session.start()
        await session.stop()

    asyncio.run(scenario())

    assert session.manager.get_active() is None
    assert session.manager.registrar.registered_ids() == frozenset()
    assert len(session.manager.subscriptions) == 0
    assert session.store.get(ACTIVE_MODE_KEY) == "records"
    assert not session.started


def test_session_subscriptions_released_on_stop() -> None:
    class WatchingMode(Mode):
        id = "watching"
        name = "Watching"

        def __init__(self) -> None:
            super().__init__()
            self.editors: List[object] = []

        def activate(self, env: ModeEnvironment) -> None:
            super().activate(env)
            env.subscribe(env.events.subscribe(EDITOR_CHANGED, self.editors.append))

    mode = WatchingMode()
    session = make_session(mode, persisted="watching")

    async def scenario() -> None:
        await session.start()
        session.dispatcher.editor_changed("main.py")
        await session.stop()
        session.dispatcher.editor_changed("other.py")

    asyncio.run(scenario())

    assert mode.editors == ["main.py"]
    assert session.events.subscriber_count() == 0
