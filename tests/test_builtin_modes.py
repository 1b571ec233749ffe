from __future__ import annotations

import asyncio

from mode_host.host import DOCUMENT_CHANGED, DocumentChange
from mode_host.modes import ModeManager
from mode_host.modes.builtin import LineLengthMode, PositionMode, RecordsMode, default_modes
from mode_host.storage import MemoryStore


def make_manager(*modes, store: MemoryStore | None = None) -> ModeManager:
    manager = ModeManager(store=store or MemoryStore())
    for mode in modes:
        manager.register(mode)
    return manager


def test_default_modes_have_unique_ids() -> None:
    ids = [mode.id for mode in default_modes()]

    assert ids == ["position", "linelength", "records"]


def test_position_mode_updates_status_item() -> None:
    manager = make_manager(PositionMode())
    asyncio.run(manager.activate("position"))

    manager.dispatch(9, 0)

    item = manager.status_bar.item("position")
    assert item.visible
    assert item.text == "Ln 10, Col 1"
    assert manager.status_bar.render() == "Ln 10, Col 1"


def test_deactivated_mode_hides_its_indicator() -> None:
    manager = make_manager(PositionMode(), RecordsMode())

    async def scenario() -> None:
        await manager.activate("position")
        await manager.activate("records")

    asyncio.run(scenario())

    visible = [item.owner for item in manager.status_bar.visible_items()]
    assert visible == ["records"]


def test_line_length_classification() -> None:
    mode = LineLengthMode(limit=80)

    assert mode.classify(10) == "ok"
    assert mode.classify(75) == "near"
    assert mode.classify(81) == "over"
    assert mode.classify(101) == "far"


def test_line_length_tracks_documents_while_active() -> None:
    mode = LineLengthMode(limit=10)
    manager = make_manager(mode)

    async def scenario() -> None:
        await manager.activate("linelength")
        manager.events.emit(
            DOCUMENT_CHANGED, DocumentChange(text="short\n" + "x" * 20 + "\nok")
        )
        assert mode.long_lines == [1]

        manager.dispatch(1, 15)
        assert mode.severity == "over"
        assert manager.status_bar.item("linelength").text == "Col 16/10 [over] (1 long)"

        await manager.deactivate_all()

    asyncio.run(scenario())

    assert manager.events.subscriber_count(DOCUMENT_CHANGED) == 0
    assert mode.long_lines == []


def test_line_length_configure_command_persists_limit() -> None:
    store = MemoryStore()
    manager = make_manager(LineLengthMode(), store=store)
    asyncio.run(manager.activate("linelength"))

    manager.registrar.table.execute("linelength.configure", 100)

    assert store.get("mode_host.linelength.limit") == 100


def test_records_persist_across_activations() -> None:
    store = MemoryStore()
    records = RecordsMode()
    manager = make_manager(records, PositionMode(), store=store)

    async def scenario() -> None:
        await manager.activate("records")
        manager.dispatch(41, 7)
        manager.dispatch(3, 12)
        await manager.activate("position")
        records.records.max_line = 0
        await manager.activate("records")

    asyncio.run(scenario())

    assert records.records.max_line == 41
    assert records.records.max_column == 12
    assert manager.registrar.table.execute("records.show") == "Max line 42, max column 13"


def test_records_reset_command() -> None:
    store = MemoryStore()
    manager = make_manager(RecordsMode(), store=store)
    asyncio.run(manager.activate("records"))
    manager.dispatch(5, 5)

    manager.registrar.table.execute("records.reset")

    assert store.get("mode_host.records.records") == {"max_line": 0, "max_column": 0}
    assert manager.status_bar.item("records").text == "Max: L1, C1"
