import pytest

from mode_host.commands import (
    COLLISION_HISTORY,
    GLOBAL_OWNER,
    CommandConflictError,
    CommandRef,
    CommandRegistrar,
    CommandTable,
)
from mode_host.errors import CommandCollisionError


def make_command(command_id: str = "demo.run", owner: str | None = None) -> CommandRef:
    return CommandRef(id=command_id, handler=lambda *args, **kwargs: command_id, owner=owner)


def test_table_register_and_execute() -> None:
    table = CommandTable()

    handle = table.register(make_command())

    assert "demo.run" in table
    assert handle.id == "demo.run"
    assert table.execute("demo.run") == "demo.run"
    assert len(table) == 1


def test_table_rejects_duplicate_id() -> None:
    table = CommandTable()
    table.register(make_command(owner="a"))

    with pytest.raises(CommandConflictError) as excinfo:
        table.register(make_command(owner="b"))

    assert excinfo.value.existing.owner == "a"
    assert isinstance(excinfo.value, CommandCollisionError)


def test_handle_dispose_is_idempotent() -> None:
    table = CommandTable()
    handle = table.register(make_command())

    handle.dispose()
    handle.dispose()

    assert "demo.run" not in table
    assert len(table) == 0


def test_command_ref_validation() -> None:
    with pytest.raises(ValueError):
        CommandRef(id="", handler=lambda: None)
    with pytest.raises(TypeError):
        CommandRef(id="x", handler="not callable")  # type: ignore[arg-type]

    assert CommandRef(id="x", handler=lambda: None).title == "x"


def test_register_once_skips_second_registration() -> None:
    registrar = CommandRegistrar()

    first = registrar.register_once("demo.run", lambda: 1, owner="a")
    second = registrar.register_once("demo.run", lambda: 2, owner="b")

    assert first is not None
    assert second is None
    assert registrar.table.execute("demo.run") == 1
    assert [error.command_id for error in registrar.collisions] == ["demo.run"]
    assert registrar.collisions[0].owner == "b"


def test_register_once_reports_ids_bound_outside_registrar() -> None:
    table = CommandTable()
    table.register(make_command("host.builtin"))
    registrar = CommandRegistrar(table)

    assert registrar.register_once("host.builtin", lambda: None, owner="a") is None
    assert not registrar.is_registered("host.builtin")
    assert len(registrar.collisions) == 1


def test_release_owner_only_drops_its_commands() -> None:
    registrar = CommandRegistrar()
    registrar.register_once("a.one", lambda: None, owner="a")
    registrar.register_once("a.two", lambda: None, owner="a")
    registrar.register_once("b.one", lambda: None, owner="b")

    released = registrar.release("a")

    assert released == 2
    assert registrar.registered_ids() == {"b.one"}
    assert registrar.table.ids() == {"b.one"}
    assert registrar.release("a") == 0


def test_released_id_can_be_registered_again() -> None:
    registrar = CommandRegistrar()
    registrar.register_once("shared", lambda: "a", owner="a")
    registrar.release("a")

    handle = registrar.register_once("shared", lambda: "b", owner="b")

    assert handle is not None
    assert registrar.table.execute("shared") == "b"


def test_release_all_includes_global_commands() -> None:
    registrar = CommandRegistrar()
    registrar.register_once("global.pick", lambda: None)
    registrar.register_once("a.one", lambda: None, owner="a")

    assert registrar.ids_for(None) == ("global.pick",)
    assert registrar.ids_for(GLOBAL_OWNER) == ("global.pick",)

    assert registrar.release_all() == 2
    assert registrar.registered_ids() == frozenset()
    assert len(registrar.table) == 0


def test_table_stats_lists_owners() -> None:
    registrar = CommandRegistrar()
    registrar.register_once("a.one", lambda: None, owner="a")
    registrar.register_once("b.one", lambda: None, owner="b")

    stats = registrar.table.stats()

    assert stats.command_count == 2
    assert stats.owners == ("a", "b")


def test_collision_history_keeps_most_recent() -> None:
    registrar = CommandRegistrar()
    registrar.register_once("shared", lambda: None, owner="a")

    for index in range(COLLISION_HISTORY + 5):
        registrar.register_once("shared", lambda: None, owner=f"m{index}")

    assert len(registrar.collisions) == COLLISION_HISTORY
    assert registrar.collisions[0].owner == "m5"
    assert registrar.collisions[-1].owner == f"m{COLLISION_HISTORY + 4}"
