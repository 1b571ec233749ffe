from __future__ import annotations

import json
from pathlib import Path

import pytest

from mode_host.host import DisposableBag, HostEventBus
from mode_host.runtime import telemetry
from mode_host.runtime.config import ACTIVE_MODE_KEY, FALLBACK_MODE_ID, HostConfig
from mode_host.storage import JsonFileStore, MemoryStore


def test_memory_store_none_removes_key() -> None:
    store = MemoryStore({"a": 1})

    store.set("a", None)

    assert "a" not in store
    assert store.get("a", "missing") == "missing"


def test_json_store_survives_reload(tmp_path: Path) -> None:
    path = tmp_path / "state" / "host.json"
    store = JsonFileStore(path)

    store.set(ACTIVE_MODE_KEY, "records")
    reloaded = JsonFileStore(path)

    assert reloaded.get(ACTIVE_MODE_KEY) == "records"
    assert json.loads(path.read_text(encoding="utf-8")) == {ACTIVE_MODE_KEY: "records"}
    assert list(path.parent.glob("*.tmp")) == []


def test_json_store_ignores_malformed_file(tmp_path: Path) -> None:
    path = tmp_path / "host.json"
    path.write_text("{not json", encoding="utf-8")

    store = JsonFileStore(path)

    assert store.snapshot() == {}
    store.set("k", 1)
    assert json.loads(path.read_text(encoding="utf-8")) == {"k": 1}


def test_host_config_from_env() -> None:
    config = HostConfig.from_env(
        {
            "MODE_HOST_DEFAULT_MODE": "records",
            "MODE_HOST_STATE_FILE": "/tmp/host.json",
            "MODE_HOST_BUSY_BACKOFF_MS": "oops",
        }
    )

    assert config.default_mode == "records"
    assert config.fallback_mode == FALLBACK_MODE_ID
    assert config.state_file == Path("/tmp/host.json")
    assert config.busy_backoff_ms == 10


def test_host_config_overrides_skip_none() -> None:
    config = HostConfig(default_mode="records")

    updated = config.with_overrides(default_mode=None, fallback_mode="records")

    assert updated.default_mode == "records"
    assert updated.fallback_mode == "records"


def test_host_config_validation() -> None:
    with pytest.raises(ValueError):
        HostConfig(busy_backoff_ms=0)
    with pytest.raises(ValueError):
        HostConfig(fallback_mode="")


def test_event_bus_isolates_failing_subscriber() -> None:
    bus = HostEventBus()
    received: list[object] = []

    def explode(_payload: object) -> None:
        raise RuntimeError("bad subscriber")

    bus.subscribe("document.changed", explode)
    bus.subscribe("document.changed", received.append)
    bus.emit("document.changed", "payload")

    assert received == ["payload"]


def test_disposable_bag_disposes_newest_first() -> None:
    bus = HostEventBus()
    bag = DisposableBag()
    bag.add(bus.subscribe("a", lambda _: None))
    bag.add(bus.subscribe("b", lambda _: None))

    bag.dispose()

    assert bus.subscriber_count() == 0
    assert len(bag) == 0


def test_telemetry_rejects_config_and_preset_together() -> None:
    with pytest.raises(ValueError):
        telemetry.configure(config=object(), preset="quiet")


def test_json_store_failed_write_keeps_previous_state(tmp_path: Path) -> None:
    path = tmp_path / "host.json"
    store = JsonFileStore(path)
    store.set("k", 1)

    with pytest.raises(TypeError):
        store.set("k", {1, 2})

    assert store.get("k") == 1
    assert json.loads(path.read_text(encoding="utf-8")) == {"k": 1}
    assert list(tmp_path.glob("*.tmp")) == []
