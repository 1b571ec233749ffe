"""Host event bus and disposable bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Protocol

from mode_host.runtime import telemetry

EDITOR_CHANGED = "editor.changed"
DOCUMENT_CHANGED = "document.changed"
MODE_CHANGED = "mode.changed"
STATUS_CHANGED = "status.changed"

Callback = Callable[[object], None]


class Disposable(Protocol):
    def dispose(self) -> None:
        ...


@dataclass(slots=True)
class DocumentChange:
    """Payload for ``document.changed``."""

    text: str
    document: str = "untitled"
    version: int = 0

    @property
    def lines(self) -> list[str]:
        return self.text.split("\n")


@dataclass(slots=True)
class Subscription:
    """Handle removing one callback from the bus when disposed."""

    bus: "HostEventBus"
    event: str
    callback: Callback
    disposed: bool = False

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        self.bus.unsubscribe(self.event, self.callback)


class HostEventBus:
    """Minimal event bus carrying host notifications to interested modes.

    A failing subscriber is logged and skipped so one mode cannot starve the
    others of notifications.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Callback]] = {}

    def subscribe(self, event: str, callback: Callback) -> Subscription:
        self._subscribers.setdefault(event, []).append(callback)
        return Subscription(bus=self, event=event, callback=callback)

    def unsubscribe(self, event: str, callback: Callback) -> None:
        callbacks = self._subscribers.get(event)
        if not callbacks:
            return
        try:
            callbacks.remove(callback)
        except ValueError:
            return
        if not callbacks:
            self._subscribers.pop(event, None)

    def subscriber_count(self, event: Optional[str] = None) -> int:
        if event is not None:
            return len(self._subscribers.get(event, ()))
        return sum(len(callbacks) for callbacks in self._subscribers.values())

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in list(self._subscribers.get(event, ())):
            try:
                callback(payload)
            except Exception as exc:
                telemetry.record_event(
                    "bus.subscriber_failed",
                    level="error",
                    data={"bus_event": event, "error": repr(exc)},
                    logger_name="mode_host.host",
                )


class DisposableBag:
    """Collects disposables and releases them together, newest first."""

    def __init__(self) -> None:
        self._items: List[Disposable] = []

    def __len__(self) -> int:
        return len(self._items)

    def add(self, item: Disposable) -> Disposable:
        self._items.append(item)
        return item

    def dispose(self) -> None:
        items, self._items = self._items, []
        for item in reversed(items):
            try:
                item.dispose()
            except Exception as exc:
                telemetry.record_event(
                    "dispose.failed",
                    level="error",
                    data={"item": repr(item), "error": repr(exc)},
                    logger_name="mode_host.host",
                )


__all__ = [
    "EDITOR_CHANGED",
    "DOCUMENT_CHANGED",
    "MODE_CHANGED",
    "STATUS_CHANGED",
    "Disposable",
    "DisposableBag",
    "DocumentChange",
    "HostEventBus",
    "Subscription",
]
