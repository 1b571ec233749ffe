"""Status bar items that modes use as their visible indicator."""

from __future__ import annotations

from typing import Dict, List, Optional

from .events import STATUS_CHANGED, HostEventBus


class StatusItem:
    def __init__(self, bar: "StatusBar", owner: str, text: str = "") -> None:
        self._bar = bar
        self.owner = owner
        self.text = text
        self.tooltip = ""
        self.command: Optional[str] = None
        self.visible = False

    def show(self, text: Optional[str] = None) -> None:
        if text is not None:
            self.text = text
        self.visible = True
        self._bar.changed(self)

    def hide(self) -> None:
        if not self.visible:
            return
        self.visible = False
        self._bar.changed(self)

    def link(self, command: Optional[str], *, tooltip: str = "") -> None:
        """Bind the command a click on this item runs."""

        self.command = command
        self.tooltip = tooltip

    def set_text(self, text: str, *, tooltip: Optional[str] = None) -> None:
        self.text = text
        if tooltip is not None:
            self.tooltip = tooltip
        if self.visible:
            self._bar.changed(self)


class StatusBar:
    """Owns one ``StatusItem`` per mode and announces changes on the bus."""

    def __init__(self, bus: Optional[HostEventBus] = None) -> None:
        self.bus = bus
        self._items: Dict[str, StatusItem] = {}

    def item(self, owner: str, text: str = "") -> StatusItem:
        existing = self._items.get(owner)
        if existing is None:
            existing = self._items[owner] = StatusItem(self, owner, text)
        return existing

    def visible_items(self) -> List[StatusItem]:
        return [item for item in self._items.values() if item.visible]

    def clicked(self) -> Optional[str]:
        """Command linked to the first visible item, if any."""

        for item in self.visible_items():
            if item.command:
                return item.command
        return None

    def render(self, separator: str = "  |  ") -> str:
        return separator.join(item.text for item in self.visible_items() if item.text)

    def changed(self, item: StatusItem) -> None:
        if self.bus is not None:
            self.bus.emit(STATUS_CHANGED, item)


__all__ = ["StatusBar", "StatusItem"]
