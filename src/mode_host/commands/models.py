"""Dataclasses describing host commands and the handles that unbind them."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Mapping, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .table import CommandTable


@dataclass(frozen=True, slots=True)
class CommandRef:
    """Callable bound to a command id in the host command table."""

    id: str
    handler: Callable[..., object]
    title: str = ""
    owner: Optional[str] = None
    metadata: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("CommandRef id cannot be empty")
        if not callable(self.handler):
            raise TypeError("handler must be callable")
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))
        if not self.title:
            object.__setattr__(self, "title", self.id)

    def __call__(self, *args: object, **kwargs: object) -> object:
        return self.handler(*args, **kwargs)


@dataclass(slots=True)
class CommandHandle:
    """Disposable returned for every successful registration."""

    command: CommandRef
    table: "CommandTable"
    disposed: bool = False

    @property
    def id(self) -> str:
        return self.command.id

    @property
    def owner(self) -> Optional[str]:
        return self.command.owner

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        self.table.unregister(self.command.id)


__all__ = ["CommandRef", "CommandHandle"]
