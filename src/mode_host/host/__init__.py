"""Host-side plumbing: event bus, status bar and the position dispatcher."""

from .dispatcher import PositionDispatcher
from .events import (
    DOCUMENT_CHANGED,
    EDITOR_CHANGED,
    MODE_CHANGED,
    STATUS_CHANGED,
    Disposable,
    DisposableBag,
    DocumentChange,
    HostEventBus,
    Subscription,
)
from .status import StatusBar, StatusItem

__all__ = [
    "DOCUMENT_CHANGED",
    "EDITOR_CHANGED",
    "MODE_CHANGED",
    "STATUS_CHANGED",
    "Disposable",
    "DisposableBag",
    "DocumentChange",
    "HostEventBus",
    "PositionDispatcher",
    "StatusBar",
    "StatusItem",
    "Subscription",
]
