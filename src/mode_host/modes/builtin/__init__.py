"""Small modes shipped with the host."""

from .line_length import LineLengthMode
from .position import PositionMode
from .records import Records, RecordsMode


def default_modes() -> list:
    return [PositionMode(), LineLengthMode(), RecordsMode()]


__all__ = [
    "LineLengthMode",
    "PositionMode",
    "Records",
    "RecordsMode",
    "default_modes",
]
