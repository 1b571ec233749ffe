"""Host command table and the de-duplicating registrar on top of it."""

from .models import CommandHandle, CommandRef
from .registrar import COLLISION_HISTORY, GLOBAL_OWNER, CommandRegistrar, CommandScope
from .table import CommandConflictError, CommandTable, TableStats

__all__ = [
    "CommandHandle",
    "CommandRef",
    "CommandRegistrar",
    "CommandScope",
    "CommandTable",
    "CommandConflictError",
    "TableStats",
    "COLLISION_HISTORY",
    "GLOBAL_OWNER",
]
