"""Storage backends for wakeful."""

from .base import ObservationStore, SoulfileStore, soulfile_key
from .sqlite import SQLiteObservationStore, SQLiteSoulfileStore, escape_like_pattern

__all__ = [
    "ObservationStore",
    "SoulfileStore",
    "SQLiteObservationStore",
    "SQLiteSoulfileStore",
    "escape_like_pattern",
    "soulfile_key",
]
