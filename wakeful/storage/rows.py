"""Row deserializers for wakeful storage.

The only place untyped ``sqlite3.Row`` values become ``Observation``
instances. Nothing past the storage edge reads rows by column name.
"""

import sqlite3
from typing import Any

from ..types import Observation, ObservationStatus, parse_datetime


def _safe_get(row: sqlite3.Row, key: str, default: Any = None) -> Any:
    """Safely get value from row, returning default if the column is missing or NULL."""
    try:
        value = row[key]
        return value if value is not None else default
    except (IndexError, KeyError):
        return default


def row_to_observation(row: sqlite3.Row) -> Observation:
    """Convert a row to an Observation."""
    return Observation(
        id=row["id"],
        agent_id=row["agent_id"],
        author=row["author"],
        perspective=row["perspective"],
        kind=row["kind"],
        content=row["content"],
        salience=int(_safe_get(row, "salience", 0)),
        emotion_intimacy=int(_safe_get(row, "emotion_intimacy", 0)),
        emotion_conflict=int(_safe_get(row, "emotion_conflict", 0)),
        emotion_joy=int(_safe_get(row, "emotion_joy", 0)),
        emotion_fear=int(_safe_get(row, "emotion_fear", 0)),
        created_at=parse_datetime(_safe_get(row, "created_at")),
        updated_at=parse_datetime(_safe_get(row, "updated_at")),
        last_accessed=parse_datetime(_safe_get(row, "last_accessed")),
        deleted_at=parse_datetime(_safe_get(row, "deleted_at")),
        status=_safe_get(row, "status", ObservationStatus.ACTIVE.value),
        superseded_by=_safe_get(row, "superseded_by"),
        pinned=bool(_safe_get(row, "pinned", 0)),
        source_platform=_safe_get(row, "source_platform"),
        source_ref=_safe_get(row, "source_ref"),
    )
