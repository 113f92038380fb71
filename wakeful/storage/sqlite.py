"""SQLite storage backend for wakeful.

Local-first storage for observations and soulfiles. Each public method
opens its own connection and commits its own transaction; multi-step
sequences (the three wake queries, per-record reinforcement) are
deliberately not wrapped in one transaction.
"""

import contextlib
import logging
import re
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..config import default_db_path
from ..types import Observation, ObservationStatus, to_iso, utc_now
from .rows import row_to_observation
from .schema import init_db

logger = logging.getLogger(__name__)

# Active-record predicate shared by every active-facing query
ACTIVE_FILTER = "deleted_at IS NULL AND (status = 'active' OR status IS NULL)"

_COLUMNS = (
    "id",
    "agent_id",
    "author",
    "perspective",
    "kind",
    "content",
    "salience",
    "emotion_intimacy",
    "emotion_conflict",
    "emotion_joy",
    "emotion_fear",
    "created_at",
    "updated_at",
    "last_accessed",
    "deleted_at",
    "status",
    "superseded_by",
    "pinned",
    "source_platform",
    "source_ref",
)


def escape_like_pattern(query: str) -> str:
    """Escape SQL LIKE special characters (backslash is the escape char)."""
    return re.sub(r"([%_\\])", r"\\\1", query)


class _SQLiteBase:
    """Connection handling shared by the observation and soulfile stores."""

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.db_path = Path(db_path).expanduser() if db_path else default_db_path()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            init_db(conn)

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=5000")
        return conn

    @contextlib.contextmanager
    def _connect(self):
        """Context manager that handles the transaction AND closes the connection.

        - Commit on success
        - Rollback on exception (the exception propagates)
        - Close in all cases
        """
        conn = self._get_conn()
        try:
            yield conn
            conn.commit()
        except Exception as e:
            logger.debug(f"Transaction failed, rolling back: {e}")
            conn.rollback()
            raise
        finally:
            conn.close()

    def ping(self) -> bool:
        """Cheap connectivity check used by health endpoints."""
        with self._connect() as conn:
            conn.execute("SELECT 1").fetchone()
        return True


class SQLiteObservationStore(_SQLiteBase):
    """SQLite-backed observation store."""

    # === Reads ===

    def get(self, observation_id: str, include_deleted: bool = False) -> Optional[Observation]:
        sql = "SELECT * FROM observations WHERE id = ?"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        with self._connect() as conn:
            row = conn.execute(sql, (observation_id,)).fetchone()
        return row_to_observation(row) if row else None

    def _fetch(self, sql: str, params: tuple) -> List[Observation]:
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [row_to_observation(row) for row in rows]

    def fetch_recent(self, agent_id: str, limit: int) -> List[Observation]:
        return self._fetch(
            f"""SELECT * FROM observations
               WHERE agent_id = ? AND {ACTIVE_FILTER}
               ORDER BY created_at DESC, id ASC
               LIMIT ?""",
            (agent_id, limit),
        )

    def fetch_salient(self, agent_id: str, limit: int) -> List[Observation]:
        return self._fetch(
            f"""SELECT * FROM observations
               WHERE agent_id = ? AND {ACTIVE_FILTER}
               ORDER BY salience DESC, created_at DESC, id ASC
               LIMIT ?""",
            (agent_id, limit),
        )

    def fetch_critical(self, agent_id: str, limit: int, threshold: int) -> List[Observation]:
        return self._fetch(
            f"""SELECT * FROM observations
               WHERE agent_id = ? AND {ACTIVE_FILTER}
                 AND (salience >= ? OR kind = 'correction')
               ORDER BY salience DESC, created_at DESC, id ASC
               LIMIT ?""",
            (agent_id, threshold, limit),
        )

    def list_superseded(self, agent_id: str, limit: int) -> List[Observation]:
        return self._fetch(
            """SELECT * FROM observations
               WHERE agent_id = ? AND deleted_at IS NULL AND status = 'superseded'
               ORDER BY updated_at DESC, id ASC
               LIMIT ?""",
            (agent_id, limit),
        )

    def search(
        self,
        agent_id: str,
        query: str = "",
        kind: Optional[str] = None,
        min_salience: Optional[int] = None,
        max_salience: Optional[int] = None,
        include_superseded: bool = False,
        limit: int = 20,
    ) -> List[Observation]:
        sql = "SELECT * FROM observations WHERE agent_id = ? AND deleted_at IS NULL"
        params: list = [agent_id]

        if not include_superseded:
            sql += " AND (status IS NULL OR status = 'active')"
        if query:
            sql += " AND content LIKE ? ESCAPE '\\'"
            params.append(f"%{escape_like_pattern(query)}%")
        if kind:
            sql += " AND kind = ?"
            params.append(kind)
        if min_salience is not None:
            sql += " AND salience >= ?"
            params.append(min_salience)
        if max_salience is not None:
            sql += " AND salience <= ?"
            params.append(max_salience)

        sql += " ORDER BY salience DESC, created_at DESC, id ASC LIMIT ?"
        params.append(limit)
        return self._fetch(sql, tuple(params))

    def fetch_anniversaries(
        self, agent_id: str, month_day: str, before_year: int, limit: int
    ) -> List[Observation]:
        # created_at is stored as fixed-width ISO text: YYYY-MM-DDTHH:...
        return self._fetch(
            """SELECT * FROM observations
               WHERE agent_id = ? AND deleted_at IS NULL
                 AND substr(created_at, 6, 5) = ?
                 AND CAST(substr(created_at, 1, 4) AS INTEGER) < ?
               ORDER BY created_at DESC, id ASC
               LIMIT ?""",
            (agent_id, month_day, before_year, limit),
        )

    # === Writes ===

    def insert(self, observation: Observation) -> str:
        obs = observation
        values = (
            obs.id,
            obs.agent_id,
            obs.author,
            obs.perspective,
            obs.kind,
            obs.content,
            obs.salience,
            obs.emotion_intimacy,
            obs.emotion_conflict,
            obs.emotion_joy,
            obs.emotion_fear,
            to_iso(obs.created_at or utc_now()),
            to_iso(obs.updated_at or obs.created_at or utc_now()),
            to_iso(obs.last_accessed),
            to_iso(obs.deleted_at),
            obs.status or ObservationStatus.ACTIVE.value,
            obs.superseded_by,
            1 if obs.pinned else 0,
            obs.source_platform,
            obs.source_ref,
        )
        placeholders = ", ".join("?" for _ in _COLUMNS)
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO observations ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
                values,
            )
        logger.debug(f"Inserted observation {obs.id} for {obs.agent_id}")
        return obs.id

    def reinforce(self, observation_ids: Sequence[str], now: datetime, amount: int) -> int:
        """Reinforce each id in its own committed statement.

        A failure partway through leaves earlier updates in place; the error
        propagates to the caller.
        """
        stamp = to_iso(now)
        touched = 0
        for obs_id in observation_ids:
            with self._connect() as conn:
                cursor = conn.execute(
                    f"""UPDATE observations
                       SET salience = MIN(100, salience + ?),
                           last_accessed = ?,
                           updated_at = ?
                       WHERE id = ? AND {ACTIVE_FILTER}""",
                    (amount, stamp, stamp, obs_id),
                )
                touched += cursor.rowcount
        return touched

    def mark_superseded(self, target_id: str, superseded_by: str, now: datetime) -> bool:
        stamp = to_iso(now)
        with self._connect() as conn:
            cursor = conn.execute(
                f"""UPDATE observations
                   SET status = 'superseded', superseded_by = ?, updated_at = ?
                   WHERE id = ? AND {ACTIVE_FILTER}""",
                (superseded_by, stamp, target_id),
            )
        return cursor.rowcount > 0

    def update_fields(
        self,
        observation_id: str,
        now: datetime,
        bump: int,
        content: Optional[str] = None,
        salience: Optional[int] = None,
        emotion_intimacy: Optional[int] = None,
        emotion_conflict: Optional[int] = None,
        emotion_joy: Optional[int] = None,
        emotion_fear: Optional[int] = None,
    ) -> bool:
        stamp = to_iso(now)
        with self._connect() as conn:
            cursor = conn.execute(
                """UPDATE observations
                   SET content = COALESCE(?, content),
                       salience = MAX(0, MIN(100, COALESCE(?, salience) + ?)),
                       emotion_intimacy = COALESCE(?, emotion_intimacy),
                       emotion_conflict = COALESCE(?, emotion_conflict),
                       emotion_joy = COALESCE(?, emotion_joy),
                       emotion_fear = COALESCE(?, emotion_fear),
                       updated_at = ?,
                       last_accessed = ?
                   WHERE id = ? AND deleted_at IS NULL""",
                (
                    content,
                    salience,
                    bump,
                    emotion_intimacy,
                    emotion_conflict,
                    emotion_joy,
                    emotion_fear,
                    stamp,
                    stamp,
                    observation_id,
                ),
            )
        return cursor.rowcount > 0

    def set_pinned(self, observation_id: str, pinned: bool, now: datetime) -> bool:
        stamp = to_iso(now)
        with self._connect() as conn:
            if pinned:
                cursor = conn.execute(
                    """UPDATE observations
                       SET pinned = 1, last_accessed = ?, updated_at = ?
                       WHERE id = ? AND deleted_at IS NULL""",
                    (stamp, stamp, observation_id),
                )
            else:
                cursor = conn.execute(
                    """UPDATE observations
                       SET pinned = 0, updated_at = ?
                       WHERE id = ? AND deleted_at IS NULL""",
                    (stamp, observation_id),
                )
        return cursor.rowcount > 0

    def soft_delete(self, observation_id: str, now: datetime) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE observations SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
                (to_iso(now), observation_id),
            )
        return cursor.rowcount > 0

    def hard_delete(self, observation_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM observations WHERE id = ?", (observation_id,))
        return cursor.rowcount > 0


class SQLiteSoulfileStore(_SQLiteBase):
    """Key-value documents kept in the same SQLite file as observations."""

    def get(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM soulfiles WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def put(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO soulfiles (key, value, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                  updated_at = excluded.updated_at""",
                (key, value, to_iso(utc_now())),
            )

    def delete(self, key: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM soulfiles WHERE key = ?", (key,))
        return cursor.rowcount > 0
