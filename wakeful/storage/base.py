"""Storage protocols for wakeful backends.

The retrieval pipeline only needs what ``ObservationStore`` declares:
bounded, ordered range queries over active records and conditional
updates that apply only while a row is still active and not deleted.
SQLiteObservationStore is the bundled implementation.
"""

from datetime import datetime
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from ..types import Observation


@runtime_checkable
class ObservationStore(Protocol):
    """Record store for observations."""

    # === Reads ===

    def get(self, observation_id: str, include_deleted: bool = False) -> Optional[Observation]:
        """Point lookup by id."""
        ...

    def fetch_recent(self, agent_id: str, limit: int) -> List[Observation]:
        """Active records, newest first (created_at DESC, id ASC)."""
        ...

    def fetch_salient(self, agent_id: str, limit: int) -> List[Observation]:
        """Active records by raw salience (salience DESC, created_at DESC, id ASC)."""
        ...

    def fetch_critical(self, agent_id: str, limit: int, threshold: int) -> List[Observation]:
        """Active records with salience >= threshold or kind = correction."""
        ...

    def list_superseded(self, agent_id: str, limit: int) -> List[Observation]:
        """Non-deleted superseded records, most recently superseded first."""
        ...

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
        """Substring search over content with optional filters."""
        ...

    def fetch_anniversaries(
        self, agent_id: str, month_day: str, before_year: int, limit: int
    ) -> List[Observation]:
        """Records created on ``month_day`` (MM-DD) in a year before ``before_year``."""
        ...

    # === Writes ===

    def insert(self, observation: Observation) -> str:
        """Insert a new record; returns its id."""
        ...

    def reinforce(self, observation_ids: Sequence[str], now: datetime, amount: int) -> int:
        """Bump salience (clamped at 100) and refresh last_accessed per id."""
        ...

    def mark_superseded(self, target_id: str, superseded_by: str, now: datetime) -> bool:
        """Conditionally mark an active, non-deleted target as superseded."""
        ...

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
        """Edit a record in place; salience is bumped and clamped to [0, 100]."""
        ...

    def set_pinned(self, observation_id: str, pinned: bool, now: datetime) -> bool:
        """Toggle decay exemption."""
        ...

    def soft_delete(self, observation_id: str, now: datetime) -> bool:
        """Set deleted_at."""
        ...

    def hard_delete(self, observation_id: str) -> bool:
        """Physically remove the row."""
        ...


@runtime_checkable
class SoulfileStore(Protocol):
    """Key-value store for small opaque documents (soulfile text)."""

    def get(self, key: str) -> Optional[str]:
        ...

    def put(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> bool:
        ...


def soulfile_key(agent_id: str) -> str:
    """Key under which an agent's active soulfile is stored."""
    return f"{agent_id}:active"
