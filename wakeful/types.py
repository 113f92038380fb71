"""
Shared record types for wakeful.

Observations are the atomic unit of agent memory. Storage converts rows
into these dataclasses at the adapter edge; everything downstream of the
store (scoring, lenses, ordering, presentation) works on typed records only.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set

# === Shared Utility Functions ===


def utc_now() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as an ISO string in UTC (None passes through)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    # Fixed-width so stored timestamps sort lexicographically
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_datetime(s: Optional[str]) -> Optional[datetime]:
    """Parse an ISO datetime string, assuming UTC when no offset is given."""
    if not s:
        return None
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# === Enums ===


class ObservationKind(str, Enum):
    """Known observation kinds. The vocabulary is open: unknown kinds are stored as-is."""

    PROJECT = "project"
    RELATIONAL = "relational"
    EMOTIONAL = "emotional"
    IDENTITY = "identity"
    CORRECTION = "correction"
    SYSTEM = "system"
    SYSTEM_TEST = "system_test"
    BEHAVIOURAL = "behavioural"


# Kinds matched by the operational lens
OPERATIONAL_KINDS = frozenset(
    k.value
    for k in (
        ObservationKind.IDENTITY,
        ObservationKind.SYSTEM,
        ObservationKind.CORRECTION,
        ObservationKind.SYSTEM_TEST,
    )
)


class ObservationStatus(str, Enum):
    """Lifecycle status. A NULL status in storage is treated as ACTIVE."""

    ACTIVE = "active"
    SUPERSEDED = "superseded"


class LensType(str, Enum):
    """Query-time filter categories."""

    RELATIONAL = "relational"
    PROJECT = "project"
    OPERATIONAL = "operational"
    EMOTIONAL = "emotional"
    PLATFORM = "platform"


VALID_LENS_TYPES = frozenset(lt.value for lt in LensType)


# === Errors ===


class ObservationNotFoundError(LookupError):
    """Raised when a mutation targets an id that does not exist (or is deleted)."""

    def __init__(self, observation_id: str):
        self.observation_id = observation_id
        super().__init__(f"Observation not found: {observation_id}")


# === Records ===


@dataclass
class Observation:
    """A single persisted memory record for an agent."""

    id: str
    agent_id: str
    author: str
    perspective: str
    kind: str
    content: str
    salience: int = 0
    # Emotion intensities, 0-100 each, independent of one another
    emotion_intimacy: int = 0
    emotion_conflict: int = 0
    emotion_joy: int = 0
    emotion_fear: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_accessed: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    status: Optional[str] = ObservationStatus.ACTIVE.value
    superseded_by: Optional[str] = None
    pinned: bool = False
    source_platform: Optional[str] = None
    source_ref: Optional[str] = None

    @property
    def emotion_total(self) -> int:
        return (
            self.emotion_intimacy + self.emotion_conflict + self.emotion_joy + self.emotion_fear
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "agent_id": self.agent_id,
            "author": self.author,
            "perspective": self.perspective,
            "kind": self.kind,
            "content": self.content,
            "salience": self.salience,
            "emotion_intimacy": self.emotion_intimacy,
            "emotion_conflict": self.emotion_conflict,
            "emotion_joy": self.emotion_joy,
            "emotion_fear": self.emotion_fear,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
            "last_accessed": to_iso(self.last_accessed),
            "deleted_at": to_iso(self.deleted_at),
            "status": self.status,
            "superseded_by": self.superseded_by,
            "pinned": self.pinned,
            "source_platform": self.source_platform,
            "source_ref": self.source_ref,
        }


@dataclass(frozen=True)
class Lens:
    """A parsed lens predicate. Never persisted."""

    type: str
    target: Optional[str] = None
    negated: bool = False

    def __str__(self) -> str:
        prefix = "-" if self.negated else ""
        suffix = f":{self.target}" if self.target else ""
        return f"{prefix}{self.type}{suffix}"


@dataclass
class ScoredObservation:
    """An observation annotated with per-request derived scores."""

    observation: Observation
    decayed_salience: int
    hot_score: float
    why_loaded: Optional[List[str]] = None

    @property
    def id(self) -> str:
        return self.observation.id

    @property
    def created_at(self) -> Optional[datetime]:
        return self.observation.created_at

    def with_reasons(self, reasons: List[str]) -> "ScoredObservation":
        return replace(self, why_loaded=list(reasons))

    def to_dict(self) -> Dict[str, Any]:
        data = self.observation.to_dict()
        data["decayed_salience"] = self.decayed_salience
        data["hot_score"] = self.hot_score
        if self.why_loaded is not None:
            data["why_loaded"] = self.why_loaded
        return data


@dataclass
class WakeTiers:
    """Result of one wake retrieval: the three tiers plus provenance and diagnostics."""

    agent_id: str
    recent: List[ScoredObservation] = field(default_factory=list)
    salient: List[ScoredObservation] = field(default_factory=list)
    hot: List[ScoredObservation] = field(default_factory=list)
    lenses: List[Lens] = field(default_factory=list)
    recent_query_ids: Set[str] = field(default_factory=set)
    salient_query_ids: Set[str] = field(default_factory=set)
    critical_query_ids: Set[str] = field(default_factory=set)
    violations: List[str] = field(default_factory=list)
    reinforced: int = 0
    generated_at: Optional[datetime] = None

    def loaded(self) -> Dict[str, ScoredObservation]:
        """All records present in any tier, keyed by id."""
        loaded: Dict[str, ScoredObservation] = {}
        for scored in (*self.recent, *self.salient, *self.hot):
            loaded.setdefault(scored.id, scored)
        return loaded
