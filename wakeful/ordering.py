"""Deterministic ordering and conflict resolution.

Every ordering a consumer sees goes through ``deterministic_sort``: primary
numeric key, then creation time (newest first), then id ascending. Equal
scores are common (whole-number salience, decay clamped at zero), so the
tie-breaks are what make wake output reproducible.
"""

import functools
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from .config import DEFAULT_LIMITS, WakeLimits
from .scoring import compute_decayed_salience
from .types import Observation, ObservationKind, ScoredObservation

T = TypeVar("T", Observation, ScoredObservation)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _created_ts(item) -> float:
    created: Optional[datetime] = item.created_at
    if created is None:
        return 0.0
    return (created - _EPOCH).total_seconds()


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _tie_break(a, b) -> int:
    # Newer first, then lexicographic id
    by_time = _cmp(_created_ts(b), _created_ts(a))
    if by_time:
        return by_time
    return _cmp(a.id, b.id)


def deterministic_sort(
    items: Iterable[T],
    key: Callable[[T], float],
    descending: bool = True,
) -> List[T]:
    """Total-order sort: ``key`` (asc/desc), then created_at desc, then id asc."""

    def compare(a: T, b: T) -> int:
        ka, kb = key(a), key(b)
        if ka != kb:
            return _cmp(kb, ka) if descending else _cmp(ka, kb)
        return _tie_break(a, b)

    return sorted(items, key=functools.cmp_to_key(compare))


def dedupe_by_id(*result_sets: Iterable[Observation]) -> Dict[str, Observation]:
    """Merge query results into an id-keyed collection.

    Copies of the same id come from the same store read and are
    field-identical, so whichever copy lands first is kept. The mapping is
    treated as unordered; callers must sort before exposing an order.
    """
    merged: Dict[str, Observation] = {}
    for results in result_sets:
        for obs in results:
            merged.setdefault(obs.id, obs)
    return merged


def resolve_conflicts(
    observations: Iterable[Observation],
    now: datetime,
    limits: WakeLimits = DEFAULT_LIMITS,
) -> List[Observation]:
    """Canonical starting order for the pipeline.

    Corrections first; then higher decayed salience, except that records
    within ``conflict_tie_window`` points of each other are treated as tied
    and ordered by creation time (newest first), then id.
    """
    decayed = {}

    def salience_of(obs: Observation) -> int:
        if obs.id not in decayed:
            decayed[obs.id] = compute_decayed_salience(obs, now, limits)
        return decayed[obs.id]

    def compare(a: Observation, b: Observation) -> int:
        a_corr = 1 if a.kind == ObservationKind.CORRECTION.value else 0
        b_corr = 1 if b.kind == ObservationKind.CORRECTION.value else 0
        if a_corr != b_corr:
            return b_corr - a_corr

        sa, sb = salience_of(a), salience_of(b)
        if abs(sb - sa) < limits.conflict_tie_window:
            return _tie_break(a, b)
        return _cmp(sb, sa)

    return sorted(observations, key=functools.cmp_to_key(compare))
