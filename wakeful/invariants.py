"""Post-hoc invariant checks and load explanations.

Invariants are observability, not enforcement: violations come back as
string codes attached to the response and never abort a wake.
"""

import logging
import math
from typing import Dict, List, Set

from .config import DEFAULT_LIMITS, WakeLimits
from .types import Lens, ObservationKind, ObservationStatus, ScoredObservation

logger = logging.getLogger(__name__)


def assert_invariants(
    recent: List[ScoredObservation],
    salient: List[ScoredObservation],
    hot: List[ScoredObservation],
    loaded: Dict[str, ScoredObservation],
    limits: WakeLimits = DEFAULT_LIMITS,
) -> List[str]:
    """Return violation codes for a finished set of tiers (empty when healthy)."""
    violations: List[str] = []

    for obs_id, scored in loaded.items():
        if scored.observation.deleted_at is not None:
            violations.append(f"DELETED_IN_ACTIVE: {obs_id}")

    for obs_id, scored in loaded.items():
        if scored.observation.status == ObservationStatus.SUPERSEDED.value:
            violations.append(f"SUPERSEDED_IN_ACTIVE: {obs_id}")

    for scored in hot:
        score = scored.hot_score
        if (
            isinstance(score, bool)
            or not isinstance(score, (int, float))
            or not math.isfinite(score)
        ):
            violations.append(f"INVALID_HOT_SCORE: {scored.id}")

    if len(recent) > limits.recent_max:
        violations.append(f"RECENT_EXCEEDS_LIMIT: {len(recent)}")
    if len(salient) > limits.salient_max:
        violations.append(f"SALIENT_EXCEEDS_LIMIT: {len(salient)}")
    if len(hot) > limits.hot_max:
        violations.append(f"HOT_EXCEEDS_LIMIT: {len(hot)}")

    if len(loaded) > limits.wake_total_max:
        violations.append(f"WAKE_TOTAL_EXCEEDS_LIMIT: {len(loaded)}")

    if violations:
        logger.warning(f"Wake invariant violations: {violations}")

    return violations


def explain_loading(
    scored: ScoredObservation,
    *,
    recent_ids: Set[str],
    salient_ids: Set[str],
    hot_ids: Set[str],
    critical_ids: Set[str],
    lenses: List[Lens],
    limits: WakeLimits = DEFAULT_LIMITS,
) -> List[str]:
    """Provenance tags for why a record is in the wake, in priority order.

    ``critical_ids`` is the id set returned by the critical query; the
    other three sets are the final tier memberships.
    """
    obs = scored.observation
    reasons: List[str] = []

    if obs.id in critical_ids:
        if obs.kind == ObservationKind.CORRECTION.value:
            reasons.append("correction_kind")
        if (obs.salience or 0) >= limits.critical_salience:
            reasons.append("salience_critical")

    if obs.id in hot_ids:
        reasons.append("hot_score")

    if obs.id in salient_ids and "salience_critical" not in reasons:
        reasons.append("salience_rank")

    if obs.id in recent_ids:
        reasons.append("recency")

    for lens in lenses:
        if not lens.negated:
            reasons.append(f"lens:{lens}")

    negated = [lens.type for lens in lenses if lens.negated]
    if negated:
        reasons.append(f"survived:{','.join(negated)}")

    if not reasons:
        reasons.append("merged_dedup")

    return reasons
