"""Wake retrieval: the tiered query, ranking and reinforcement pipeline.

Flow for one request:

1. Three bounded queries (recent, salient, critical) against active records.
2. Merge and dedupe by id, then put into canonical conflict-resolved order.
3. Annotate each record with decayed salience and hot score.
4. Apply lenses.
5. Slice the recent / salient / hot tiers with the deterministic comparator.
6. Check invariants (diagnostic only) and optionally tag provenance.
7. Reinforce every loaded record in storage.

Each step runs as its own store call; nothing is held across requests.
"""

import logging
from datetime import datetime
from typing import List, Optional, Union

from .config import DEFAULT_LIMITS, WakeLimits
from .invariants import assert_invariants, explain_loading
from .lenses import apply_lenses, parse_lenses
from .logging_config import log_wake
from .ordering import dedupe_by_id, deterministic_sort, resolve_conflicts
from .scoring import compute_decayed_salience, compute_hot_score
from .storage.base import ObservationStore
from .types import Lens, ScoredObservation, WakeTiers, utc_now

logger = logging.getLogger(__name__)


def _created_key(scored: ScoredObservation) -> float:
    created = scored.created_at
    return created.timestamp() if created is not None else 0.0


def build_wake(
    store: ObservationStore,
    agent_id: str,
    *,
    limit: Union[int, str, None] = None,
    include_hot: bool = True,
    explain: bool = False,
    lens: Optional[str] = None,
    lenses: Optional[List[Lens]] = None,
    limits: WakeLimits = DEFAULT_LIMITS,
    now: Optional[datetime] = None,
    reinforce: bool = True,
) -> WakeTiers:
    """Select the wake tiers for an agent.

    Args:
        store: Observation store to query and reinforce.
        agent_id: Owner of the observations.
        limit: Requested tier size, clamped to ``limits.recent_max``. Missing,
            non-numeric or non-positive values mean the maximum.
        include_hot: Build the hot tier (default True).
        explain: Attach ``why_loaded`` provenance tags to each record.
        lens: Lens expression string (ignored if ``lenses`` is given).
        lenses: Pre-parsed lenses.
        limits: Retrieval limits and constants.
        now: Evaluation time for decay, hot score and reinforcement.
        reinforce: Write back salience/last_accessed for loaded records.

    Returns:
        WakeTiers with the three tiers, query provenance and violations.
    """
    now = now or utc_now()
    tier_limit = limits.clamp_limit(limit)
    if lenses is None:
        lenses = parse_lenses(lens, limits)

    # 1. Tiered queries
    buffered = tier_limit * limits.query_buffer
    recent_raw = store.fetch_recent(agent_id, buffered)
    salient_raw = store.fetch_salient(agent_id, buffered)
    critical_raw = store.fetch_critical(agent_id, tier_limit, limits.critical_salience)

    recent_query_ids = {obs.id for obs in recent_raw}
    salient_query_ids = {obs.id for obs in salient_raw}
    critical_query_ids = {obs.id for obs in critical_raw}

    # 2. Merge, dedupe, canonical order
    merged = dedupe_by_id(critical_raw, recent_raw, salient_raw)
    resolved = resolve_conflicts(merged.values(), now, limits)

    # 3. Derived scores
    scored = [
        ScoredObservation(
            observation=obs,
            decayed_salience=compute_decayed_salience(obs, now, limits),
            hot_score=compute_hot_score(obs, now, limits),
        )
        for obs in resolved
    ]

    # 4. Lenses
    filtered = apply_lenses(scored, lenses, limits)

    # 5. Tiers
    recent = deterministic_sort(filtered, _created_key)[:tier_limit]
    salient = deterministic_sort(filtered, lambda s: s.decayed_salience)[:tier_limit]
    hot = (
        deterministic_sort(filtered, lambda s: s.hot_score)[: limits.hot_max]
        if include_hot
        else []
    )

    tiers = WakeTiers(
        agent_id=agent_id,
        recent=recent,
        salient=salient,
        hot=hot,
        lenses=list(lenses),
        recent_query_ids=recent_query_ids,
        salient_query_ids=salient_query_ids,
        critical_query_ids=critical_query_ids,
        generated_at=now,
    )

    # 6. Invariants and provenance
    loaded = tiers.loaded()
    tiers.violations = assert_invariants(recent, salient, hot, loaded, limits)

    if explain:
        _attach_explanations(tiers, limits)

    # 7. Reinforcement
    if reinforce and loaded:
        tiers.reinforced = store.reinforce(list(loaded.keys()), now, limits.reinforce_amount)
        logger.debug(f"Reinforced {tiers.reinforced}/{len(loaded)} observations for {agent_id}")

    log_wake(
        agent_id,
        {"recent": len(recent), "salient": len(salient), "hot": len(hot)},
        tiers.violations,
    )
    return tiers


def _attach_explanations(tiers: WakeTiers, limits: WakeLimits) -> None:
    recent_ids = {s.id for s in tiers.recent}
    salient_ids = {s.id for s in tiers.salient}
    hot_ids = {s.id for s in tiers.hot}

    def explain(scored: ScoredObservation) -> ScoredObservation:
        reasons = explain_loading(
            scored,
            recent_ids=recent_ids,
            salient_ids=salient_ids,
            hot_ids=hot_ids,
            critical_ids=tiers.critical_query_ids,
            lenses=tiers.lenses,
            limits=limits,
        )
        return scored.with_reasons(reasons)

    tiers.recent = [explain(s) for s in tiers.recent]
    tiers.salient = [explain(s) for s in tiers.salient]
    tiers.hot = [explain(s) for s in tiers.hot]
