"""Salience decay and hot-score calculation.

Both functions are pure: they take the record, the evaluation time and the
limits, and never touch storage. Decay models importance fading through
disuse only (time since ``last_accessed``), never through age alone, and
pinned records are exempt.
"""

from datetime import datetime
from typing import Optional

from .config import DEFAULT_LIMITS, WakeLimits
from .types import Observation

SECONDS_PER_DAY = 86400.0


def _days_between(earlier: Optional[datetime], now: datetime) -> float:
    if earlier is None:
        return 0.0
    return (now - earlier).total_seconds() / SECONDS_PER_DAY


def compute_decayed_salience(
    obs: Observation, now: datetime, limits: WakeLimits = DEFAULT_LIMITS
) -> int:
    """Effective salience after disuse decay.

    Pinned records return raw salience. Otherwise every whole
    ``decay_period_days`` since last access costs ``decay_per_period``
    points, floored at zero. A record that was never accessed has not
    decayed yet.
    """
    base = obs.salience or 0
    if obs.pinned:
        return base

    days_since_access = _days_between(obs.last_accessed, now)
    periods = int(days_since_access // limits.decay_period_days)
    if periods < 0:
        # last_accessed in the future (clock skew) never adds salience
        periods = 0
    return max(0, base - periods * limits.decay_per_period)


def compute_hot_score(
    obs: Observation,
    now: datetime,
    limits: WakeLimits = DEFAULT_LIMITS,
    decay_days: Optional[float] = None,
) -> float:
    """Transient ranking value: decayed salience, emotional weighting, recency.

    Warm emotions (intimacy, joy) add 0.4 per point, cold ones (fear,
    conflict) subtract 0.2 per point, and records younger than the decay
    window get up to +1 linear recency boost. Unbounded; never stored.
    """
    window = decay_days if decay_days is not None else limits.hot_decay_days
    age_days = _days_between(obs.created_at, now)
    recency_boost = max(0.0, 1.0 - age_days / window)
    decayed = compute_decayed_salience(obs, now, limits)

    return (
        decayed
        + (obs.emotion_intimacy + obs.emotion_joy) * 0.4
        - (obs.emotion_fear + obs.emotion_conflict) * 0.2
        + recency_boost
    )
