"""Retrieval limits and scoring constants.

``WakeLimits`` is built once at process start and handed explicitly to the
query, scoring and presentation code. Nothing in the pipeline reads these
values from module globals.
"""

import os
from dataclasses import dataclass
from pathlib import Path

DAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


@dataclass(frozen=True)
class WakeLimits:
    """Hard caps and tuning constants for wake retrieval."""

    # Tier caps
    recent_max: int = 10
    salient_max: int = 10
    hot_max: int = 10
    wake_total_max: int = 25
    # Over-fetch factor for recent/salient queries, gives lens filtering headroom
    query_buffer: int = 2
    max_lenses: int = 5

    # Presentation
    preview_length: int = 150
    identity_preview_length: int = 200
    recent_context_max: int = 15
    anniversary_limit: int = 5

    # Salience
    critical_salience: int = 80
    correction_salience_floor: int = 60
    decay_period_days: int = 30
    decay_per_period: int = 10
    hot_decay_days: float = 14.0
    reinforce_amount: int = 2
    edit_reinforce_amount: int = 5
    conflict_tie_window: int = 10
    emotional_lens_threshold: int = 30

    # Listing / search
    superseded_list_default: int = 20
    search_default_limit: int = 20
    search_max_limit: int = 100

    def clamp_limit(self, limit) -> int:
        """Clamp a requested tier size to [1, recent_max]; falsy means the max."""
        try:
            value = int(limit) if limit else self.recent_max
        except (TypeError, ValueError):
            value = self.recent_max
        if value <= 0:
            value = self.recent_max
        return min(value, self.recent_max)


DEFAULT_LIMITS = WakeLimits()


def get_wakeful_home() -> Path:
    """Directory for local databases (``WAKEFUL_HOME`` or ``~/.wakeful``)."""
    override = os.environ.get("WAKEFUL_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".wakeful"


def default_db_path() -> Path:
    """Database path from ``WAKEFUL_DB_PATH`` or the home-directory default."""
    override = os.environ.get("WAKEFUL_DB_PATH")
    if override:
        return Path(override).expanduser()
    return get_wakeful_home() / "observations.db"
