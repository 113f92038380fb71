"""
Wakeful core: the facade used by the CLI and the HTTP service.

Holds the observation store, the soulfile store and the immutable limits,
and exposes one method per operation.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from . import observations as ops
from .config import DEFAULT_LIMITS, WakeLimits
from .presentation import render_compact, render_full, render_verbose
from .storage import (
    ObservationStore,
    SoulfileStore,
    SQLiteObservationStore,
    SQLiteSoulfileStore,
    soulfile_key,
)
from .types import WakeTiers, utc_now
from .validation import MAX_FIELD_LENGTH, sanitize_string
from .wake import build_wake

logger = logging.getLogger(__name__)

WAKE_FORMATS = ("full", "compact", "legacy")


class Wakeful:
    """Observation memory with deterministic wake retrieval.

    Args:
        db_path: SQLite file for both stores (ignored for stores passed in).
        limits: Retrieval limits; built once and shared.
        store: Observation store override.
        soulfiles: Soulfile store override.
    """

    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        limits: WakeLimits = DEFAULT_LIMITS,
        store: Optional[ObservationStore] = None,
        soulfiles: Optional[SoulfileStore] = None,
    ):
        self.limits = limits
        self.store = store if store is not None else SQLiteObservationStore(db_path)
        self.soulfiles = soulfiles if soulfiles is not None else SQLiteSoulfileStore(db_path)

    # === Wake ===

    def tiers(
        self,
        agent_id: str,
        limit: Union[int, str, None] = None,
        hot: bool = True,
        explain: bool = False,
        lens: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> WakeTiers:
        """Run the retrieval pipeline without rendering."""
        agent_id = sanitize_string(agent_id, "agent", MAX_FIELD_LENGTH)
        return build_wake(
            self.store,
            agent_id,
            limit=limit,
            include_hot=hot,
            explain=explain,
            lens=lens,
            limits=self.limits,
            now=now,
        )

    def wake(
        self,
        agent_id: str,
        limit: Union[int, str, None] = None,
        hot: bool = True,
        explain: bool = False,
        lens: Optional[str] = None,
        fmt: str = "full",
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Build and render a wake in one of ``WAKE_FORMATS``."""
        if fmt not in WAKE_FORMATS:
            raise ValueError(f"format must be one of {', '.join(WAKE_FORMATS)}, got {fmt!r}")
        now = now or utc_now()

        soulfile = self.get_soulfile(agent_id)
        tiers = self.tiers(agent_id, limit=limit, hot=hot, explain=explain, lens=lens, now=now)

        if fmt == "legacy":
            return render_verbose(tiers, soulfile)
        if fmt == "compact":
            return render_compact(tiers, soulfile, self.limits)
        return render_full(tiers, soulfile, self.store, self.limits, now=now)

    # === Observations ===

    def observe(self, now: Optional[datetime] = None, **payload: Any) -> Dict[str, Any]:
        return ops.create_observation(self.store, payload, self.limits, now=now)

    def edit(self, observation_id: str, now: Optional[datetime] = None, **changes: Any) -> Dict[str, Any]:
        return ops.edit_observation(self.store, observation_id, changes, self.limits, now=now)

    def pin(self, observation_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        return ops.pin_observation(self.store, observation_id, now=now)

    def unpin(self, observation_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        return ops.unpin_observation(self.store, observation_id, now=now)

    def delete(self, observation_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        return ops.delete_observation(self.store, observation_id, now=now)

    def purge(self, observation_id: str) -> Dict[str, Any]:
        return ops.purge_observation(self.store, observation_id)

    def supersede(
        self, target_id: str, superseding_id: str, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        return ops.supersede_observation(self.store, target_id, superseding_id, now=now)

    def superseded(self, agent_id: str, limit: Optional[int] = None) -> Dict[str, Any]:
        return ops.list_superseded(self.store, agent_id, limit, self.limits)

    def search(self, agent_id: str, query: str = "", **filters: Any) -> Dict[str, Any]:
        return ops.search_observations(self.store, agent_id, query, limits=self.limits, **filters)

    # === Soulfiles ===

    def get_soulfile(self, agent_id: str) -> Optional[str]:
        return self.soulfiles.get(soulfile_key(agent_id))

    def set_soulfile(self, agent_id: str, text: str) -> None:
        agent_id = sanitize_string(agent_id, "agent", MAX_FIELD_LENGTH)
        self.soulfiles.put(soulfile_key(agent_id), text)
        logger.info(f"SOULFILE | {agent_id} | {len(text)} chars")
