"""Observation lifecycle operations.

Create, edit, pin, delete and search, shared by the CLI and the HTTP
service. Input is validated before any store access; unknown ids raise
``ObservationNotFoundError``.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from .config import DEFAULT_LIMITS, WakeLimits
from .scoring import compute_decayed_salience
from .storage.base import ObservationStore
from .supersession import SupersessionError, supersede
from .types import (
    Observation,
    ObservationKind,
    ObservationNotFoundError,
    ObservationStatus,
    utc_now,
)
from .validation import (
    MAX_CONTENT_LENGTH,
    MAX_FIELD_LENGTH,
    sanitize_score,
    sanitize_string,
    validate_observation_id,
)

logger = logging.getLogger(__name__)

EMOTION_FIELDS = ("emotion_intimacy", "emotion_conflict", "emotion_joy", "emotion_fear")


def create_observation(
    store: ObservationStore,
    payload: Dict[str, Any],
    limits: WakeLimits = DEFAULT_LIMITS,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Insert a new observation, optionally superseding an older one.

    ``payload`` carries the request fields: ``agent_id``, ``author``,
    ``perspective``, ``kind``, ``content`` (required), ``salience``, the four
    emotion intensities, ``source_platform``, ``source_ref`` and
    ``supersedes``. Corrections are floored at ``correction_salience_floor``.

    A failed supersession does not fail the create; its code is returned
    as ``supersession_error``.

    Raises:
        ValueError: if a required field is missing or a score is out of range.
    """
    now = now or utc_now()

    agent_id = sanitize_string(payload.get("agent_id"), "agent_id", MAX_FIELD_LENGTH)
    author = sanitize_string(payload.get("author"), "author", MAX_FIELD_LENGTH)
    perspective = sanitize_string(payload.get("perspective"), "perspective", MAX_FIELD_LENGTH)
    kind = sanitize_string(payload.get("kind"), "kind", MAX_FIELD_LENGTH)
    content = sanitize_string(payload.get("content"), "content", MAX_CONTENT_LENGTH)

    salience = sanitize_score(payload.get("salience"), "salience", default=0)
    emotions = {name: sanitize_score(payload.get(name), name, default=0) for name in EMOTION_FIELDS}

    if kind == ObservationKind.CORRECTION.value:
        salience = max(limits.correction_salience_floor, salience)

    supersedes = payload.get("supersedes")
    if supersedes:
        supersedes = validate_observation_id(supersedes, "supersedes")

    obs = Observation(
        id=str(uuid.uuid4()),
        agent_id=agent_id,
        author=author,
        perspective=perspective,
        kind=kind,
        content=content,
        salience=salience,
        created_at=now,
        updated_at=now,
        last_accessed=now,
        status=ObservationStatus.ACTIVE.value,
        source_platform=payload.get("source_platform") or None,
        source_ref=payload.get("source_ref") or None,
        **emotions,
    )
    store.insert(obs)
    logger.info(f"OBSERVE | {agent_id} | {kind} | {obs.id}")

    result: Dict[str, Any] = {"status": "ok", "id": obs.id}
    if supersedes:
        try:
            supersede(store, supersedes, obs.id, now)
            result["superseded"] = supersedes
        except SupersessionError as e:
            result["supersession_error"] = e.code.value
    return result


def edit_observation(
    store: ObservationStore,
    observation_id: str,
    changes: Dict[str, Any],
    limits: WakeLimits = DEFAULT_LIMITS,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Apply field edits; salience is bumped by ``edit_reinforce_amount`` (clamped)."""
    validate_observation_id(observation_id)
    content = changes.get("content")
    if content is not None:
        content = sanitize_string(content, "content", MAX_CONTENT_LENGTH)
    salience = sanitize_score(changes.get("salience"), "salience")
    emotions = {name: sanitize_score(changes.get(name), name) for name in EMOTION_FIELDS}

    updated = store.update_fields(
        observation_id,
        now or utc_now(),
        limits.edit_reinforce_amount,
        content=content,
        salience=salience,
        **emotions,
    )
    if not updated:
        raise ObservationNotFoundError(observation_id)
    return {"status": "updated", "id": observation_id}


def pin_observation(
    store: ObservationStore, observation_id: str, now: Optional[datetime] = None
) -> Dict[str, Any]:
    validate_observation_id(observation_id)
    if not store.set_pinned(observation_id, True, now or utc_now()):
        raise ObservationNotFoundError(observation_id)
    return {"status": "pinned", "id": observation_id}


def unpin_observation(
    store: ObservationStore, observation_id: str, now: Optional[datetime] = None
) -> Dict[str, Any]:
    validate_observation_id(observation_id)
    if not store.set_pinned(observation_id, False, now or utc_now()):
        raise ObservationNotFoundError(observation_id)
    return {"status": "unpinned", "id": observation_id}


def delete_observation(
    store: ObservationStore, observation_id: str, now: Optional[datetime] = None
) -> Dict[str, Any]:
    """Soft delete. There is no undelete."""
    validate_observation_id(observation_id)
    if not store.soft_delete(observation_id, now or utc_now()):
        raise ObservationNotFoundError(observation_id)
    return {"status": "deleted", "id": observation_id}


def purge_observation(store: ObservationStore, observation_id: str) -> Dict[str, Any]:
    """Hard delete. Irreversible."""
    validate_observation_id(observation_id)
    if not store.hard_delete(observation_id):
        raise ObservationNotFoundError(observation_id)
    logger.info(f"PURGE | {observation_id}")
    return {"status": "hard_deleted", "id": observation_id}


def supersede_observation(
    store: ObservationStore,
    target_id: str,
    superseding_id: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Validated wrapper around ``supersede``; raises SupersessionError on rejection."""
    validate_observation_id(target_id)
    validate_observation_id(superseding_id, "superseded_by")
    supersede(store, target_id, superseding_id, now)
    return {"status": "superseded", "id": target_id, "superseded_by": superseding_id}


def list_superseded(
    store: ObservationStore,
    agent_id: str,
    limit: Optional[int] = None,
    limits: WakeLimits = DEFAULT_LIMITS,
) -> Dict[str, Any]:
    agent_id = sanitize_string(agent_id, "agent", MAX_FIELD_LENGTH)
    limit = limit if limit and limit > 0 else limits.superseded_list_default
    records = store.list_superseded(agent_id, limit)
    return {"agent": agent_id, "superseded": [obs.to_dict() for obs in records]}


def search_observations(
    store: ObservationStore,
    agent_id: str,
    query: str = "",
    kind: Optional[str] = None,
    min_salience: Optional[int] = None,
    max_salience: Optional[int] = None,
    include_superseded: bool = False,
    limit: Optional[int] = None,
    limits: WakeLimits = DEFAULT_LIMITS,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Substring search; each hit carries its current decayed salience."""
    agent_id = sanitize_string(agent_id, "agent", MAX_FIELD_LENGTH)
    now = now or utc_now()
    if limit is None or limit <= 0:
        limit = limits.search_default_limit
    limit = min(limit, limits.search_max_limit)

    records: List[Observation] = store.search(
        agent_id,
        query=query or "",
        kind=kind or None,
        min_salience=min_salience,
        max_salience=max_salience,
        include_superseded=include_superseded,
        limit=limit,
    )

    observations = []
    for obs in records:
        data = obs.to_dict()
        data["decayed_salience"] = compute_decayed_salience(obs, now, limits)
        observations.append(data)

    return {
        "agent": agent_id,
        "query": query or None,
        "kind": kind or None,
        "count": len(observations),
        "observations": observations,
    }
