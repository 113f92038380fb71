"""Observation lifecycle routes.

Errors raised by the library (``ValueError``, ``ObservationNotFoundError``,
``SupersessionError``) are turned into responses by the handlers
registered in ``app.main``.
"""

from fastapi import APIRouter, Query, Request, status

from ..config import get_settings
from ..database import Memory
from ..logging_config import get_logger
from ..models import (
    ObservationCreate,
    ObservationPatch,
    ObservationResult,
    SearchResponse,
    SupersededList,
    SupersedeRequest,
)
from ..rate_limit import limiter

logger = get_logger("wakeful.api.observe")

router = APIRouter(prefix="/observe", tags=["observe"])


def _write_limit() -> str:
    return get_settings().write_rate_limit


@router.post(
    "",
    response_model=ObservationResult,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(_write_limit)
def create(request: Request, body: ObservationCreate, memory: Memory):
    """Record a new observation, optionally superseding an older one."""
    return memory.observe(**body.model_dump())


# Read routes are declared before /{observation_id} so the literal
# segments are matched first.


@router.get("/superseded/{agent}", response_model=SupersededList)
def superseded(
    agent: str,
    memory: Memory,
    limit: int | None = Query(default=None, ge=1, le=100),
):
    """List an agent's superseded observations, most recently replaced first."""
    return memory.superseded(agent, limit=limit)


@router.get("/search/{agent}", response_model=SearchResponse)
def search(
    agent: str,
    memory: Memory,
    q: str = Query(default="", max_length=1000),
    kind: str | None = None,
    min_salience: int | None = Query(default=None, ge=0, le=100),
    max_salience: int | None = Query(default=None, ge=0, le=100),
    include_superseded: bool = False,
    limit: int | None = Query(default=None, ge=1),
):
    return memory.search(
        agent,
        q,
        kind=kind,
        min_salience=min_salience,
        max_salience=max_salience,
        include_superseded=include_superseded,
        limit=limit,
    )


@router.patch("/{observation_id}", response_model=ObservationResult, response_model_exclude_none=True)
@limiter.limit(_write_limit)
def edit(request: Request, observation_id: str, body: ObservationPatch, memory: Memory):
    """Edit fields in place; salience gets the edit bump on top."""
    return memory.edit(observation_id, **body.model_dump(exclude_none=True))


@router.delete("/{observation_id}", response_model=ObservationResult, response_model_exclude_none=True)
@limiter.limit(_write_limit)
def delete(request: Request, observation_id: str, memory: Memory):
    return memory.delete(observation_id)


@router.delete(
    "/{observation_id}/hard", response_model=ObservationResult, response_model_exclude_none=True
)
@limiter.limit(_write_limit)
def hard_delete(request: Request, observation_id: str, memory: Memory):
    logger.warning(f"Hard delete requested for {observation_id}")
    return memory.purge(observation_id)


@router.post("/{observation_id}/pin", response_model=ObservationResult, response_model_exclude_none=True)
@limiter.limit(_write_limit)
def pin(request: Request, observation_id: str, memory: Memory):
    return memory.pin(observation_id)


@router.delete(
    "/{observation_id}/pin", response_model=ObservationResult, response_model_exclude_none=True
)
@limiter.limit(_write_limit)
def unpin(request: Request, observation_id: str, memory: Memory):
    return memory.unpin(observation_id)


@router.post(
    "/{observation_id}/supersede",
    response_model=ObservationResult,
    response_model_exclude_none=True,
)
@limiter.limit(_write_limit)
def supersede(request: Request, observation_id: str, body: SupersedeRequest, memory: Memory):
    """Mark ``observation_id`` as replaced by ``body.superseded_by``."""
    return memory.supersede(observation_id, body.superseded_by)
