"""Wake retrieval route."""

from typing import Any

from fastapi import APIRouter, Query, Request

from ..config import get_settings
from ..database import Memory
from ..logging_config import get_logger
from ..rate_limit import limiter

logger = get_logger("wakeful.api.wake")

router = APIRouter(prefix="/wake", tags=["wake"])


@router.get("/{agent}")
@limiter.limit(lambda: get_settings().wake_rate_limit)
def wake(
    request: Request,
    agent: str,
    memory: Memory,
    limit: str | None = Query(default=None, description="Tier size; invalid or <= 0 means 10"),
    hot: bool = Query(default=True, description="Include the hot tier"),
    explain: bool = Query(default=False, description="Attach why_loaded tags"),
    lens: str | None = Query(default=None, description="Lens expression"),
    format: str | None = Query(default=None, description="'legacy' for the raw tier shape"),
    compact: bool = Query(default=False, description="Model-sized shape"),
) -> dict[str, Any]:
    """
    Build the wake context for an agent.

    Loading is a write: every record returned is reinforced in storage.
    """
    if format == "legacy":
        fmt = "legacy"
    elif compact:
        fmt = "compact"
    else:
        fmt = "full"

    logger.debug(f"wake agent={agent} limit={limit} hot={hot} lens={lens!r} fmt={fmt}")
    return memory.wake(agent, limit=limit, hot=hot, explain=explain, lens=lens, fmt=fmt)
