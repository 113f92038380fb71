"""Soulfile routes: the identity document read at wake time."""

from fastapi import APIRouter, HTTPException, status

from ..database import Memory
from ..models import SoulfileResponse, SoulfileUpdate

router = APIRouter(prefix="/soulfile", tags=["soulfile"])


@router.get("/{agent}", response_model=SoulfileResponse)
def get_soulfile(agent: str, memory: Memory):
    text = memory.get_soulfile(agent)
    if text is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No soulfile for {agent}",
        )
    return {"agent": agent, "soulfile": text}


@router.put("/{agent}", response_model=SoulfileResponse)
def put_soulfile(agent: str, body: SoulfileUpdate, memory: Memory):
    """Replace the agent's active soulfile."""
    memory.set_soulfile(agent, body.content)
    return {"agent": agent, "soulfile": body.content}
