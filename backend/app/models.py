"""Pydantic models for API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field

# =============================================================================
# Observation Models
# =============================================================================

class ObservationCreate(BaseModel):
    """Request to record a new observation."""
    agent_id: str = Field(..., min_length=1, max_length=200)
    author: str = Field(..., min_length=1, max_length=200)
    perspective: str = Field(..., min_length=1, max_length=200)
    kind: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=20000)
    salience: int = Field(default=0, ge=0, le=100)
    emotion_intimacy: int = Field(default=0, ge=0, le=100)
    emotion_conflict: int = Field(default=0, ge=0, le=100)
    emotion_joy: int = Field(default=0, ge=0, le=100)
    emotion_fear: int = Field(default=0, ge=0, le=100)
    source_platform: str | None = None
    source_ref: str | None = None
    supersedes: str | None = None  # id of the observation this one replaces


class ObservationPatch(BaseModel):
    """Partial edit; omitted fields keep their stored value."""
    content: str | None = Field(default=None, min_length=1, max_length=20000)
    salience: int | None = Field(default=None, ge=0, le=100)
    emotion_intimacy: int | None = Field(default=None, ge=0, le=100)
    emotion_conflict: int | None = Field(default=None, ge=0, le=100)
    emotion_joy: int | None = Field(default=None, ge=0, le=100)
    emotion_fear: int | None = Field(default=None, ge=0, le=100)


class SupersedeRequest(BaseModel):
    """Request to mark an observation as replaced."""
    superseded_by: str = Field(..., min_length=1, max_length=128)


class ObservationResult(BaseModel):
    """Outcome of a single-observation mutation."""
    status: str
    id: str
    superseded: str | None = None
    superseded_by: str | None = None
    supersession_error: str | None = None


class SupersededList(BaseModel):
    agent: str
    superseded: list[dict[str, Any]]


class SearchResponse(BaseModel):
    """Search results, each carrying its current decayed salience."""
    agent: str
    query: str | None = None
    kind: str | None = None
    count: int
    observations: list[dict[str, Any]]


# =============================================================================
# Soulfile Models
# =============================================================================

class SoulfileUpdate(BaseModel):
    """Replace an agent's active soulfile."""
    content: str = Field(..., min_length=1)


class SoulfileResponse(BaseModel):
    agent: str
    soulfile: str | None
