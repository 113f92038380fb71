"""Storage wiring for the HTTP service."""

import logging
from typing import Annotated

from fastapi import Depends

from wakeful import Wakeful

from .config import Settings, get_settings

logger = logging.getLogger("wakeful.api")

_memory: Wakeful | None = None


def get_memory_instance(settings: Settings | None = None) -> Wakeful:
    """Get the cached Wakeful facade (stores are opened once per process)."""
    global _memory
    if _memory is None:
        if settings is None:
            settings = get_settings()
        _memory = Wakeful(db_path=settings.db_path)
        logger.info(f"Opened observation store at {_memory.store.db_path}")
    return _memory


def get_memory(settings: Annotated[Settings, Depends(get_settings)]) -> Wakeful:
    """FastAPI dependency for the Wakeful facade."""
    return get_memory_instance(settings)


# Type alias for dependency injection
Memory = Annotated[Wakeful, Depends(get_memory)]
