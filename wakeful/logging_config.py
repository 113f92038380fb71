"""Logging helpers for wakeful.

Modules log through ``logging.getLogger(__name__)``. The helpers here emit
the one-line summaries for wakes and supersessions so their format stays
consistent between the CLI and the HTTP service.
"""

import logging
from typing import Dict, List, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_wake_logger = logging.getLogger("wakeful.wake")
_supersede_logger = logging.getLogger("wakeful.supersession")


def setup_logging(level: str = "WARNING", fmt: Optional[str] = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    resolved = getattr(logging, str(level).upper(), logging.WARNING)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=fmt or LOG_FORMAT)
    root.setLevel(resolved)


def log_wake(agent_id: str, counts: Dict[str, int], violations: List[str]) -> None:
    """Summarize a finished wake."""
    tiers = " ".join(f"{name}={count}" for name, count in counts.items())
    if violations:
        _wake_logger.warning(f"WAKE | {agent_id} | {tiers} | violations={len(violations)}")
    else:
        _wake_logger.info(f"WAKE | {agent_id} | {tiers}")


def log_supersession(target_id: str, superseding_id: str, outcome: str) -> None:
    """Record a supersession attempt and its outcome code."""
    _supersede_logger.info(f"SUPERSEDE | {target_id} -> {superseding_id} | {outcome}")
