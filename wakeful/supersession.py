"""Supersession: marking one observation as replaced by another.

Validation reads and the final write are separate statements. The write
is conditioned on the target still being active and not deleted, so a
concurrent delete or supersede that lands first silently wins and this
call still reports success.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Optional

from .logging_config import log_supersession
from .storage.base import ObservationStore
from .types import ObservationStatus, utc_now

logger = logging.getLogger(__name__)


class SupersessionErrorCode(str, Enum):
    SELF_SUPERSESSION = "SELF_SUPERSESSION"
    SUPERSEDING_NOT_FOUND = "SUPERSEDING_NOT_FOUND"
    SUPERSEDING_IS_SUPERSEDED = "SUPERSEDING_IS_SUPERSEDED"
    TARGET_NOT_FOUND = "TARGET_NOT_FOUND"
    TARGET_ALREADY_SUPERSEDED = "TARGET_ALREADY_SUPERSEDED"
    CIRCULAR_SUPERSESSION = "CIRCULAR_SUPERSESSION"


# HTTP status per failure code
SUPERSESSION_STATUS_CODES = {
    SupersessionErrorCode.SELF_SUPERSESSION: 400,
    SupersessionErrorCode.CIRCULAR_SUPERSESSION: 400,
    SupersessionErrorCode.SUPERSEDING_NOT_FOUND: 404,
    SupersessionErrorCode.SUPERSEDING_IS_SUPERSEDED: 400,
    SupersessionErrorCode.TARGET_NOT_FOUND: 404,
    SupersessionErrorCode.TARGET_ALREADY_SUPERSEDED: 400,
}


class SupersessionError(Exception):
    """A supersession request rejected by the state machine."""

    def __init__(self, code: SupersessionErrorCode, target_id: str, superseding_id: str):
        self.code = code
        self.target_id = target_id
        self.superseding_id = superseding_id
        super().__init__(f"{code.value}: cannot supersede {target_id} with {superseding_id}")

    @property
    def status_code(self) -> int:
        return SUPERSESSION_STATUS_CODES.get(self.code, 400)


def _fail(code: SupersessionErrorCode, target_id: str, superseding_id: str) -> SupersessionError:
    log_supersession(target_id, superseding_id, code.value)
    return SupersessionError(code, target_id, superseding_id)


def supersede(
    store: ObservationStore,
    target_id: str,
    superseding_id: str,
    now: Optional[datetime] = None,
) -> None:
    """Mark ``target_id`` as superseded by ``superseding_id``.

    Raises:
        SupersessionError: with one of the six ``SupersessionErrorCode`` values.
    """
    if target_id == superseding_id:
        raise _fail(SupersessionErrorCode.SELF_SUPERSESSION, target_id, superseding_id)

    superseding = store.get(superseding_id)
    if superseding is None:
        raise _fail(SupersessionErrorCode.SUPERSEDING_NOT_FOUND, target_id, superseding_id)
    if superseding.status == ObservationStatus.SUPERSEDED.value:
        raise _fail(SupersessionErrorCode.SUPERSEDING_IS_SUPERSEDED, target_id, superseding_id)

    target = store.get(target_id)
    if target is None:
        raise _fail(SupersessionErrorCode.TARGET_NOT_FOUND, target_id, superseding_id)
    if target.status == ObservationStatus.SUPERSEDED.value:
        raise _fail(SupersessionErrorCode.TARGET_ALREADY_SUPERSEDED, target_id, superseding_id)
    if target.superseded_by == superseding_id:
        raise _fail(SupersessionErrorCode.CIRCULAR_SUPERSESSION, target_id, superseding_id)

    applied = store.mark_superseded(target_id, superseding_id, now or utc_now())
    if not applied:
        logger.debug(f"Supersede of {target_id} lost a race; target no longer active")
    log_supersession(target_id, superseding_id, "ok")
