"""
Wakeful - observation memory and deterministic wake retrieval for agents.
"""

from importlib.metadata import PackageNotFoundError, version

from .config import DEFAULT_LIMITS, WakeLimits
from .core import Wakeful
from .supersession import SupersessionError, SupersessionErrorCode
from .types import Lens, Observation, ObservationNotFoundError, ScoredObservation, WakeTiers

try:
    __version__ = version("wakeful")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "DEFAULT_LIMITS",
    "Lens",
    "Observation",
    "ObservationNotFoundError",
    "ScoredObservation",
    "SupersessionError",
    "SupersessionErrorCode",
    "WakeLimits",
    "WakeTiers",
    "Wakeful",
]
