"""Lens parsing and filtering.

A lens expression is a list of tokens separated by ``+`` or spaces, for
example ``relational:alex+-operational``. Each token names a lens type,
optionally prefixed with ``-`` (negation) and suffixed with ``:target``.
Unknown types are ignored. At most ``max_lenses`` tokens are considered.
"""

import re
from typing import Iterable, List, Optional, TypeVar

from .config import DEFAULT_LIMITS, WakeLimits
from .types import (
    OPERATIONAL_KINDS,
    VALID_LENS_TYPES,
    Lens,
    LensType,
    Observation,
    ObservationKind,
    ScoredObservation,
)

T = TypeVar("T", Observation, ScoredObservation)

_SEPARATORS = re.compile(r"[+ ]")


def parse_lenses(expression: Optional[str], limits: WakeLimits = DEFAULT_LIMITS) -> List[Lens]:
    """Parse a lens expression into typed lenses."""
    if not expression:
        return []

    lenses: List[Lens] = []
    # Truncation happens on raw tokens, before empty ones are skipped
    for part in _SEPARATORS.split(expression)[: limits.max_lenses]:
        token = part.strip()
        if not token:
            continue

        negated = token.startswith("-")
        clean = token[1:] if negated else token

        pieces = clean.split(":")
        lens_type = pieces[0]
        target = pieces[1] if len(pieces) > 1 and pieces[1] else None

        if lens_type in VALID_LENS_TYPES:
            lenses.append(Lens(type=lens_type, target=target, negated=negated))

    return lenses


def format_lenses(lenses: List[Lens]) -> Optional[str]:
    """Canonical string for a lens list, or None when there are none."""
    if not lenses:
        return None
    return "+".join(str(lens) for lens in lenses)


def matches_lens(
    obs: Observation, lens: Lens, limits: WakeLimits = DEFAULT_LIMITS
) -> bool:
    """Whether a single observation satisfies a lens (ignoring negation)."""
    if lens.type == LensType.RELATIONAL.value:
        if obs.kind == ObservationKind.RELATIONAL.value:
            return True
        if lens.target:
            target = lens.target.lower()
            return (
                target in (obs.content or "").lower()
                or (obs.perspective or "").lower() == target
                or (obs.author or "").lower() == target
            )
        return False

    if lens.type == LensType.PROJECT.value:
        if obs.kind == ObservationKind.PROJECT.value:
            return True
        if lens.target:
            return lens.target.lower() in (obs.content or "").lower()
        return False

    if lens.type == LensType.OPERATIONAL.value:
        return obs.kind in OPERATIONAL_KINDS

    if lens.type == LensType.EMOTIONAL.value:
        if obs.kind == ObservationKind.EMOTIONAL.value:
            return True
        return obs.emotion_total >= limits.emotional_lens_threshold

    if lens.type == LensType.PLATFORM.value:
        if not lens.target:
            return True
        return (obs.source_platform or "").lower() == lens.target.lower()

    return True


def _observation(item) -> Observation:
    return item.observation if isinstance(item, ScoredObservation) else item


def passes_lenses(item, lenses: Iterable[Lens], limits: WakeLimits = DEFAULT_LIMITS) -> bool:
    """True if the item satisfies every positive lens and no negated lens."""
    obs = _observation(item)
    for lens in lenses:
        matched = matches_lens(obs, lens, limits)
        if lens.negated and matched:
            return False
        if not lens.negated and not matched:
            return False
    return True


def apply_lenses(items: List[T], lenses: List[Lens], limits: WakeLimits = DEFAULT_LIMITS) -> List[T]:
    """Filter observations (plain or scored) through the lens list, preserving order."""
    if not lenses:
        return list(items)
    return [item for item in items if passes_lenses(item, lenses, limits)]
