"""Response shapes for a finished wake.

Three renderings of the same ``WakeTiers``:

- ``render_verbose``: raw tiers with scores and provenance (legacy shape).
- ``render_compact``: deduplicated, field-stripped records sized for a
  language model, plus an emotion breakdown and token estimate.
- ``render_full``: the human-facing briefing with narrative, identity
  previews, recent context and anniversaries.

None of these run retrieval logic of their own beyond the anniversary
lookup in the full shape.
"""

import json
import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from .config import DAYS, DEFAULT_LIMITS, WakeLimits
from .lenses import format_lenses
from .ordering import deterministic_sort
from .storage.base import ObservationStore
from .types import Observation, ScoredObservation, WakeTiers, to_iso, utc_now

EMOTIONS = ("intimacy", "conflict", "joy", "fear")

TRAJECTORY_DESCRIPTIONS = {
    "rising-intimacy": "Deepening emotional connection recently.",
    "rising-joy": "Positive momentum building.",
    "rising-conflict": "Increasing tension in recent sessions.",
    "rising-fear": "Growing anxiety or concern.",
    "falling-intimacy": "Less emotional intensity than before.",
    "falling-joy": "Lighter mood than recent peak.",
    "falling-conflict": "Tension easing.",
    "falling-fear": "Anxiety settling.",
    "stable-intimacy": "Consistent closeness.",
    "stable-joy": "Steady positive engagement.",
    "stable-conflict": "Persistent friction.",
    "stable-fear": "Ongoing background concern.",
    "volatile-intimacy": "Emotional intensity fluctuating.",
    "volatile-joy": "Mood shifting significantly.",
    "volatile-conflict": "Conflict levels unpredictable.",
    "volatile-fear": "Anxiety spiking unpredictably.",
}

FOCUS_DESCRIPTIONS = {
    "project": "Recent focus: project work.",
    "relational": "Recent focus: relational dynamics.",
    "emotional": "Recent focus: emotional processing.",
    "identity": "Recent focus: identity refinement.",
    "correction": "Recent focus: memory corrections.",
    "behavioural": "Recent focus: behavioral patterns.",
    "system": "Recent focus: system operations.",
}


# === Small helpers ===


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _emotion_values(obs: Observation) -> Dict[str, int]:
    return {
        "intimacy": obs.emotion_intimacy,
        "conflict": obs.emotion_conflict,
        "joy": obs.emotion_joy,
        "fear": obs.emotion_fear,
    }


def relative_time(then: Optional[datetime], now: datetime) -> str:
    """Human phrase for the time between ``then`` and ``now``."""
    if then is None:
        return "unknown"
    diff = (now - then).total_seconds()
    minutes = math.floor(diff / 60)
    hours = math.floor(diff / 3600)
    days = math.floor(diff / 86400)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} minute{'' if minutes == 1 else 's'} ago"
    if hours < 24:
        return f"{hours} hour{'' if hours == 1 else 's'} ago"
    if days == 1:
        return "yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 14:
        return "1 week ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    if days < 60:
        return "1 month ago"
    return f"{days // 30} months ago"


def truncate(text: Optional[str], max_length: int) -> Optional[str]:
    """Cut text to ``max_length`` chars plus ``...``, at a word boundary when one is near."""
    if not text or len(text) <= max_length:
        return text
    truncated = text[:max_length]
    last_space = truncated.rfind(" ")
    if last_space > max_length * 0.7:
        return truncated[:last_space] + "..."
    return truncated + "..."


def estimate_tokens(obj: Any) -> int:
    """Rough token count: compact JSON length / 4, rounded up."""
    text = json.dumps(obj, separators=(",", ":"), default=str)
    return math.ceil(len(text) / 4)


def emotional_tag(obs: Observation) -> Optional[str]:
    """Dominant emotion name if its intensity is at least 20."""
    values = _emotion_values(obs)
    # First maximum in EMOTIONS order wins ties
    dominant = EMOTIONS[0]
    for name in EMOTIONS[1:]:
        if values[name] > values[dominant]:
            dominant = name
    return dominant if values[dominant] >= 20 else None


def emotion_breakdown(observations: List[Observation], window: int = 15) -> Dict[str, int]:
    """Percentage share of each emotion across the first ``window`` records."""
    totals = {"intimacy": 0, "joy": 0, "conflict": 0, "fear": 0}
    for obs in observations[:window]:
        values = _emotion_values(obs)
        for name in totals:
            totals[name] += values[name]
    grand_total = sum(totals.values())
    if grand_total <= 0:
        return {name: 0 for name in totals}
    return {name: _round_half_up(value / grand_total * 100) for name, value in totals.items()}


# === Narrative ===


def emotional_trajectory(observations: List[Observation]) -> Dict[str, Any]:
    """Trend and dominant emotion over the ten most recent records (newest first)."""
    if not observations:
        return {
            "trend": "stable",
            "dominant_emotion": None,
            "description": "No recent emotional data.",
        }

    window = observations[:10]
    totals = {name: 0 for name in EMOTIONS}
    intensities: List[int] = []
    for obs in window:
        values = _emotion_values(obs)
        for name in EMOTIONS:
            totals[name] += values[name]
        intensities.append(obs.emotion_total)

    dominant_name, dominant_total = "none", 0
    for name in EMOTIONS:
        if totals[name] > dominant_total:
            dominant_name, dominant_total = name, totals[name]
    dominant = dominant_name if dominant_total > 0 else None

    trend = "stable"
    if len(intensities) >= 3:
        half = len(intensities) // 2
        older = intensities[half:]
        newer = intensities[:half]
        diff = sum(newer) / len(newer) - sum(older) / len(older)

        mean = sum(intensities) / len(intensities)
        variance = sum((i - mean) ** 2 for i in intensities) / len(intensities)

        if variance > 400:
            trend = "volatile"
        elif diff > 15:
            trend = "rising"
        elif diff < -15:
            trend = "falling"

    key = f"{trend}-{dominant}" if dominant else None
    description = TRAJECTORY_DESCRIPTIONS.get(
        key, "Consistent engagement without significant turbulence."
    )
    return {"trend": trend, "dominant_emotion": dominant, "description": description}


def narrative_state(recent: List[Observation], now: datetime) -> str:
    """One-line summary of the latest activity and its dominant kind."""
    if not recent:
        return "Starting fresh: no recent observations loaded."

    time_ago = relative_time(recent[0].created_at, now)

    counts: Dict[str, int] = {}
    for obs in recent[:5]:
        counts[obs.kind] = counts.get(obs.kind, 0) + 1
    # Highest count wins; ties go to the kind seen first
    dominant_kind = max(counts, key=lambda k: counts[k])

    focus = FOCUS_DESCRIPTIONS.get(dominant_kind, "")
    return f"Last activity {time_ago}. {focus}".strip()


def parse_identity_sections(
    soulfile: Optional[str], limits: WakeLimits = DEFAULT_LIMITS
) -> List[Dict[str, str]]:
    """Split a soulfile on ``## Heading`` lines into named sections."""
    if not soulfile:
        return []

    sections: List[Dict[str, str]] = []
    parts = re.split(r"^## ([^\n]+)\n", soulfile, flags=re.MULTILINE)
    # parts: [preamble, name1, body1, name2, body2, ...]
    for i in range(1, len(parts), 2):
        name = parts[i].strip()
        body = parts[i + 1].strip() if i + 1 < len(parts) else ""
        if name and body:
            sections.append(
                {
                    "name": name,
                    "preview": truncate(body, limits.identity_preview_length),
                    "full": body,
                }
            )

    if not sections:
        sections.append(
            {
                "name": "Identity",
                "preview": truncate(soulfile, limits.identity_preview_length),
                "full": soulfile,
            }
        )
    return sections


def temporal_anchor(now: datetime) -> Dict[str, str]:
    month_day = now.strftime("%m-%d")
    # DAYS starts on Sunday; datetime.weekday() starts on Monday
    return {
        "date": month_day,
        "day_of_week": DAYS[(now.weekday() + 1) % 7],
        "month_day": month_day,
    }


def build_recent_context(
    recent: List[Observation], now: datetime, limits: WakeLimits = DEFAULT_LIMITS
) -> List[Dict[str, Any]]:
    return [
        {
            "id": obs.id,
            "kind": obs.kind,
            "relative_time": relative_time(obs.created_at, now),
            "emotional_tag": emotional_tag(obs),
            "preview": truncate(obs.content, limits.preview_length),
        }
        for obs in recent[: limits.recent_context_max]
    ]


def build_emotional_state(recent: List[Observation]) -> Dict[str, Any]:
    tags: List[str] = []
    total_intensity = 0
    count = 0
    for obs in recent[:10]:
        tag = emotional_tag(obs)
        if tag and tag not in tags:
            tags.append(tag)
        if obs.emotion_total > 0:
            total_intensity += obs.emotion_total
            count += 1

    return {
        "recent_emotions": tags[:4],
        "average_intensity": _round_half_up(total_intensity / count) if count else 0,
        "trend": emotional_trajectory(recent)["trend"],
    }


# === Renderers ===


def _tier_dicts(tier: List[ScoredObservation]) -> List[Dict[str, Any]]:
    return [scored.to_dict() for scored in tier]


def _with_violations(response: Dict[str, Any], tiers: WakeTiers) -> Dict[str, Any]:
    if tiers.violations:
        response["_invariant_violations"] = list(tiers.violations)
    return response


def render_verbose(tiers: WakeTiers, soulfile: Optional[str]) -> Dict[str, Any]:
    """Raw per-tier structure (the legacy shape)."""
    response = {
        "agent": tiers.agent_id,
        "soulfile": soulfile,
        "lens": format_lenses(tiers.lenses),
        "recent": _tier_dicts(tiers.recent),
        "salient": _tier_dicts(tiers.salient),
        "hot": _tier_dicts(tiers.hot),
    }
    return _with_violations(response, tiers)


def render_compact(
    tiers: WakeTiers,
    soulfile: Optional[str],
    limits: WakeLimits = DEFAULT_LIMITS,
) -> Dict[str, Any]:
    """Deduplicated, field-stripped shape for model consumption."""
    unique = deterministic_sort(tiers.loaded().values(), lambda s: s.decayed_salience)
    observations = [
        {
            "id": scored.id,
            "kind": scored.observation.kind,
            "content": scored.observation.content,
            "salience": scored.decayed_salience,
            "pinned": scored.observation.pinned,
        }
        for scored in unique
    ]

    recent_obs = [s.observation for s in tiers.recent]
    return {
        "agent": tiers.agent_id,
        "soulfile": soulfile,
        "emotions": emotion_breakdown(recent_obs, limits.recent_context_max),
        "observations": observations,
        "timestamp": to_iso(tiers.generated_at or utc_now()),
        "tokens": estimate_tokens({"soulfile": soulfile, "observations": observations}),
    }


def render_full(
    tiers: WakeTiers,
    soulfile: Optional[str],
    store: ObservationStore,
    limits: WakeLimits = DEFAULT_LIMITS,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Human-facing briefing built on the same tiers."""
    now = now or tiers.generated_at or utc_now()
    recent_obs = [s.observation for s in tiers.recent]

    anchor = temporal_anchor(now)
    anniversaries = store.fetch_anniversaries(
        tiers.agent_id, anchor["month_day"], now.year, limits.anniversary_limit
    )

    identity = [
        {"name": section["name"], "preview": section["preview"], "index": idx}
        for idx, section in enumerate(parse_identity_sections(soulfile, limits))
    ]

    response: Dict[str, Any] = {
        "agent": tiers.agent_id,
        "narrative_briefing": {
            "narrative_state": narrative_state(recent_obs, now),
            "emotional_trajectory": emotional_trajectory(recent_obs),
            "temporal_anchor": {
                "date": anchor["date"],
                "day_of_week": anchor["day_of_week"],
                "relevant_anniversaries": [obs.id for obs in anniversaries],
            },
            "generated_at": to_iso(now),
        },
        "identity": identity,
        "soulfile": soulfile,
        "emotions": emotion_breakdown(recent_obs, limits.recent_context_max),
        "recent_context": build_recent_context(recent_obs, now, limits),
        "emotional_state": build_emotional_state(recent_obs),
        "lens": format_lenses(tiers.lenses),
        "_tiers": {
            "recent": _tier_dicts(tiers.recent),
            "salient": _tier_dicts(tiers.salient),
            "hot": _tier_dicts(tiers.hot),
        },
    }
    response["token_estimate"] = estimate_tokens(response)
    return _with_violations(response, tiers)
