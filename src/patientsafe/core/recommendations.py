"""Facility recommendation engine.

Two rankings share one scoring discipline: a facility scores one point per
profile capability whose value is True, zero-score facilities are dropped,
and the rest are stably sorted by score (ties keep input order).

- derive_recommendations: fixed obstetric safety profile (SAFE_OB_CAPS),
  maternity group only. The top entry is always flagged "critical".
- derive_contextual_recommendations: profile chosen by clinical context,
  looked up across all capability groups, with optional hard-required
  capabilities. The top entry is flagged "stable" unless it carries a
  high-severity anomaly.
"""

import logging
import math
from collections.abc import Mapping, Sequence

from patientsafe.core.capabilities import (
    POSITIVE_STATES,
    SAFE_OB_CAPS,
    capability_label,
    first_snippet,
    has_high_severity_anomaly,
    is_available,
    merged_capabilities,
)
from patientsafe.core.intent import CONTEXT_PROFILES, DEFAULT_CONTEXT
from patientsafe.core.models import (
    Capability,
    CapabilityStatus,
    Facility,
    FacilityRecommendation,
    TriageLevel,
)

logger = logging.getLogger(__name__)

# Fixed-profile score at which a facility is considered stable
STABLE_SCORE = 4

# Share of a context profile a facility must cover to be considered stable
STABLE_PROFILE_SHARE = 0.6


def _score(capabilities: Mapping[str, Capability], keys: Sequence[str]) -> int:
    return sum(1 for key in keys if is_available(capabilities, key))


def _rank(scored: list[tuple], limit: int) -> list[tuple]:
    """Stable descending sort on the score stored at index 1."""
    return sorted(scored, key=lambda item: item[1], reverse=True)[:limit]


def _capability_statuses(
    capabilities: Mapping[str, Capability], keys: Sequence[str]
) -> list[CapabilityStatus]:
    return [
        CapabilityStatus(name=capability_label(key), available=is_available(capabilities, key))
        for key in keys
    ]


def _first_evidence(
    capabilities: Mapping[str, Capability], keys: Sequence[str]
) -> str | None:
    for key in keys:
        snippet = first_snippet(capabilities, key)
        if snippet:
            return snippet
    return None


def _region_text(facility: Facility) -> str:
    return facility.region if facility.region is not None else "Unknown"


def derive_recommendations(
    facilities: list[Facility], limit: int = 3
) -> list[FacilityRecommendation]:
    """Rank facilities on the obstetric safety profile.

    Args:
        facilities: Normalized facilities
        limit: Maximum number of recommendations

    Returns:
        Up to ``limit`` recommendations, best first. Index 0 is always
        "critical"; the others are "monitor" when they carry a high-severity
        anomaly, "stable" at a score of 4 or more, else "critical".
    """
    scored = [
        (facility, _score(facility.maternity, SAFE_OB_CAPS)) for facility in facilities
    ]
    ranked = _rank([item for item in scored if item[1] > 0], limit)

    recommendations: list[FacilityRecommendation] = []
    for index, (facility, score) in enumerate(ranked):
        maternity = facility.maternity
        evidence = _first_evidence(maternity, SAFE_OB_CAPS)
        if evidence is None:
            delivery = maternity.get("delivery_natural")
            signal = (
                "clinical"
                if delivery is not None and delivery.state in POSITIVE_STATES
                else "structured"
            )
            evidence = f"Derived from {signal} signals"

        triage_level: TriageLevel
        if has_high_severity_anomaly(facility):
            triage_level = "monitor"
        elif score >= STABLE_SCORE:
            triage_level = "stable"
        else:
            triage_level = "critical"

        recommendations.append(
            FacilityRecommendation(
                name=facility.name,
                distance=f"Region: {_region_text(facility)} · Score {score}/{len(SAFE_OB_CAPS)}",
                capabilities=_capability_statuses(maternity, SAFE_OB_CAPS),
                evidence=evidence,
                triage_level="critical" if index == 0 else triage_level,
                score=score,
            )
        )
    return recommendations


def derive_contextual_recommendations(
    facilities: list[Facility],
    context: str,
    limit: int = 3,
    required_caps: Sequence[str] = (),
) -> list[FacilityRecommendation]:
    """Rank facilities for a clinical context.

    Args:
        facilities: Normalized facilities
        context: Clinical context key (see CONTEXT_PROFILES)
        limit: Maximum number of recommendations
        required_caps: Capabilities every returned facility must have. When
            given, they decide inclusion and the profile score only orders.

    Returns:
        Up to ``limit`` recommendations, best first.
    """
    profile = CONTEXT_PROFILES.get(context)
    if profile is None:
        logger.warning("Unknown clinical context %r, using %r", context, DEFAULT_CONTEXT)
        profile = CONTEXT_PROFILES[DEFAULT_CONTEXT]
    caps = profile.relevant_caps
    required = list(required_caps)

    candidates: list[tuple[Facility, int, dict[str, Capability]]] = []
    for facility in facilities:
        capabilities = merged_capabilities(facility)
        score = _score(capabilities, caps)
        if required:
            included = all(is_available(capabilities, key) for key in required)
        else:
            included = score > 0
        if included:
            candidates.append((facility, score, capabilities))
    ranked = _rank(candidates, limit)

    display_caps = list(dict.fromkeys([*required, *caps]))
    stable_threshold = math.ceil(len(caps) * STABLE_PROFILE_SHARE)

    recommendations: list[FacilityRecommendation] = []
    for index, (facility, score, capabilities) in enumerate(ranked):
        high_severity = has_high_severity_anomaly(facility)

        triage_level: TriageLevel
        if high_severity:
            triage_level = "monitor"
        elif score >= stable_threshold:
            triage_level = "stable"
        else:
            triage_level = "critical"
        if index == 0 and not high_severity:
            triage_level = "stable"

        recommendations.append(
            FacilityRecommendation(
                name=facility.name,
                distance=(
                    f"Region: {_region_text(facility)} · "
                    f"{profile.label} Score {score}/{len(caps)}"
                ),
                capabilities=_capability_statuses(capabilities, display_caps),
                evidence=_first_evidence(capabilities, display_caps)
                or f"Scored on {profile.label} capability profile",
                triage_level=triage_level,
                score=score,
            )
        )
    return recommendations


def filter_markers_by_caps(
    facilities: list[Facility], required_caps: Sequence[str]
) -> set[str]:
    """Names of facilities that have every required capability.

    An empty ``required_caps`` matches nothing.
    """
    if not required_caps:
        return set()
    matching: set[str] = set()
    for facility in facilities:
        capabilities = merged_capabilities(facility)
        if all(is_available(capabilities, key) for key in required_caps):
            matching.add(facility.name)
    return matching
