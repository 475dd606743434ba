"""Dashboard and triage facades over the derivation core.

``build_dashboard`` computes everything the monitoring dashboard shows for
one dataset load. ``triage`` answers a free-text patient description with
ranked facilities and the names to highlight on the map.

Example:
    from patientsafe.data_io import load_facilities
    from patientsafe.dashboard import build_dashboard, triage

    facilities = load_facilities()
    state = build_dashboard(facilities)
    print(state.metrics.c_section_coverage)

    result = triage(facilities, "bleeding after delivery, needs transfusion")
    print(result.intent.context, [r.name for r in result.recommendations])
"""

import logging
from dataclasses import dataclass, field

from patientsafe.core.action_plan import derive_action_plan
from patientsafe.core.deserts import derive_desert_zones
from patientsafe.core.intent import detect_clinical_intent
from patientsafe.core.markers import build_markers
from patientsafe.core.metrics import derive_metrics
from patientsafe.core.models import (
    ActionPlan,
    DesertZoneData,
    DetectedIntent,
    Facility,
    FacilityMarker,
    FacilityRecommendation,
    Metrics,
)
from patientsafe.core.recommendations import (
    derive_contextual_recommendations,
    derive_recommendations,
    filter_markers_by_caps,
)
from patientsafe.core.specialties import build_specialty_options

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardState:
    """All derived views for one facility dataset."""

    facilities: list[Facility]
    metrics: Metrics
    action_plan: ActionPlan
    markers: list[FacilityMarker]
    recommendations: list[FacilityRecommendation]
    specialties: list[str]
    desert_zones: list[DesertZoneData]


@dataclass(frozen=True)
class TriageResult:
    """Answer to a free-text patient description."""

    intent: DetectedIntent
    recommendations: list[FacilityRecommendation]
    matching_facilities: set[str] = field(default_factory=set)


def build_dashboard(
    facilities: list[Facility],
    recommendation_limit: int = 3,
    specialty_limit: int = 10,
) -> DashboardState:
    """Derive metrics, markers, action plan, rankings, specialties and deserts."""
    state = DashboardState(
        facilities=list(facilities),
        metrics=derive_metrics(facilities),
        action_plan=derive_action_plan(facilities),
        markers=build_markers(facilities),
        recommendations=derive_recommendations(facilities, recommendation_limit),
        specialties=build_specialty_options(facilities, specialty_limit),
        desert_zones=derive_desert_zones(facilities),
    )
    logger.debug(
        "Dashboard: %d facilities, %d markers, %d desert zones",
        state.metrics.total_facilities,
        len(state.markers),
        len(state.desert_zones),
    )
    return state


def triage(facilities: list[Facility], text: str, limit: int = 3) -> TriageResult:
    """Detect intent in ``text`` and rank facilities for it."""
    intent = detect_clinical_intent(text)
    logger.debug(
        "Detected context %s with required caps %s", intent.context, intent.required_caps
    )
    return TriageResult(
        intent=intent,
        recommendations=derive_contextual_recommendations(
            facilities, intent.context, limit, intent.required_caps
        ),
        matching_facilities=filter_markers_by_caps(facilities, intent.required_caps),
    )
