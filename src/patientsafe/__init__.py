"""PatientSafe: verified facility intelligence for referrals and planning.

PatientSafe turns a facility capability export (capabilities with evidence,
anomalies, coordinates) into the views a planner or clinician needs:
dataset metrics, map markers, a prioritized action plan, medical desert
zones and ranked facility recommendations for a patient description.

Quick Start:
    from patientsafe import load_facilities, build_dashboard, triage

    facilities = load_facilities("data/output/facilities_full.json")
    state = build_dashboard(facilities)
    print(state.action_plan.region, state.action_plan.intervention)

    result = triage(facilities, "postpartum hemorrhage, needs blood")
    print([r.name for r in result.recommendations])

For the terminal interface, run: patientsafe --help
"""

__version__ = "0.1.0"

from patientsafe.config import PatientSafeConfig, get_config
from patientsafe.core import (
    CONTEXT_PROFILES,
    ActionPlan,
    Facility,
    FacilityMarker,
    FacilityRecommendation,
    MarkerFilter,
    Metrics,
    build_facility_summary,
    build_markers,
    build_specialty_options,
    derive_action_plan,
    derive_contextual_recommendations,
    derive_desert_zones,
    derive_metrics,
    derive_recommendations,
    detect_clinical_context,
    detect_clinical_intent,
    detect_required_caps,
    filter_markers,
    filter_markers_by_caps,
    parse_facilities,
)
from patientsafe.core.exceptions import (
    ConfigurationError,
    DatasetError,
    PatientSafeError,
)
from patientsafe.dashboard import DashboardState, TriageResult, build_dashboard, triage
from patientsafe.data_io import load_facilities

__all__ = [
    "CONTEXT_PROFILES",
    "ActionPlan",
    "ConfigurationError",
    "DashboardState",
    "DatasetError",
    "Facility",
    "FacilityMarker",
    "FacilityRecommendation",
    "MarkerFilter",
    "Metrics",
    "PatientSafeConfig",
    "PatientSafeError",
    "TriageResult",
    "__version__",
    "build_dashboard",
    "build_facility_summary",
    "build_markers",
    "build_specialty_options",
    "derive_action_plan",
    "derive_contextual_recommendations",
    "derive_desert_zones",
    "derive_metrics",
    "derive_recommendations",
    "detect_clinical_context",
    "detect_clinical_intent",
    "detect_required_caps",
    "filter_markers",
    "filter_markers_by_caps",
    "get_config",
    "load_facilities",
    "parse_facilities",
    "triage",
]
