"""PatientSafe Core - the facility derivation layer.

This package contains the pure, side-effect free functions behind the
dashboard and the triage assistant:
- Facility normalization from raw JSON
- Clinical intent detection from free text
- Metrics, map markers, action plan, desert zones, specialty options
- Facility recommendations

Nothing in this package performs I/O or raises on malformed data.
"""

from patientsafe.core.action_plan import derive_action_plan
from patientsafe.core.deserts import derive_desert_zones
from patientsafe.core.intent import (
    CONTEXT_PROFILES,
    detect_clinical_context,
    detect_clinical_intent,
    detect_required_caps,
)
from patientsafe.core.markers import (
    MarkerFilter,
    build_markers,
    filter_markers,
    markers_to_geojson,
    region_options,
    status_counts,
)
from patientsafe.core.metrics import derive_metrics
from patientsafe.core.models import (
    ActionPlan,
    Anomaly,
    Capability,
    CapabilityStatus,
    DesertZoneData,
    DetectedIntent,
    Evidence,
    Facility,
    FacilityMarker,
    FacilityRecommendation,
    Metrics,
)
from patientsafe.core.parsing import parse_facilities
from patientsafe.core.recommendations import (
    derive_contextual_recommendations,
    derive_recommendations,
    filter_markers_by_caps,
)
from patientsafe.core.specialties import build_specialty_options
from patientsafe.core.summary import build_facility_summary

__all__ = [
    "CONTEXT_PROFILES",
    "ActionPlan",
    "Anomaly",
    "Capability",
    "CapabilityStatus",
    "DesertZoneData",
    "DetectedIntent",
    "Evidence",
    "Facility",
    "FacilityMarker",
    "FacilityRecommendation",
    "MarkerFilter",
    "Metrics",
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
    "markers_to_geojson",
    "parse_facilities",
    "region_options",
    "status_counts",
]
