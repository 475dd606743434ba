"""Map marker construction and the map panel's marker filters.

Status priority: anomaly > uncertain > validated.
Category priority: Maternity > Trauma > Infrastructure (fallback).
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from patientsafe.core.capabilities import (
    UNCERTAIN_STATE,
    has_high_severity_anomaly,
    is_available,
    iter_capabilities,
)
from patientsafe.core.models import (
    Facility,
    FacilityMarker,
    MarkerCategory,
    MarkerStatus,
)

UNKNOWN_REGION = "Unknown"

_MATERNITY_SIGNALS = ("delivery_natural", "c_section")
_TRAUMA_SIGNALS = ("emergency_24_7", "ambulance", "xray", "general_surgery")


def marker_status(facility: Facility) -> MarkerStatus:
    if has_high_severity_anomaly(facility):
        return "anomaly"
    if any(cap.state == UNCERTAIN_STATE for cap in iter_capabilities(facility)):
        return "uncertain"
    return "validated"


def marker_category(facility: Facility) -> MarkerCategory:
    if any(is_available(facility.maternity, key) for key in _MATERNITY_SIGNALS):
        return "Maternity"
    if any(is_available(facility.trauma, key) for key in _TRAUMA_SIGNALS):
        return "Trauma"
    return "Infrastructure"


def build_markers(facilities: list[Facility]) -> list[FacilityMarker]:
    """Project every mappable facility into a map marker."""
    return [
        FacilityMarker(
            lat=facility.lat,
            lng=facility.lon,
            status=marker_status(facility),
            name=facility.name,
            category=marker_category(facility),
            region=facility.region if facility.region is not None else UNKNOWN_REGION,
            specialties=list(facility.raw_specialties),
            facility_type=facility.facility_type,
        )
        for facility in facilities
        if facility.is_mappable
    ]


# =============================================================================
# MAP PANEL FILTERS
# =============================================================================


@dataclass(frozen=True)
class MarkerFilter:
    """Map panel filter state. ``None`` means "all" for every field.

    Attributes:
        category: Exact marker category
        status: Exact marker status
        region: Exact marker region
        specialty: Case-insensitive substring of any marker specialty
        query: Case-insensitive substring of name, region, type and specialties
    """

    category: MarkerCategory | None = None
    status: MarkerStatus | None = None
    region: str | None = None
    specialty: str | None = None
    query: str | None = None

    def matches(self, marker: FacilityMarker) -> bool:
        if self.category and marker.category != self.category:
            return False
        if self.status and marker.status != self.status:
            return False
        if self.region and marker.region != self.region:
            return False
        if self.specialty:
            needle = self.specialty.lower()
            if not any(needle in spec.lower() for spec in marker.specialties):
                return False
        query = (self.query or "").lower().strip()
        if query:
            searchable = " ".join(
                [marker.name, marker.region, marker.facility_type or "", *marker.specialties]
            ).lower()
            if query not in searchable:
                return False
        return True


def filter_markers(
    markers: Iterable[FacilityMarker], marker_filter: MarkerFilter
) -> list[FacilityMarker]:
    return [marker for marker in markers if marker_filter.matches(marker)]


def region_options(markers: Iterable[FacilityMarker]) -> list[str]:
    """Sorted distinct marker regions, excluding the "Unknown" placeholder."""
    return sorted(
        {m.region for m in markers if m.region and m.region != UNKNOWN_REGION}
    )


def status_counts(markers: Iterable[FacilityMarker]) -> dict[str, int]:
    counts = {"validated": 0, "uncertain": 0, "anomaly": 0, "total": 0}
    for marker in markers:
        counts[marker.status] += 1
        counts["total"] += 1
    return counts


def markers_to_geojson(markers: Iterable[FacilityMarker]) -> dict[str, Any]:
    """Build a GeoJSON FeatureCollection of Point features ([lng, lat] order)."""
    features = [
        {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [m.lng, m.lat]},
            "properties": {
                "name": m.name,
                "status": m.status,
                "category": m.category,
                "region": m.region,
                "facility_type": m.facility_type,
                "specialties": list(m.specialties),
            },
        }
        for m in markers
    ]
    return {"type": "FeatureCollection", "features": features}
