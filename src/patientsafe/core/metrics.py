"""Dataset-wide counters for the metrics row."""

from patientsafe.core.capabilities import is_available, is_high_severity
from patientsafe.core.models import Facility, Metrics


def derive_metrics(facilities: list[Facility]) -> Metrics:
    """Compute totals, C-section coverage and the medical-desert region count.

    Regions are keyed by their trimmed name; facilities without a region are
    left out of the region statistics entirely.
    """
    total_facilities = len(facilities)
    safe_c_section = sum(
        1 for facility in facilities if is_available(facility.maternity, "c_section")
    )
    high_risk_anomalies = sum(
        1
        for facility in facilities
        for anomaly in facility.anomalies
        if is_high_severity(anomaly)
    )

    region_totals: dict[str, int] = {}
    region_safe: dict[str, int] = {}
    for facility in facilities:
        region = facility.region_key
        if not region:
            continue
        region_totals[region] = region_totals.get(region, 0) + 1
        if is_available(facility.maternity, "c_section"):
            region_safe[region] = region_safe.get(region, 0) + 1

    medical_desert_regions = sum(
        1 for region in region_totals if region_safe.get(region, 0) == 0
    )
    c_section_coverage = (
        0.0 if total_facilities == 0 else safe_c_section / total_facilities
    )

    return Metrics(
        total_facilities=total_facilities,
        safe_c_section=safe_c_section,
        high_risk_anomalies=high_risk_anomalies,
        medical_desert_regions=medical_desert_regions,
        c_section_coverage=c_section_coverage,
    )
