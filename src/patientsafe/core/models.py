"""Record types shared by the derivation core.

This module provides:
- Input records: Evidence, Capability, Anomaly, Facility
- Derived records: Metrics, FacilityMarker, ActionPlan, CapabilityStatus,
  FacilityRecommendation, DesertZoneData, DetectedIntent

Facilities are built once by ``parse_facilities`` and treated as read-only
views afterwards. Derived records are freshly allocated on every call.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal

MarkerStatus = Literal["validated", "uncertain", "anomaly"]
MarkerCategory = Literal["Maternity", "Trauma", "Infrastructure"]
SeverityLabel = Literal["High", "Medium", "Low"]
TriageLevel = Literal["critical", "stable", "monitor"]
ZoneSeverity = Literal["critical", "high", "moderate"]
ClinicalContext = Literal[
    "general",
    "obstetric",
    "cardiac",
    "blood",
    "vitals",
    "trauma",
    "pediatric",
    "surgical",
]

# Sentinel region reported when no facility carries an anomaly
ALL_CLEAR_REGION = "No anomalies detected"


@dataclass(frozen=True)
class Evidence:
    """Provenance for a capability assertion."""

    row_id: str | None = None
    source_column: str | None = None
    snippet: str | None = None
    evidence_type: str | None = None


@dataclass(frozen=True)
class Capability:
    """One binary clinical or infrastructure capability.

    Attributes:
        value: True, False or None (unknown). Only True counts as available.
        state: Provenance tag (ASSERTED, EXTRACTED, UNCERTAIN, ...)
        confidence: Optional score, kept for display
        evidence: Ordered evidence; the first snippet is the representative one
    """

    value: bool | None = None
    state: str = ""
    confidence: float | None = None
    evidence: tuple[Evidence, ...] = ()

    @property
    def available(self) -> bool:
        return self.value is True

    @property
    def first_snippet(self) -> str | None:
        """Snippet of the first evidence entry, if any."""
        if not self.evidence:
            return None
        return self.evidence[0].snippet


@dataclass(frozen=True)
class Anomaly:
    """A data-quality or care-gap issue tied to one facility."""

    facility_id: str | None = None
    bundle_name: str | None = None
    anomaly_type: str | None = None
    severity: str | None = None
    reason: str | None = None
    required_missing: tuple[str, ...] = ()
    evidence_rows: tuple[Evidence, ...] = ()


@dataclass(frozen=True)
class Facility:
    """Normalized facility record.

    Capability groups map capability key -> Capability. Both ``lat`` and
    ``lon`` must be set for the facility to appear on the map.
    """

    facility_id: str
    name: str
    region: str | None = None
    district: str | None = None
    lat: float | None = None
    lon: float | None = None
    facility_type: str | None = None
    maternity: Mapping[str, Capability] = field(default_factory=dict)
    trauma: Mapping[str, Capability] = field(default_factory=dict)
    infrastructure: Mapping[str, Capability] = field(default_factory=dict)
    anomalies: tuple[Anomaly, ...] = ()
    raw_specialties: tuple[str, ...] = ()
    raw_procedures: tuple[str, ...] = ()

    @property
    def is_mappable(self) -> bool:
        return self.lat is not None and self.lon is not None

    @property
    def region_key(self) -> str:
        """Trimmed region, or an empty string when the region is missing."""
        return (self.region or "").strip()


@dataclass(frozen=True)
class Metrics:
    """Dataset-wide counters shown in the metrics row."""

    total_facilities: int
    safe_c_section: int
    high_risk_anomalies: int
    medical_desert_regions: int
    c_section_coverage: float


@dataclass(frozen=True)
class FacilityMarker:
    """Map-ready projection of a mappable facility."""

    lat: float
    lng: float
    status: MarkerStatus
    name: str
    category: MarkerCategory
    region: str
    specialties: list[str] = field(default_factory=list)
    facility_type: str | None = None


@dataclass(frozen=True)
class ActionPlan:
    """Single highest-priority remediation recommendation."""

    region: str
    gap: str
    impact: str
    candidate: str
    intervention: str
    severity_label: SeverityLabel

    @property
    def is_all_clear(self) -> bool:
        """True for the sentinel plan returned when no anomalies exist."""
        return self.region == ALL_CLEAR_REGION


@dataclass(frozen=True)
class CapabilityStatus:
    name: str
    available: bool


@dataclass(frozen=True)
class FacilityRecommendation:
    """Ranked facility with its triage label."""

    name: str
    distance: str
    capabilities: list[CapabilityStatus]
    evidence: str
    triage_level: TriageLevel
    score: int = 0


@dataclass(frozen=True)
class DesertZoneData:
    """Circular overlay marking a region with baseline capability gaps."""

    lat: float
    lng: float
    radius: float
    severity: ZoneSeverity
    region: str
    gaps: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DetectedIntent:
    context: ClinicalContext
    required_caps: list[str] = field(default_factory=list)
