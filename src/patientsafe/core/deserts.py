"""Medical desert zones: regions missing a baseline capability.

A region is a desert when none of its facilities offers C-section, blood
bank or 24/7 emergency care. Each qualifying region becomes a circular map
overlay centred on its mappable facilities.

Architecture Note:
    Radius uses a flat degrees-to-meters approximation (111 km per degree)
    over the larger of the latitude and longitude spans, clamped to
    15-80 km. This is fine for region-scale overlays in Ghana, which sits
    close to the equator.
"""

from dataclasses import dataclass, field

from patientsafe.core.capabilities import is_available
from patientsafe.core.models import DesertZoneData, Facility, ZoneSeverity

METERS_PER_DEGREE = 111_000
SPREAD_FACTOR = 0.6
MIN_RADIUS_M = 15_000
MAX_RADIUS_M = 80_000

# (group, capability key, gap label), in gap-list order
BASELINE_CAPABILITIES: tuple[tuple[str, str, str], ...] = (
    ("maternity", "c_section", "No C-Section"),
    ("maternity", "blood_bank", "No Blood Bank"),
    ("trauma", "emergency_24_7", "No 24/7 Emergency"),
)


@dataclass
class _RegionStats:
    lats: list[float] = field(default_factory=list)
    lngs: list[float] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)


def zone_radius(lats: list[float], lngs: list[float]) -> float:
    """Overlay radius in meters for a set of coordinates."""
    spread = max(max(lats) - min(lats), max(lngs) - min(lngs))
    return max(MIN_RADIUS_M, min(MAX_RADIUS_M, spread * METERS_PER_DEGREE * SPREAD_FACTOR))


def zone_severity(gap_count: int) -> ZoneSeverity:
    if gap_count >= 3:
        return "critical"
    if gap_count >= 2:
        return "high"
    return "moderate"


def derive_desert_zones(facilities: list[Facility]) -> list[DesertZoneData]:
    """Build desert overlays, one per region with gaps and coordinates.

    Regions are keyed by trimmed name and emitted in first-seen order.
    """
    regions: dict[str, _RegionStats] = {}
    for facility in facilities:
        region = facility.region_key
        if not region:
            continue
        stats = regions.setdefault(region, _RegionStats())
        if facility.is_mappable:
            stats.lats.append(facility.lat)
            stats.lngs.append(facility.lon)
        for group, key, _ in BASELINE_CAPABILITIES:
            if is_available(getattr(facility, group), key):
                stats.counts[key] = stats.counts.get(key, 0) + 1

    zones: list[DesertZoneData] = []
    for region, stats in regions.items():
        gaps = [
            label
            for _, key, label in BASELINE_CAPABILITIES
            if stats.counts.get(key, 0) == 0
        ]
        if not gaps or not stats.lats:
            continue
        zones.append(
            DesertZoneData(
                lat=sum(stats.lats) / len(stats.lats),
                lng=sum(stats.lngs) / len(stats.lngs),
                radius=zone_radius(stats.lats, stats.lngs),
                severity=zone_severity(len(gaps)),
                region=region,
                gaps=gaps,
            )
        )
    return zones
