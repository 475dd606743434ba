"""Plain-text facility context for the chat assistant's system prompt."""

from patientsafe.core.capabilities import is_available
from patientsafe.core.models import Facility

NO_FACILITY_DATA = "No facility data available."

# (group, capability key) reported per facility, in display order
SUMMARY_CAPABILITIES: tuple[tuple[str, str], ...] = (
    ("maternity", "c_section"),
    ("maternity", "blood_bank"),
    ("maternity", "operating_room"),
    ("maternity", "anesthesia"),
    ("trauma", "emergency_24_7"),
    ("trauma", "ambulance"),
    ("infrastructure", "pharmacy"),
    ("infrastructure", "lab_basic"),
)


def confirmed_capabilities(facility: Facility) -> list[str]:
    return [
        key
        for group, key in SUMMARY_CAPABILITIES
        if is_available(getattr(facility, group), key)
    ]


def build_facility_summary(facilities: list[Facility]) -> str:
    """Render dataset totals followed by one line per facility.

    Example line:
        - Tamale Teaching Hospital | Northern | hospital | Caps: c_section, blood_bank
    """
    if not facilities:
        return NO_FACILITY_DATA

    with_c_section = sum(1 for f in facilities if is_available(f.maternity, "c_section"))
    with_blood = sum(1 for f in facilities if is_available(f.maternity, "blood_bank"))
    with_emergency = sum(
        1 for f in facilities if is_available(f.trauma, "emergency_24_7")
    )
    regions = list(dict.fromkeys(f.region for f in facilities if f.region))

    lines = [
        "FACILITY DATABASE CONTEXT (Ghana Healthcare Network):",
        f"- Total facilities: {len(facilities)}",
        f"- Facilities with safe C-section: {with_c_section}",
        f"- Facilities with blood bank: {with_blood}",
        f"- Facilities with 24/7 emergency: {with_emergency}",
        f"- Regions: {', '.join(regions)}",
        "",
        "COMPLETE FACILITY LIST:",
    ]
    for facility in facilities:
        caps = confirmed_capabilities(facility)
        lines.append(
            f"- {facility.name} | {facility.region or 'N/A'} | "
            f"{facility.facility_type or 'N/A'} | "
            f"Caps: {', '.join(caps) or 'none confirmed'}"
        )
    return "\n".join(lines)
