"""Capability model: canonical capability records and lookups.

Raw capability records arrive in several shapes (full provenance objects from
the extraction pipeline, ``{"value": ...}`` stubs from the wide warehouse
table, or bare booleans). Everything is normalized here into
``Capability(value, state, confidence, evidence)``.
"""

import logging
import math
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from patientsafe.core.models import Anomaly, Capability, Evidence, Facility

logger = logging.getLogger(__name__)

# States that carry positive, structured provenance
POSITIVE_STATES: frozenset[str] = frozenset({"ASSERTED", "EXTRACTED"})

UNCERTAIN_STATE = "UNCERTAIN"

# State given to capabilities that arrived without one (bare booleans)
UNSPECIFIED_STATE = "UNSPECIFIED"

# Maternity capabilities that make a facility safe for obstetric emergencies
SAFE_OB_CAPS: tuple[str, ...] = (
    "c_section",
    "blood_bank",
    "anesthesia",
    "operating_room",
    "incubator",
)

# Capability groups in merge order: later groups win on key clashes
CAPABILITY_GROUPS: tuple[str, ...] = ("maternity", "trauma", "infrastructure")


# =============================================================================
# NORMALIZATION
# =============================================================================


def _optional_str(raw: Any) -> str | None:
    if raw is None:
        return None
    return raw if isinstance(raw, str) else str(raw)


def _tri_state(raw: Any) -> bool | None:
    if raw is True or raw is False:
        return raw
    return None


def _confidence(raw: Any) -> float | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    if not math.isfinite(raw):
        return None
    return float(raw)


def normalize_evidence(raw: Any) -> tuple[Evidence, ...]:
    """Normalize a raw evidence list, dropping entries that are not mappings."""
    if not isinstance(raw, (list, tuple)):
        return ()
    return tuple(
        Evidence(
            row_id=_optional_str(item.get("row_id")),
            source_column=_optional_str(item.get("source_column")),
            snippet=_optional_str(item.get("snippet")),
            evidence_type=_optional_str(item.get("evidence_type")),
        )
        for item in raw
        if isinstance(item, Mapping)
    )


def normalize_capability(raw: Any) -> Capability | None:
    """Normalize one raw capability record.

    Returns:
        Capability, or None if the record has an unusable shape.
    """
    if isinstance(raw, bool):
        return Capability(value=raw, state=UNSPECIFIED_STATE)
    if not isinstance(raw, Mapping):
        return None
    state = raw.get("state")
    return Capability(
        value=_tri_state(raw.get("value")),
        state=str(state) if state is not None else UNSPECIFIED_STATE,
        confidence=_confidence(raw.get("confidence")),
        evidence=normalize_evidence(raw.get("evidence")),
    )


def normalize_capability_group(raw: Any) -> Mapping[str, Capability]:
    """Normalize a capability group; wrong-shaped groups become empty."""
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.debug("Ignoring capability group of type %s", type(raw).__name__)
        return MappingProxyType({})
    group: dict[str, Capability] = {}
    for key, value in raw.items():
        capability = normalize_capability(value)
        if capability is None:
            logger.debug("Dropping malformed capability %r", key)
            continue
        group[str(key)] = capability
    return MappingProxyType(group)


def normalize_anomaly(raw: Mapping[str, Any]) -> Anomaly:
    missing = raw.get("required_missing")
    return Anomaly(
        facility_id=_optional_str(raw.get("facility_id")),
        bundle_name=_optional_str(raw.get("bundle_name")),
        anomaly_type=_optional_str(raw.get("anomaly_type")),
        severity=_optional_str(raw.get("severity")),
        reason=_optional_str(raw.get("reason")),
        required_missing=tuple(
            str(item) for item in missing if item is not None
        )
        if isinstance(missing, (list, tuple))
        else (),
        evidence_rows=normalize_evidence(raw.get("evidence_rows")),
    )


# =============================================================================
# LOOKUPS
# =============================================================================


def merged_capabilities(facility: Facility) -> dict[str, Capability]:
    """Flatten the three capability groups into one key -> Capability view.

    Groups are merged maternity, trauma, infrastructure; a key present in
    more than one group resolves to the later group.
    """
    merged: dict[str, Capability] = {}
    for group in CAPABILITY_GROUPS:
        merged.update(getattr(facility, group))
    return merged


def iter_capabilities(facility: Facility) -> Iterator[Capability]:
    """Yield every capability of the merged view."""
    yield from merged_capabilities(facility).values()


def is_available(capabilities: Mapping[str, Capability], key: str) -> bool:
    """True only when the capability exists and its value is True."""
    capability = capabilities.get(key)
    return capability is not None and capability.value is True


def first_snippet(capabilities: Mapping[str, Capability], key: str) -> str | None:
    capability = capabilities.get(key)
    if capability is None:
        return None
    return capability.first_snippet


def capability_label(key: str) -> str:
    """Display label for a capability key: ``c_section`` -> ``C SECTION``."""
    return key.replace("_", " ").upper()


def is_high_severity(anomaly: Anomaly) -> bool:
    """Exact match on severity, substring match on anomaly type."""
    severity = (anomaly.severity or "").upper()
    anomaly_type = (anomaly.anomaly_type or "").upper()
    return severity == "HIGH" or "HIGH" in anomaly_type


def has_high_severity_anomaly(facility: Facility) -> bool:
    return any(is_high_severity(anomaly) for anomaly in facility.anomalies)
