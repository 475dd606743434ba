"""Action plan: the single highest-priority region to remediate."""

import logging

from patientsafe.core.models import ALL_CLEAR_REGION, ActionPlan, Anomaly, Facility

logger = logging.getLogger(__name__)

DEFAULT_GAP = "Capability gap detected"
DEFAULT_CANDIDATE = "Regional facility"
DEFAULT_INTERVENTION = "Targeted capability upgrade"

ALL_CLEAR_PLAN = ActionPlan(
    region=ALL_CLEAR_REGION,
    gap="All bundles satisfied",
    impact="0 facilities affected",
    candidate="N/A",
    intervention="Maintain current standards",
    severity_label="Low",
)

# Keyword in the lower-cased gap -> intervention; first match wins
INTERVENTION_RULES: tuple[tuple[str, str], ...] = (
    ("ultrasound", "Deploy mobile ultrasound unit"),
    ("blood", "Secure blood bank partnership"),
    ("anesthesia", "Assign anesthesia coverage"),
)


def choose_intervention(gap: str) -> str:
    lower = gap.lower()
    for keyword, intervention in INTERVENTION_RULES:
        if keyword in lower:
            return intervention
    return DEFAULT_INTERVENTION


def _gap_text(anomaly: Anomaly) -> str:
    if anomaly.reason is not None:
        return anomaly.reason
    if anomaly.required_missing:
        return anomaly.required_missing[0]
    return DEFAULT_GAP


def _severity_label(anomaly: Anomaly) -> str:
    severity = (anomaly.severity or "").upper()
    if severity == "HIGH":
        return "High"
    if severity == "LOW":
        return "Low"
    return "Medium"


def derive_action_plan(facilities: list[Facility]) -> ActionPlan:
    """Pick the region with the most anomalies and describe its first one.

    Ties between regions go to the region encountered first in the input.
    When no facility carries an anomaly, the all-clear plan is returned
    (``ActionPlan.is_all_clear``).
    """
    region_anomalies: dict[str, list[Anomaly]] = {}
    for facility in facilities:
        region = facility.region_key
        if not region or not facility.anomalies:
            continue
        region_anomalies.setdefault(region, []).extend(facility.anomalies)

    if not region_anomalies:
        return ALL_CLEAR_PLAN

    top_region, top_anomalies = sorted(
        region_anomalies.items(), key=lambda item: len(item[1]), reverse=True
    )[0]
    logger.debug(
        "Action plan region %s (%d anomalies across %d regions)",
        top_region,
        len(top_anomalies),
        len(region_anomalies),
    )

    top_anomaly = top_anomalies[0]
    gap = _gap_text(top_anomaly)
    candidate = next(
        (f.name for f in facilities if f.region_key == top_region), DEFAULT_CANDIDATE
    )

    return ActionPlan(
        region=top_region,
        gap=gap,
        impact=f"{len(top_anomalies)} anomalies detected",
        candidate=candidate,
        intervention=choose_intervention(gap),
        severity_label=_severity_label(top_anomaly),
    )
