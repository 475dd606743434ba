"""Clinical intent detection from free-text patient descriptions.

Two ordered rule tables drive detection:

- KEYWORD_TO_CAP maps phrases to the capability keys a facility must have
  ("emergency c-section" -> c_section, emergency_24_7). Every rule is tested.
- CONTEXT_RULES maps phrases to a clinical context. The first matching rule
  wins, so the order below is significant: obstetric, cardiac, blood, vitals,
  trauma, pediatric, surgical. Text matching nothing is "general".

CONTEXT_PROFILES lists, per context, the capabilities used to score
facilities and the label shown next to the score.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from patientsafe.core.models import ClinicalContext, DetectedIntent

DEFAULT_CONTEXT: ClinicalContext = "general"


@dataclass(frozen=True)
class ContextProfile:
    """Capability keys scored for a context, across all capability groups."""

    relevant_caps: tuple[str, ...]
    label: str


CONTEXT_PROFILES: MappingProxyType[str, ContextProfile] = MappingProxyType(
    {
        "general": ContextProfile(
            relevant_caps=("emergency_24_7", "lab_basic", "pharmacy", "ambulance"),
            label="General",
        ),
        "obstetric": ContextProfile(
            relevant_caps=(
                "c_section",
                "delivery_natural",
                "blood_bank",
                "anesthesia",
                "operating_room",
                "incubator",
                "ultrasound_ob",
                "anesthetist",
            ),
            label="OB/GYN",
        ),
        "cardiac": ContextProfile(
            relevant_caps=(
                "emergency_24_7",
                "general_surgery",
                "operating_room",
                "anesthesia",
                "xray",
                "lab_basic",
                "ambulance",
            ),
            label="Cardiac",
        ),
        "blood": ContextProfile(
            relevant_caps=("blood_bank", "lab_basic", "emergency_24_7", "pharmacy"),
            label="Blood / Transfusion",
        ),
        "vitals": ContextProfile(
            relevant_caps=("emergency_24_7", "ambulance", "lab_basic", "pharmacy", "xray"),
            label="Emergency Vitals",
        ),
        "trauma": ContextProfile(
            relevant_caps=(
                "trauma_surgery",
                "general_surgery",
                "emergency_24_7",
                "ambulance",
                "xray",
                "operating_room",
                "blood_bank",
                "anesthesia",
            ),
            label="Trauma",
        ),
        "pediatric": ContextProfile(
            relevant_caps=(
                "incubator",
                "lab_basic",
                "pharmacy",
                "emergency_24_7",
                "ultrasound_ob",
            ),
            label="Pediatric",
        ),
        "surgical": ContextProfile(
            relevant_caps=(
                "general_surgery",
                "operating_room",
                "anesthesia",
                "anesthetist",
                "blood_bank",
                "xray",
                "lab_basic",
            ),
            label="Surgical",
        ),
    }
)

# Patterns run against lower-cased text.
# Word boundaries are ASCII-only.
# "hemorrhag" matches only as a whole word, never inside "hemorrhage".
KEYWORD_TO_CAP: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"\boperating\s*room\b", re.ASCII), "operating_room"),
    (re.compile(r"\bc[- ]?section\b", re.ASCII), "c_section"),
    (re.compile(r"\bcesarean\b", re.ASCII), "c_section"),
    (
        re.compile(r"\bblood\s*(bank|type|transfus|cross[- ]?match|loss|supply)\b", re.ASCII),
        "blood_bank",
    ),
    (re.compile(r"\btransfusion\b", re.ASCII), "blood_bank"),
    (re.compile(r"\bcross[- ]?match\b", re.ASCII), "blood_bank"),
    (re.compile(r"\bhemorrhag\b", re.ASCII), "blood_bank"),
    (re.compile(r"\bhaemorrhag\b", re.ASCII), "blood_bank"),
    (re.compile(r"\bincubator\b", re.ASCII), "incubator"),
    (re.compile(r"\bnicu\b", re.ASCII), "incubator"),
    (re.compile(r"\bneonatal\b", re.ASCII), "incubator"),
    (re.compile(r"\banesthesi(a|st)\b", re.ASCII), "anesthesia"),
    (re.compile(r"\banesthetist\b", re.ASCII), "anesthetist"),
    (re.compile(r"\bultrasound\b", re.ASCII), "ultrasound_ob"),
    (re.compile(r"\bx[- ]?ray\b", re.ASCII), "xray"),
    (re.compile(r"\bradiolog\b", re.ASCII), "xray"),
    (re.compile(r"\bambulance\b", re.ASCII), "ambulance"),
    (re.compile(r"\bemergency\b", re.ASCII), "emergency_24_7"),
    (re.compile(r"\b24/?7\b", re.ASCII), "emergency_24_7"),
    (re.compile(r"\blab(oratory)?\b", re.ASCII), "lab_basic"),
    (re.compile(r"\bpharmacy\b", re.ASCII), "pharmacy"),
    (re.compile(r"\bgeneral\s*surg(ery)?\b", re.ASCII), "general_surgery"),
    (re.compile(r"\btrauma\s*surg(ery)?\b", re.ASCII), "trauma_surgery"),
    (re.compile(r"\bdeliver(y|ies)?\b", re.ASCII), "delivery_natural"),
    (re.compile(r"\bmaternal\b", re.ASCII), "delivery_natural"),
)

CONTEXT_RULES: tuple[tuple[re.Pattern, ClinicalContext], ...] = (
    (
        re.compile(
            r"\b(c[- ]?section|obstetric|preeclampsia|eclampsia|ob/gyn|obgyn|maternal|"
            r"delivery|labor|gestation|nicu|prenatal|postnatal|pregnancy|pregnant)\b",
            re.ASCII,
        ),
        "obstetric",
    ),
    (
        re.compile(
            r"\b(cardiac|heart|cardio|chest pain|myocard|arrhythmia|coronary|aortic)\b",
            re.ASCII,
        ),
        "cardiac",
    ),
    (
        re.compile(
            r"\b(blood\s?(type|bank|transfus|cross[- ]?match|loss)|hemorrhag|bleeding|"
            r"anemia|haemorrhag)\b",
            re.ASCII,
        ),
        "blood",
    ),
    (
        re.compile(
            r"\b(vital\s?signs?|unstable|bp|blood pressure|hypotens|hypertens|tachycard|"
            r"bradycard|fever|temperature|spo2|oxygen)\b",
            re.ASCII,
        ),
        "vitals",
    ),
    (
        re.compile(
            r"\b(trauma|accident|fracture|broken|injury|wound|burn|crash|fall|assault)\b",
            re.ASCII,
        ),
        "trauma",
    ),
    (
        re.compile(r"\b(pediatric|child|infant|neonate|newborn|baby|toddler)\b", re.ASCII),
        "pediatric",
    ),
    (
        re.compile(
            r"\b(surg(ery|ical)|operat(ion|ing)|appendect|cholecyst|hernia|laparoscop|"
            r"amputation)\b",
            re.ASCII,
        ),
        "surgical",
    ),
)


def _lower(text: Any) -> str:
    if text is None:
        return ""
    return (text if isinstance(text, str) else str(text)).lower()


def detect_required_caps(text: str) -> list[str]:
    """Extract the capability keys mentioned in free text.

    Returns:
        Matched capability keys without duplicates, in rule order.
    """
    lower = _lower(text)
    found: list[str] = []
    for pattern, cap in KEYWORD_TO_CAP:
        if cap not in found and pattern.search(lower):
            found.append(cap)
    return found


def detect_clinical_intent(text: str) -> DetectedIntent:
    """Detect the clinical context and required capabilities of free text.

    Never raises: empty or unrecognised text yields the "general" context.

    Example:
        >>> detect_clinical_intent("severe preeclampsia, 34 weeks gestation").context
        'obstetric'
    """
    lower = _lower(text)
    required_caps = detect_required_caps(lower)
    for pattern, context in CONTEXT_RULES:
        if pattern.search(lower):
            return DetectedIntent(context=context, required_caps=required_caps)
    return DetectedIntent(context=DEFAULT_CONTEXT, required_caps=required_caps)


def detect_clinical_context(text: str) -> ClinicalContext:
    """Context-only shorthand for detect_clinical_intent."""
    return detect_clinical_intent(text).context
