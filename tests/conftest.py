"""Shared fixtures: raw facility builders in the shape of the JSON export."""

import pytest

from patientsafe.core.parsing import parse_facilities


def _cap(value=True, state="ASSERTED", snippet=None):
    """Raw capability record as found in the export."""
    record = {"value": value, "state": state, "confidence": 0.9, "evidence": []}
    if snippet is not None:
        record["evidence"] = [
            {
                "row_id": "r1",
                "source_column": "description",
                "snippet": snippet,
                "evidence_type": "text",
            }
        ]
    return record


def _high_anomaly(reason="Missing blood bank for C-section bundle"):
    return {
        "facility_id": "x",
        "bundle_name": "safe_c_section",
        "anomaly_type": "BUNDLE_INCOMPLETE",
        "severity": "HIGH",
        "reason": reason,
        "required_missing": ["blood_bank"],
        "evidence_rows": [],
    }


@pytest.fixture
def cap():
    return _cap


@pytest.fixture
def high_anomaly():
    return _high_anomaly


@pytest.fixture
def make_facility():
    """Build one normalized Facility from raw keyword fields."""
    counter = {"n": 0}

    def _make(**fields):
        counter["n"] += 1
        raw = {"facility_id": f"f{counter['n']}", "name": f"Facility {counter['n']}"}
        raw.update(fields)
        return parse_facilities([raw])[0]

    return _make


@pytest.fixture
def raw_dataset():
    """Small nested export covering every marker status and category."""
    return [
        {
            "facility_id": "tth",
            "name": "Tamale Teaching Hospital",
            "region": "Northern",
            "district": "Tamale",
            "lat": 9.40,
            "lon": -0.84,
            "facility_type": "hospital",
            "maternity": {
                "c_section": _cap(snippet="Caesarean sections performed daily"),
                "blood_bank": _cap(),
                "anesthesia": _cap(),
                "operating_room": _cap(),
                "incubator": _cap(False),
            },
            "trauma": {"emergency_24_7": _cap()},
            "infrastructure": {"pharmacy": _cap(), "lab_basic": _cap()},
            "anomalies": [],
            "raw_specialties": ["Obstetrics", "Surgery"],
            "raw_procedures": ["Caesarean section"],
        },
        {
            "facility_id": "bol",
            "name": "Bole District Hospital",
            "region": "Savannah",
            "lat": 9.03,
            "lon": -2.48,
            "facility_type": "hospital",
            "maternity": {"c_section": _cap(False), "blood_bank": _cap(None, "UNCERTAIN")},
            "trauma": {"ambulance": _cap()},
            "infrastructure": {},
            "anomalies": [_high_anomaly()],
            "raw_specialties": ["Surgery"],
        },
        {
            "facility_id": "dam",
            "name": "Damongo Health Centre",
            "region": " Savannah ",
            "lat": 9.08,
            "lon": -1.82,
            "facility_type": "health centre",
            "maternity": {"delivery_natural": _cap(None, "UNCERTAIN")},
            "trauma": {},
            "infrastructure": {"pharmacy": _cap()},
            "raw_specialties": ["Obstetrics", "Pediatrics"],
        },
        {
            "facility_id": "kor",
            "name": "Korle Bu Annex",
            "region": "Greater Accra",
            "facility_type": "clinic",
            "maternity": {"c_section": _cap(), "blood_bank": _cap()},
        },
    ]


@pytest.fixture
def dataset(raw_dataset):
    return parse_facilities(raw_dataset)
