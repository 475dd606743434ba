"""Tests for the chat assistant facility context."""

from patientsafe.core.summary import (
    NO_FACILITY_DATA,
    build_facility_summary,
    confirmed_capabilities,
)


def test_empty_dataset():
    assert build_facility_summary([]) == NO_FACILITY_DATA


def test_sample_dataset(dataset):
    lines = build_facility_summary(dataset).splitlines()
    assert lines[:6] == [
        "FACILITY DATABASE CONTEXT (Ghana Healthcare Network):",
        "- Total facilities: 4",
        "- Facilities with safe C-section: 2",
        "- Facilities with blood bank: 2",
        "- Facilities with 24/7 emergency: 1",
        "- Regions: Northern, Savannah,  Savannah , Greater Accra",
    ]
    assert lines[6:8] == ["", "COMPLETE FACILITY LIST:"]
    assert lines[8] == (
        "- Tamale Teaching Hospital | Northern | hospital | "
        "Caps: c_section, blood_bank, operating_room, anesthesia, "
        "emergency_24_7, pharmacy, lab_basic"
    )
    assert lines[10] == (
        "- Damongo Health Centre |  Savannah  | health centre | Caps: pharmacy"
    )
    assert len(lines) == 12


def test_missing_fields(make_facility):
    lines = build_facility_summary([make_facility(name="Bare")]).splitlines()
    assert lines[-1] == "- Bare | N/A | N/A | Caps: none confirmed"


def test_confirmed_capabilities_ignore_unknown(make_facility, cap):
    facility = make_facility(
        maternity={"c_section": cap(None), "blood_bank": cap(False)},
        trauma={"ambulance": cap()},
    )
    assert confirmed_capabilities(facility) == ["ambulance"]
