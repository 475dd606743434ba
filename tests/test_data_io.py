import json
from unittest import mock

import pandas as pd
import pytest
import requests

from patientsafe.config import DEFAULT_HTTP_TIMEOUT, PatientSafeConfig
from patientsafe.core.exceptions import DatasetError
from patientsafe.data_io import (
    facilities_from_wide_table,
    fetch_facilities,
    load_facilities,
    load_facilities_json,
    load_from_source,
    load_wide_table,
    safe_parse_list,
)


class DummyResponse:
    def __init__(self, payload=None, status_code=200, invalid=False):
        self._payload = payload
        self.status_code = status_code
        self._invalid = invalid

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._invalid:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


@pytest.fixture
def json_file(tmp_path, raw_dataset):
    path = tmp_path / "facilities_full.json"
    path.write_text(json.dumps(raw_dataset), encoding="utf-8")
    return path


# ------------------------------------------------------------
# Nested JSON
# ------------------------------------------------------------


class TestLoadFacilitiesJson:
    def test_loads_list(self, json_file):
        facilities = load_facilities_json(json_file)
        assert [f.facility_id for f in facilities] == ["tth", "bol", "dam", "kor"]

    def test_loads_keyed_object(self, tmp_path, raw_dataset):
        path = tmp_path / "keyed.json"
        path.write_text(
            json.dumps({item["facility_id"]: item for item in raw_dataset}),
            encoding="utf-8",
        )
        assert len(load_facilities_json(path)) == 4

    def test_missing_file(self, tmp_path):
        with pytest.raises(DatasetError, match="not found") as exc_info:
            load_facilities_json(tmp_path / "nope.json")
        assert exc_info.value.source.endswith("nope.json")

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "latin1.json"
        path.write_bytes(b'[{"facility_id": "a", "name": "\xff\xfe"}]')
        with pytest.raises(DatasetError, match="Could not read") as exc_info:
            load_facilities_json(path)
        assert exc_info.value.source == str(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DatasetError, match="Invalid JSON"):
            load_facilities_json(path)


# ------------------------------------------------------------
# HTTP
# ------------------------------------------------------------


class TestFetchFacilities:
    def test_default_timeout_comes_from_config(self, raw_dataset):
        with mock.patch(
            "patientsafe.data_io.requests.get", return_value=DummyResponse(raw_dataset)
        ) as mock_get:
            fetch_facilities("https://example.org/f.json")
        assert mock_get.call_args.kwargs["timeout"] == DEFAULT_HTTP_TIMEOUT

    def test_success(self, raw_dataset):
        with mock.patch(
            "patientsafe.data_io.requests.get", return_value=DummyResponse(raw_dataset)
        ) as mock_get:
            facilities = fetch_facilities("https://example.org/f.json", timeout=3)
        assert len(facilities) == 4
        mock_get.assert_called_once_with(
            "https://example.org/f.json",
            timeout=3,
            headers={"Cache-Control": "no-store"},
        )

    def test_http_error_status(self):
        with mock.patch(
            "patientsafe.data_io.requests.get",
            return_value=DummyResponse(status_code=503),
        ):
            with pytest.raises(DatasetError, match=r"Failed to load facilities \(503\)"):
                fetch_facilities("https://example.org/f.json")

    def test_transport_error(self):
        with mock.patch(
            "patientsafe.data_io.requests.get",
            side_effect=requests.ConnectionError("refused"),
        ):
            with pytest.raises(DatasetError, match="refused"):
                fetch_facilities("https://example.org/f.json")

    def test_invalid_json(self):
        with mock.patch(
            "patientsafe.data_io.requests.get",
            return_value=DummyResponse(invalid=True),
        ):
            with pytest.raises(DatasetError, match="Invalid JSON"):
                fetch_facilities("https://example.org/f.json")


# ------------------------------------------------------------
# Wide table
# ------------------------------------------------------------


def test_safe_parse_list():
    assert safe_parse_list("['Surgery', 'Pediatrics']") == ["Surgery", "Pediatrics"]
    assert safe_parse_list('["Surgery"]') == ["Surgery"]
    assert safe_parse_list(["a", " ", "b"]) == ["a", "b"]
    assert safe_parse_list(float("nan")) == []
    assert safe_parse_list(None) == []
    assert safe_parse_list("[]") == []
    assert safe_parse_list("Surgery") == ["Surgery"]
    assert safe_parse_list("['unterminated") == ["['unterminated"]


class TestWideTable:
    @pytest.fixture
    def wide_df(self):
        return pd.DataFrame(
            [
                {
                    "facility_id": "a",
                    "name": "Alpha Hospital",
                    "region": "Volta",
                    "lat": 6.6,
                    "lon": 0.47,
                    "facility_type": "hospital",
                    "c_section_value": True,
                    "blood_bank_value": None,
                    "emergency_24_7_value": True,
                    "pharmacy_value": False,
                    "specialties": "['Surgery', 'Obstetrics']",
                    "procedure": None,
                },
                {
                    "facility_id": "b",
                    "name": "Beta Clinic",
                    "region": None,
                    "lat": None,
                    "lon": None,
                    "facility_type": "clinic",
                    "c_section_value": None,
                    "blood_bank_value": None,
                    "emergency_24_7_value": None,
                    "pharmacy_value": True,
                    "specialties": None,
                    "procedure": "['Vaccination']",
                },
            ]
        )

    def test_records_are_nested(self, wide_df):
        first, second = facilities_from_wide_table(wide_df)
        assert first["maternity"]["c_section"] == {"value": True}
        assert first["maternity"]["blood_bank"] == {"value": None}
        assert "operating_room" not in first["maternity"]
        assert first["trauma"] == {"emergency_24_7": {"value": True}}
        assert first["raw_specialties"] == ["Surgery", "Obstetrics"]
        assert second["region"] is None
        assert second["lat"] is None
        assert second["raw_procedures"] == ["Vaccination"]

    def test_csv_round_trip(self, tmp_path, wide_df):
        path = tmp_path / "gold_wide.csv"
        wide_df.to_csv(path, index=False)
        alpha, beta = load_wide_table(path)
        assert alpha.name == "Alpha Hospital"
        assert alpha.maternity["c_section"].available
        assert not alpha.maternity["blood_bank"].available
        assert alpha.trauma["emergency_24_7"].available
        assert alpha.is_mappable
        assert beta.region is None
        assert not beta.is_mappable
        assert beta.infrastructure["pharmacy"].available

    def test_unsupported_suffix(self, tmp_path):
        with pytest.raises(DatasetError, match="Unsupported table format"):
            load_wide_table(tmp_path / "facilities.xlsx")

    def test_missing_table(self, tmp_path):
        with pytest.raises(DatasetError, match="not found"):
            load_wide_table(tmp_path / "facilities.parquet")


# ------------------------------------------------------------
# Source resolution
# ------------------------------------------------------------


class TestLoadFacilities:
    def test_explicit_source(self, json_file):
        assert len(load_facilities(json_file)) == 4

    def test_source_dispatch(self, json_file):
        with mock.patch("patientsafe.data_io.fetch_facilities", return_value=[]) as fetch:
            load_from_source("HTTPS://example.org/f.json", timeout=4)
        fetch.assert_called_once_with("HTTPS://example.org/f.json", timeout=4)

        with mock.patch("patientsafe.data_io.load_wide_table", return_value=[]) as wide:
            load_from_source("gold.parquet")
        wide.assert_called_once_with("gold.parquet")

    def test_configured_file(self, json_file):
        config = PatientSafeConfig(facilities_path=json_file)
        assert len(load_facilities(config=config)) == 4

    def test_configured_url_preferred(self, json_file, raw_dataset):
        config = PatientSafeConfig(
            facilities_path=json_file, facilities_url="https://example.org/f.json"
        )
        with mock.patch(
            "patientsafe.data_io.requests.get",
            return_value=DummyResponse(raw_dataset[:1]),
        ):
            assert len(load_facilities(config=config)) == 1

    def test_url_failure_falls_back_to_file(self, json_file, caplog):
        config = PatientSafeConfig(
            facilities_path=json_file, facilities_url="https://example.org/f.json"
        )
        with mock.patch(
            "patientsafe.data_io.requests.get",
            return_value=DummyResponse(status_code=500),
        ):
            facilities = load_facilities(config=config)
        assert len(facilities) == 4
        assert "using local fallback" in caplog.text

    def test_url_failure_without_file_raises(self, tmp_path):
        config = PatientSafeConfig(
            facilities_path=tmp_path / "missing.json",
            facilities_url="https://example.org/f.json",
        )
        with mock.patch(
            "patientsafe.data_io.requests.get",
            return_value=DummyResponse(status_code=404),
        ):
            with pytest.raises(DatasetError, match=r"\(404\)"):
                load_facilities(config=config)

    def test_explicit_source_has_no_fallback(self, json_file):
        config = PatientSafeConfig(facilities_path=json_file)
        with mock.patch(
            "patientsafe.data_io.requests.get",
            return_value=DummyResponse(status_code=500),
        ):
            with pytest.raises(DatasetError):
                load_facilities("https://example.org/f.json", config=config)
