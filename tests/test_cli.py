import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from patientsafe.cli import app
from patientsafe.core.exceptions import DatasetError

runner = CliRunner()


@pytest.fixture(autouse=True)
def inject_version(monkeypatch):
    # Patch __version__ where print_logo imports it
    monkeypatch.setattr("patientsafe.__version__", "0.0.1")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "PATIENTSAFE_FACILITIES_PATH",
        "PATIENTSAFE_FACILITIES_URL",
        "PATIENTSAFE_HTTP_TIMEOUT",
        "PATIENTSAFE_RECOMMENDATION_LIMIT",
        "PATIENTSAFE_SPECIALTY_LIMIT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def data_file(tmp_path, raw_dataset):
    path = tmp_path / "facilities_full.json"
    path.write_text(json.dumps(raw_dataset), encoding="utf-8")
    return str(path)


def test_help_shows_app_name():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "PatientSafe CLI" in result.stdout


def test_version_option_exits_zero_and_shows_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "v0.0.1" in result.stdout


def test_unknown_command_reports_error():
    result = runner.invoke(app, ["not-a-cmd"])
    assert result.exit_code != 0


def test_summary_json(data_file):
    result = runner.invoke(app, ["summary", "--source", data_file, "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["metrics"]["total_facilities"] == 4
    assert payload["metrics"]["c_section_coverage"] == 0.5
    assert payload["action_plan"]["region"] == "Savannah"
    assert payload["recommendations"][0]["name"] == "Tamale Teaching Hospital"
    assert payload["recommendations"][0]["triage_level"] == "critical"


def test_summary_table(data_file):
    result = runner.invoke(app, ["summary", "-s", data_file])
    assert result.exit_code == 0
    assert "Action plan" in result.stdout
    assert "Savannah" in result.stdout


def test_summary_uses_configured_path(data_file, monkeypatch):
    monkeypatch.setenv("PATIENTSAFE_FACILITIES_PATH", data_file)
    monkeypatch.setenv("PATIENTSAFE_RECOMMENDATION_LIMIT", "1")
    result = runner.invoke(app, ["summary", "--json"])
    assert result.exit_code == 0
    assert len(json.loads(result.stdout)["recommendations"]) == 1


def test_recommend_json(data_file):
    result = runner.invoke(
        app, ["recommend", "needs emergency c-section", "-s", data_file, "--json"]
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["intent"]["context"] == "obstetric"
    assert payload["intent"]["required_caps"] == ["c_section", "emergency_24_7"]
    assert payload["matching_facilities"] == ["Tamale Teaching Hospital"]
    assert [r["name"] for r in payload["recommendations"]] == ["Tamale Teaching Hospital"]


def test_recommend_table(data_file):
    result = runner.invoke(app, ["recommend", "good morning", "-s", data_file])
    assert result.exit_code == 0
    assert "General" in result.stdout


def test_markers_filtered_json(data_file):
    result = runner.invoke(
        app, ["markers", "-s", data_file, "--status", "anomaly", "--json"]
    )
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert [m["name"] for m in payload["markers"]] == ["Bole District Hospital"]
    assert payload["counts"] == {"validated": 0, "uncertain": 0, "anomaly": 1, "total": 1}


def test_markers_geojson(data_file):
    result = runner.invoke(app, ["markers", "-s", data_file, "--geojson"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["type"] == "FeatureCollection"
    assert len(payload["features"]) == 3


def test_markers_invalid_category(data_file):
    result = runner.invoke(app, ["markers", "-s", data_file, "--category", "Dental"])
    assert result.exit_code != 0


def test_deserts_json(data_file):
    result = runner.invoke(app, ["deserts", "-s", data_file, "--json"])
    assert result.exit_code == 0
    (zone,) = json.loads(result.stdout)
    assert zone["region"] == "Savannah"
    assert zone["severity"] == "critical"


def test_specialties_limit(data_file):
    result = runner.invoke(app, ["specialties", "-s", data_file, "-n", "2", "--json"])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == ["Obstetrics", "Surgery"]


def test_context(data_file):
    result = runner.invoke(app, ["context", "-s", data_file])
    assert result.exit_code == 0
    assert "COMPLETE FACILITY LIST:" in result.stdout
    assert "- Korle Bu Annex | Greater Accra | clinic | Caps: c_section, blood_bank" in (
        result.stdout
    )


def test_missing_file_exits_with_error(tmp_path):
    result = runner.invoke(app, ["summary", "-s", str(tmp_path / "missing.json")])
    assert result.exit_code == 1
    assert "Could not load facilities" in result.stdout


def test_undecodable_file_shows_error_panel(tmp_path):
    bad = tmp_path / "facilities.json"
    bad.write_bytes(b"\xff\xfe[]")
    result = runner.invoke(app, ["summary", "--source", str(bad)])
    assert result.exit_code == 1
    assert not isinstance(result.exception, UnicodeDecodeError)
    assert "Could not load facilities" in result.stdout


def test_invalid_config_exits_with_error(data_file, monkeypatch):
    monkeypatch.setenv("PATIENTSAFE_SPECIALTY_LIMIT", "many")
    result = runner.invoke(app, ["specialties", "-s", data_file])
    assert result.exit_code == 1
    assert "Configuration error" in result.stdout


def test_dataset_error_from_loader_is_reported():
    with patch(
        "patientsafe.cli.load_facilities",
        side_effect=DatasetError("Failed to load facilities (502)"),
    ):
        result = runner.invoke(app, ["deserts"])
    assert result.exit_code == 1
    assert "502" in result.stdout
