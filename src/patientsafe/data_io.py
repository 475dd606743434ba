"""Loading the facility dataset from files, tables and HTTP endpoints.

Three shapes are supported:
  1. The nested JSON export (list, or object keyed by facility id)
  2. The same JSON served over HTTP
  3. A flat "gold wide" table (CSV or Parquet) with one ``<capability>_value``
     column per capability, as exported from the warehouse

Everything ends up in ``parse_facilities``, so the derivation core only
ever sees normalized ``Facility`` records.

Usage:
    from patientsafe.data_io import load_facilities
    facilities = load_facilities()              # configured URL, then file
    facilities = load_facilities("gold.parquet")
"""

from __future__ import annotations

import ast
import json
import logging
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import requests

from patientsafe.config import DEFAULT_HTTP_TIMEOUT, PatientSafeConfig, get_config
from patientsafe.core.exceptions import DatasetError
from patientsafe.core.models import Facility
from patientsafe.core.parsing import parse_facilities

logger = logging.getLogger(__name__)

TABLE_SUFFIXES = (".csv", ".parquet")

# Wide-table capability columns ("<key>_value") and the group they belong to
WIDE_CAPABILITY_COLUMNS: dict[str, tuple[str, ...]] = {
    "maternity": ("c_section", "blood_bank", "operating_room", "anesthesia"),
    "trauma": ("emergency_24_7", "ambulance"),
    "infrastructure": ("pharmacy", "lab_basic"),
}

_WIDE_SCALAR_COLUMNS = ("facility_id", "name", "region", "district", "facility_type", "lat", "lon")

# Free-text list columns: output field -> accepted source columns, in preference order
_WIDE_LIST_COLUMNS: dict[str, tuple[str, ...]] = {
    "raw_specialties": ("raw_specialties", "specialties"),
    "raw_procedures": ("raw_procedures", "procedure"),
}


# ── Helpers ──────────────────────────────────────────────────────────

def safe_parse_list(raw: Any) -> list[str]:
    """Parse a cell value that looks like a Python list literal into an actual list.

    Handles: Python list literals ['a', 'b'], JSON arrays, real lists, null,
    NaN, empty strings, "[]", "nan", "None", "null", and malformed strings.
    """
    if isinstance(raw, (list, tuple, np.ndarray)):
        return [str(item).strip() for item in raw if str(item).strip()]
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return []
    s = str(raw).strip()
    if s in ("", "[]", "nan", "None", "null"):
        return []
    try:
        parsed = ast.literal_eval(s)
        if isinstance(parsed, list):
            return [str(item).strip() for item in parsed if str(item).strip()]
        return [str(parsed).strip()] if str(parsed).strip() else []
    except (ValueError, SyntaxError):
        return [s] if s else []


def _cell(value: Any) -> Any:
    """Convert a DataFrame cell to a plain Python value (NaN/NA -> None)."""
    if isinstance(value, np.generic):
        value = value.item()
    if value is None:
        return None
    if isinstance(value, float) and np.isnan(value):
        return None
    if value is pd.NA or value is pd.NaT:
        return None
    return value


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


# ── Nested JSON ──────────────────────────────────────────────────────

def load_facilities_json(path: str | Path) -> list[Facility]:
    """Read and normalize a nested facility JSON export.

    Raises:
        DatasetError: If the file is missing, unreadable or not valid JSON.
    """
    path = Path(path)
    if not path.is_file():
        raise DatasetError(f"Facility file not found: {path}", source=str(path))
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise DatasetError(f"Could not read {path}: {e}", source=str(path)) from e
    except json.JSONDecodeError as e:
        raise DatasetError(f"Invalid JSON in {path}: {e}", source=str(path)) from e

    facilities = parse_facilities(raw)
    logger.info("Loaded %d facilities from %s", len(facilities), path)
    return facilities


def fetch_facilities(url: str, timeout: float = DEFAULT_HTTP_TIMEOUT) -> list[Facility]:
    """Fetch and normalize the facility JSON from an HTTP endpoint.

    Raises:
        DatasetError: On transport failures, non-2xx responses or invalid JSON.
    """
    try:
        resp = requests.get(url, timeout=timeout, headers={"Cache-Control": "no-store"})
    except requests.RequestException as e:
        raise DatasetError(f"Failed to load facilities from {url}: {e}", source=url) from e

    if not resp.ok:
        raise DatasetError(
            f"Failed to load facilities ({resp.status_code})", source=url
        )
    try:
        raw = resp.json()
    except ValueError as e:
        raise DatasetError(f"Invalid JSON from {url}: {e}", source=url) from e

    facilities = parse_facilities(raw)
    logger.info("Fetched %d facilities from %s", len(facilities), url)
    return facilities


# ── Wide table ───────────────────────────────────────────────────────

def facilities_from_wide_table(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a flat wide table into nested raw facility records.

    Capability columns named ``<key>_value`` (see WIDE_CAPABILITY_COLUMNS)
    become ``{"value": ...}`` entries of their group. Missing columns and
    NaN cells become None. The result is meant for ``parse_facilities``.
    """
    records: list[dict[str, Any]] = []
    for row in df.to_dict(orient="records"):
        record: dict[str, Any] = {
            col: _cell(row.get(col)) for col in _WIDE_SCALAR_COLUMNS if col in row
        }
        for group, keys in WIDE_CAPABILITY_COLUMNS.items():
            record[group] = {
                key: {"value": _cell(row.get(f"{key}_value"))}
                for key in keys
                if f"{key}_value" in row
            }
        for field_name, columns in _WIDE_LIST_COLUMNS.items():
            source = next((col for col in columns if col in row), None)
            record[field_name] = safe_parse_list(row[source]) if source else []
        records.append(record)
    return records


def load_wide_table(path: str | Path) -> list[Facility]:
    """Read a CSV or Parquet wide table and normalize it.

    Raises:
        DatasetError: If the file is missing, has an unsupported suffix or
            cannot be parsed.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in TABLE_SUFFIXES:
        raise DatasetError(
            f"Unsupported table format '{suffix}' (expected one of {', '.join(TABLE_SUFFIXES)})",
            source=str(path),
        )
    if not path.is_file():
        raise DatasetError(f"Facility table not found: {path}", source=str(path))

    try:
        df = pd.read_csv(path) if suffix == ".csv" else pd.read_parquet(path)
    except (OSError, ValueError, ImportError) as e:
        raise DatasetError(f"Could not read {path}: {e}", source=str(path)) from e

    logger.info("Loaded %d rows from %s", len(df), path)
    return parse_facilities(facilities_from_wide_table(df))


# ── Source resolution ────────────────────────────────────────────────

def load_from_source(source: str | Path, timeout: float = DEFAULT_HTTP_TIMEOUT) -> list[Facility]:
    """Load from a URL, a wide table (.csv/.parquet) or a JSON file."""
    source_str = str(source)
    if _is_url(source_str):
        return fetch_facilities(source_str, timeout=timeout)
    if Path(source_str).suffix.lower() in TABLE_SUFFIXES:
        return load_wide_table(source_str)
    return load_facilities_json(source_str)


def load_facilities(
    source: str | Path | None = None, config: PatientSafeConfig | None = None
) -> list[Facility]:
    """Load the facility dataset.

    Resolution order:
    1. ``source`` when given (no fallback)
    2. The configured URL; if it fails and the configured file exists,
       fall back to the file with a warning
    3. The configured file

    Raises:
        DatasetError: If no source could be loaded.
    """
    if source is not None:
        timeout = config.http_timeout if config else DEFAULT_HTTP_TIMEOUT
        return load_from_source(source, timeout=timeout)

    config = config or get_config()
    if config.remote_configured:
        try:
            return fetch_facilities(config.facilities_url, timeout=config.http_timeout)
        except DatasetError as e:
            if not config.facilities_path.is_file():
                raise
            logger.warning("%s; using local fallback %s", e, config.facilities_path)

    return load_from_source(config.facilities_path, timeout=config.http_timeout)
