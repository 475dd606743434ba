"""Facility normalization: the only boundary between raw JSON and Facility.

The facility export has no enforced schema. Every field beyond
``facility_id`` may be missing, capability groups may have the wrong shape,
and coordinates may be strings, NaN or infinite. ``RawFacility`` accepts all
of that and coerces it to safe defaults; ``parse_facilities`` turns the
result into read-only ``Facility`` records.

Usage:
    from patientsafe.core.parsing import parse_facilities
    facilities = parse_facilities(json.loads(path.read_text()))
"""

import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from patientsafe.core.capabilities import (
    normalize_anomaly,
    normalize_capability_group,
)
from patientsafe.core.models import Facility

logger = logging.getLogger(__name__)

DEFAULT_FACILITY_NAME = "Unknown facility"


def to_finite_number(value: Any) -> float | None:
    """Return value as a float if it is a finite real number, else None.

    Booleans and numeric strings are rejected.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


class RawFacility(BaseModel):
    """Permissive description of one facility as found in the raw export."""

    model_config = ConfigDict(extra="ignore")

    facility_id: str = ""
    name: str = DEFAULT_FACILITY_NAME
    region: str | None = None
    district: str | None = None
    lat: float | None = None
    lon: float | None = None
    facility_type: str | None = None
    maternity: dict[str, Any] = {}
    trauma: dict[str, Any] = {}
    infrastructure: dict[str, Any] = {}
    anomalies: list[dict[str, Any]] = []
    raw_specialties: list[str] = []
    raw_procedures: list[str] = []

    @field_validator("facility_id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("name", mode="before")
    @classmethod
    def _stringify_name(cls, v: Any) -> str:
        return DEFAULT_FACILITY_NAME if v is None else str(v)

    @field_validator("region", "district", "facility_type", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> str | None:
        return None if v is None else str(v)

    @field_validator("lat", "lon", mode="before")
    @classmethod
    def _finite_coordinate(cls, v: Any) -> float | None:
        return to_finite_number(v)

    @field_validator("maternity", "trauma", "infrastructure", mode="before")
    @classmethod
    def _mapping_or_empty(cls, v: Any) -> dict[str, Any]:
        if not isinstance(v, Mapping):
            return {}
        return {str(key): value for key, value in v.items()}

    @field_validator("anomalies", mode="before")
    @classmethod
    def _anomaly_mappings(cls, v: Any) -> list[dict[str, Any]]:
        if not isinstance(v, (list, tuple)):
            return []
        return [
            {str(key): value for key, value in item.items()}
            for item in v
            if isinstance(item, Mapping)
        ]

    @field_validator("raw_specialties", "raw_procedures", mode="before")
    @classmethod
    def _text_items(cls, v: Any) -> list[str]:
        if not isinstance(v, (list, tuple)):
            return []
        return [item for item in v if isinstance(item, str)]

    def to_facility(self) -> Facility:
        return Facility(
            facility_id=self.facility_id,
            name=self.name,
            region=self.region,
            district=self.district,
            lat=self.lat,
            lon=self.lon,
            facility_type=self.facility_type,
            maternity=normalize_capability_group(self.maternity),
            trauma=normalize_capability_group(self.trauma),
            infrastructure=normalize_capability_group(self.infrastructure),
            anomalies=tuple(normalize_anomaly(item) for item in self.anomalies),
            raw_specialties=tuple(self.raw_specialties),
            raw_procedures=tuple(self.raw_procedures),
        )


def parse_facilities(raw: Any) -> list[Facility]:
    """Normalize a raw facility collection.

    Args:
        raw: A list of facility mappings, or a mapping whose values are
            facility mappings (e.g. keyed by facility id).

    Returns:
        List of Facility records in input order. Entries that are not
        mappings are dropped; falsy or unsupported input yields [].
    """
    if not raw:
        return []
    if isinstance(raw, Mapping):
        candidates = list(raw.values())
    elif isinstance(raw, (list, tuple)):
        candidates = list(raw)
    else:
        logger.debug("Unsupported facility collection type %s", type(raw).__name__)
        return []

    facilities: list[Facility] = []
    for item in candidates:
        if not isinstance(item, Mapping):
            continue
        try:
            record = RawFacility.model_validate(dict(item))
        except ValidationError as e:
            logger.debug("Dropping facility %r: %s", item.get("facility_id"), e)
            continue
        facilities.append(record.to_facility())

    dropped = len(candidates) - len(facilities)
    if dropped:
        logger.debug("Dropped %d non-facility entries", dropped)
    return facilities
