"""PatientSafe configuration from environment variables.

All settings are optional. Blank values count as unset.

Environment variables:
    PATIENTSAFE_FACILITIES_PATH: Local facility JSON export
        (default: data/output/facilities_full.json)
    PATIENTSAFE_FACILITIES_URL: HTTP endpoint serving the same JSON; tried
        before the local file when set
    PATIENTSAFE_HTTP_TIMEOUT: Seconds to wait for the endpoint (default: 10)
    PATIENTSAFE_RECOMMENDATION_LIMIT: Recommendations per ranking (default: 3)
    PATIENTSAFE_SPECIALTY_LIMIT: Specialty filter options (default: 10)
"""

import math
import os
from dataclasses import dataclass
from pathlib import Path

from patientsafe.core.exceptions import ConfigurationError

DEFAULT_FACILITIES_PATH = Path("data/output/facilities_full.json")
DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_RECOMMENDATION_LIMIT = 3
DEFAULT_SPECIALTY_LIMIT = 10


@dataclass(frozen=True)
class PatientSafeConfig:
    """Immutable runtime config."""

    facilities_path: Path = DEFAULT_FACILITIES_PATH
    facilities_url: str | None = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    recommendation_limit: int = DEFAULT_RECOMMENDATION_LIMIT
    specialty_limit: int = DEFAULT_SPECIALTY_LIMIT

    @property
    def remote_configured(self) -> bool:
        """True if a facilities endpoint is set."""
        return bool(self.facilities_url)


def _env(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _positive_number(name: str, default: float, cast: type) -> float:
    raw = _env(name)
    if raw is None:
        return default
    try:
        value = cast(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be a {cast.__name__}, got {raw!r}", variable=name
        ) from e
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {raw!r}", variable=name)
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}", variable=name)
    return value


def get_config() -> PatientSafeConfig:
    """Read PatientSafe config from environment.

    Raises:
        ConfigurationError: If a numeric setting is malformed or not positive.
    """
    path = _env("PATIENTSAFE_FACILITIES_PATH")
    return PatientSafeConfig(
        facilities_path=Path(path) if path else DEFAULT_FACILITIES_PATH,
        facilities_url=_env("PATIENTSAFE_FACILITIES_URL"),
        http_timeout=_positive_number(
            "PATIENTSAFE_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT, float
        ),
        recommendation_limit=_positive_number(
            "PATIENTSAFE_RECOMMENDATION_LIMIT", DEFAULT_RECOMMENDATION_LIMIT, int
        ),
        specialty_limit=_positive_number(
            "PATIENTSAFE_SPECIALTY_LIMIT", DEFAULT_SPECIALTY_LIMIT, int
        ),
    )
