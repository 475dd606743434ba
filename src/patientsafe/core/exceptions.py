"""Exception hierarchy for PatientSafe.

This module defines all PatientSafe exceptions in a single location. Only the
loading and configuration layers raise them; the derivation functions in
``patientsafe.core`` degrade to documented defaults instead. The CLI catches
and formats them for users.

Exception Hierarchy:
    PatientSafeError (base)
    |-- DatasetError - Facility data could not be loaded
    +-- ConfigurationError - Invalid environment configuration
"""


class PatientSafeError(Exception):
    """Base exception for all PatientSafe errors.

    All PatientSafe-specific exceptions inherit from this class, making it
    easy to catch them with a single except clause.

    Example:
        try:
            facilities = load_facilities()
        except PatientSafeError as e:
            return f"**Error:** {e}"
    """

    pass


class DatasetError(PatientSafeError):
    """Raised when the facility dataset cannot be loaded.

    This covers:
    - Missing or unreadable files
    - Invalid JSON / unsupported table formats
    - HTTP failures when fetching the dataset

    Attributes:
        message: Human-readable error description
        source: Path or URL that failed (optional)
    """

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        super().__init__(message)


class ConfigurationError(PatientSafeError):
    """Raised when an environment setting has an invalid value.

    Attributes:
        message: Human-readable error description
        variable: Name of the offending environment variable (optional)
    """

    def __init__(self, message: str, variable: str | None = None):
        self.variable = variable
        super().__init__(message)
