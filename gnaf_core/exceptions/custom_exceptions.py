"""
Custom exception classes for the G-NAF Spatial Services system.

This module defines the domain-specific exception taxonomy. Every exception
carries a stable ``error_code`` and a human-readable message; the transport
layer maps these codes onto its own status codes.
"""

from typing import Optional, Dict, Any


class GnafBaseException(Exception):
    """Base exception class for all G-NAF spatial service exceptions."""

    error_code = "GNAF_ERROR"
    is_client_error = False

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error as a stable ``{code, message, details}`` payload."""
        return {
            "code": self.error_code,
            "message": self.message,
            "details": dict(self.context),
        }


class ConfigurationError(GnafBaseException):
    """
    Exception raised when configuration loading or validation fails.

    This exception is raised when:
    - Configuration files are missing or invalid
    - Environment configuration is malformed
    - Required configuration values are missing
    """

    error_code = "CONFIGURATION_ERROR"


class InvalidInputError(GnafBaseException):
    """
    Exception raised for malformed, missing or over-length caller input.

    This exception is raised when:
    - An address is empty or exceeds the maximum length
    - A request payload fails model validation
    - A batch request is empty, too large or has duplicate operation ids
    """

    error_code = "INVALID_INPUT"
    is_client_error = True


class MissingLocationError(InvalidInputError):
    """Raised when neither coordinates nor an address were supplied."""

    error_code = "MISSING_LOCATION"


class InvalidCoordinatesError(GnafBaseException):
    """Raised when coordinates cannot be used for a spatial lookup."""

    error_code = "INVALID_COORDINATES"
    is_client_error = True


class OutOfTerritoryError(InvalidCoordinatesError):
    """Raised when a coordinate falls outside the Australian territorial bound."""

    error_code = "OUT_OF_TERRITORY"


class UnknownReferenceSystemError(InvalidCoordinatesError):
    """Raised for an unrecognized coordinate reference system name."""

    error_code = "UNKNOWN_REFERENCE_SYSTEM"


class GeocodingFailedError(GnafBaseException):
    """Raised when an address could not be resolved to a coordinate."""

    error_code = "GEOCODING_FAILED"
    is_client_error = True


class NotFoundError(GnafBaseException):
    """Raised when no enclosing boundary or statistical area exists."""

    error_code = "NOT_FOUND"
    is_client_error = True


class LocalityNotFoundError(NotFoundError):
    """Raised when the boundary containment query returns no locality."""

    error_code = "LOCALITY_NOT_FOUND"


class StatisticalDataNotFoundError(NotFoundError):
    """Raised when the statistical-area query returns no row."""

    error_code = "STATISTICAL_DATA_NOT_FOUND"


class UnsupportedOperationError(GnafBaseException):
    """Raised for an unknown batch operation kind."""

    error_code = "UNSUPPORTED_OPERATION"
    is_client_error = True


class DependencyFailureError(GnafBaseException):
    """
    Exception raised when the gazetteer datastore fails.

    This exception is raised when:
    - A query fails inside the database driver
    - A query exceeds the driver's command timeout
    - The connection pool is not available

    Datastore failures are propagated as-is; this layer never retries them.
    """

    error_code = "DEPENDENCY_FAILURE"


class DatastoreConnectionError(DependencyFailureError):
    """Raised when a connection to the gazetteer datastore cannot be made."""

    error_code = "DATASTORE_CONNECTION_ERROR"
