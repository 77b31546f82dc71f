"""
Custom exceptions for the G-NAF Spatial Services system.

This module provides domain-specific exception classes for error handling
and debugging throughout the system.
"""

from .custom_exceptions import (
    GnafBaseException,
    ConfigurationError,
    InvalidInputError,
    MissingLocationError,
    InvalidCoordinatesError,
    OutOfTerritoryError,
    UnknownReferenceSystemError,
    GeocodingFailedError,
    NotFoundError,
    LocalityNotFoundError,
    StatisticalDataNotFoundError,
    UnsupportedOperationError,
    DependencyFailureError,
    DatastoreConnectionError,
)

__all__ = [
    "GnafBaseException",
    "ConfigurationError",
    "InvalidInputError",
    "MissingLocationError",
    "InvalidCoordinatesError",
    "OutOfTerritoryError",
    "UnknownReferenceSystemError",
    "GeocodingFailedError",
    "NotFoundError",
    "LocalityNotFoundError",
    "StatisticalDataNotFoundError",
    "UnsupportedOperationError",
    "DependencyFailureError",
    "DatastoreConnectionError",
]
