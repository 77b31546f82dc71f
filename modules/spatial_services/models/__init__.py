"""Shared Data Models for the Spatial Services

Coordinate and address candidate models plus the request parsing helper used
by every spatial service.
"""

from .base import SpatialModel, parse_request
from .coordinate import ReferenceSystem, CoordinatePoint, Coordinate
from .address import (
    PrecisionTier,
    AddressComponents,
    AddressCandidate,
    DEFAULT_RELIABILITY,
    precision_from_row,
    reliability_from_row,
    components_from_row,
    coordinate_from_row,
    candidate_from_row,
)

__all__ = [
    'SpatialModel',
    'parse_request',
    'ReferenceSystem',
    'CoordinatePoint',
    'Coordinate',
    'PrecisionTier',
    'AddressComponents',
    'AddressCandidate',
    'DEFAULT_RELIABILITY',
    'precision_from_row',
    'reliability_from_row',
    'components_from_row',
    'coordinate_from_row',
    'candidate_from_row',
]
