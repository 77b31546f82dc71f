"""Coordinate validation and conversion for the spatial services."""

from .coordinate_transform import CoordinateTransform, EARTH_RADIUS_METERS

__all__ = ['CoordinateTransform', 'EARTH_RADIUS_METERS']
