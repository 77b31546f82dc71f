"""Coordinate-keyed caching for boundary and statistical lookups."""

from .spatial_cache import SpatialCache, CacheStatistics

__all__ = ['SpatialCache', 'CacheStatistics']
