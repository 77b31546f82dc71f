"""Spatial Services Module

Geocoding, reverse geocoding, proximity search, administrative boundary and
statistical area lookup over the G-NAF gazetteer, with grouped batch execution
and rolling performance monitoring.
"""

from .batch import BatchSpatialService
from .boundaries import BoundaryService
from .caching import SpatialCache
from .coordinates import CoordinateTransform
from .geocoding import GeocodingService
from .monitoring import PerformanceMonitoringService
from .proximity import SpatialAnalyticsService
from .statistical_areas import StatisticalAreaService

__all__ = [
    'BatchSpatialService',
    'BoundaryService',
    'SpatialCache',
    'CoordinateTransform',
    'GeocodingService',
    'PerformanceMonitoringService',
    'SpatialAnalyticsService',
    'StatisticalAreaService',
]
