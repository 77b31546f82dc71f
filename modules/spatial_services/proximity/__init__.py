"""Proximity Search around a coordinate or address."""

from .proximity_models import ProximityRequest, ProximityMatch, ProximitySummary, ProximityResult
from .spatial_analytics_service import SpatialAnalyticsService

__all__ = [
    'ProximityRequest',
    'ProximityMatch',
    'ProximitySummary',
    'ProximityResult',
    'SpatialAnalyticsService',
]
