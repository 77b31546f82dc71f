"""
Configuration management module for the G-NAF Spatial Services system.

This module provides configuration loading and validation capabilities for
multi-environment deployments (development and production).
"""

from .config_loader import ConfigLoader
from .settings import (
    BoundedSetting,
    TerritorySettings,
    GeocodingSettings,
    ProximitySettings,
    CacheSettings,
    BatchSettings,
    StatisticalSettings,
    ThresholdSettings,
    MonitoringSettings,
    SpatialServicesSettings,
    DatabaseSettings,
)

__all__ = [
    "ConfigLoader",
    "BoundedSetting",
    "TerritorySettings",
    "GeocodingSettings",
    "ProximitySettings",
    "CacheSettings",
    "BatchSettings",
    "StatisticalSettings",
    "ThresholdSettings",
    "MonitoringSettings",
    "SpatialServicesSettings",
    "DatabaseSettings",
]
