"""
Interfaces for the G-NAF Spatial Services system.

This module provides the abstract service interface and the status and health
models shared by all spatial services.
"""

from .spatial_service import (
    SpatialService,
    ServiceStatus,
    HealthCheckResult,
    HealthState,
    worst_state,
)

__all__ = [
    "SpatialService",
    "ServiceStatus",
    "HealthCheckResult",
    "HealthState",
    "worst_state",
]
