"""Spatial Service Interface

This module defines the abstract base class and data models that every spatial
service implements so health and status can be reported consistently to the
transport layer.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, Iterable

from pydantic import BaseModel, Field


class HealthState(str, Enum):
    """Health states, ordered from best to worst."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


_SEVERITY_ORDER = [HealthState.HEALTHY, HealthState.DEGRADED, HealthState.UNHEALTHY]


def worst_state(states: Iterable[HealthState]) -> HealthState:
    """Return the worst of ``states``; an empty iterable is healthy."""
    worst = HealthState.HEALTHY
    for state in states:
        if _SEVERITY_ORDER.index(state) > _SEVERITY_ORDER.index(worst):
            worst = state
    return worst


class HealthCheckResult(BaseModel):
    """Result data model for a service health check.

    Health checks never raise: a failing dependency is reported as an
    ``unhealthy`` status with the failure message in ``details``.
    """

    status: HealthState = Field(..., description="Overall health of the service")
    details: Dict[str, Any] = Field(default_factory=dict, description="Check specific diagnostic values")
    checked_at: datetime = Field(default_factory=datetime.now, description="When the check ran")


class ServiceStatus(BaseModel):
    """Status data model for service configuration and activity reporting."""

    service_name: str = Field(..., description="Name of the spatial service")
    is_configured: bool = Field(..., description="Whether the service has the collaborators it needs")
    last_run: Optional[datetime] = Field(None, description="Timestamp of the last completed operation")
    status: str = Field(..., description="Current service status: 'ready', 'running', 'error'")
    health_check: Optional[bool] = Field(None, description="Result of the most recent health check, if any")


class SpatialService(ABC):
    """Abstract base class for the spatial services.

    Concrete services record the time of their last completed operation and
    the outcome of their most recent health check, which ``get_status`` reports.
    """

    service_name: str = "spatial_service"

    def __init__(self):
        self._last_run: Optional[datetime] = None
        self._last_health: Optional[bool] = None
        self._last_error: Optional[str] = None

    @abstractmethod
    async def health_check(self) -> HealthCheckResult:
        """Probe the service's dependencies.

        Returns:
            HealthCheckResult: healthy, degraded or unhealthy with details
        """

    def _mark_run(self, error: Optional[BaseException] = None) -> None:
        self._last_run = datetime.now()
        self._last_error = str(error) if error is not None else None

    def _mark_health(self, result: HealthCheckResult) -> HealthCheckResult:
        self._last_health = result.status == HealthState.HEALTHY
        return result

    def get_status(self) -> ServiceStatus:
        """Get current service status.

        Returns:
            ServiceStatus: configuration, last run and health information
        """
        return ServiceStatus(
            service_name=self.service_name,
            is_configured=True,
            last_run=self._last_run,
            status="error" if self._last_error else "ready",
            health_check=self._last_health,
        )
