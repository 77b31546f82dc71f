"""Performance Monitoring Models

Samples, aggregate statistics, threshold rules and alerts used by the
performance monitoring service.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from gnaf_core.connection import DatabaseMetrics
from gnaf_core.interfaces import HealthState
from ..caching import CacheStatistics
from ..models import SpatialModel


class OutcomeClass(str, Enum):
    """Outcome of a completed operation."""
    SUCCESS = "success"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"


class AlertSeverity(str, Enum):
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AlertCategory(str, Enum):
    LATENCY = "latency"
    ERROR_RATE = "error_rate"
    THROUGHPUT = "throughput"
    CONNECTION_POOL = "connection_pool"
    CACHE = "cache"


class ThresholdDirection(str, Enum):
    ABOVE = "above"
    BELOW = "below"


class PerformanceSample(SpatialModel):
    """One completed operation."""
    timestamp: datetime
    operation_name: str
    latency_ms: float = Field(ge=0)
    outcome_class: OutcomeClass
    cache_hit: bool = False
    memory_mb: Optional[float] = Field(None, ge=0, description="Process resident memory when recorded")


class OperationStats(SpatialModel):
    """Aggregates for a single operation name over a window."""
    operation_name: str
    request_count: int = Field(ge=0)
    mean_latency_ms: float = Field(0.0, ge=0)
    error_rate: float = Field(0.0, ge=0, le=1)
    cache_hit_ratio: float = Field(0.0, ge=0, le=1)


class PerformanceStatistics(SpatialModel):
    """Aggregates over every sample in a trailing window.

    Rates and ratios are fractions in ``[0, 1]``; throughput is operations
    per second over the whole window.
    """
    window_seconds: float = Field(gt=0)
    sample_count: int = Field(0, ge=0)
    mean_latency_ms: float = Field(0.0, ge=0)
    p95_latency_ms: float = Field(0.0, ge=0)
    p99_latency_ms: float = Field(0.0, ge=0)
    error_rate: float = Field(0.0, ge=0, le=1)
    throughput_per_second: float = Field(0.0, ge=0)
    cache_hit_ratio: float = Field(0.0, ge=0, le=1)
    top_operations: List[OperationStats] = Field(default_factory=list)


class ThresholdTier(BaseModel):
    severity: AlertSeverity
    value: float


class ThresholdRule(BaseModel):
    """A metric compared against severity tiers listed from least to most severe.

    Only the most severe crossed tier fires for a rule per check.
    """
    metric: str = Field(..., description="Name of the observed metric")
    category: AlertCategory
    direction: ThresholdDirection = ThresholdDirection.ABOVE
    tiers: List[ThresholdTier] = Field(..., min_length=1)
    description: str = Field(..., description="Human readable metric name used in alert messages")

    def crossed_tier(self, observed: float) -> Optional[ThresholdTier]:
        """Return the most severe tier crossed by ``observed``, if any."""
        crossed = None
        for tier in self.tiers:
            if self.direction == ThresholdDirection.ABOVE and observed > tier.value:
                crossed = tier
            elif self.direction == ThresholdDirection.BELOW and observed < tier.value:
                crossed = tier
        return crossed


class Alert(SpatialModel):
    id: str
    category: AlertCategory
    severity: AlertSeverity
    message: str
    threshold_value: float
    observed_value: float
    created_at: datetime
    resolved: bool = False
    resolved_at: Optional[datetime] = None


class ComponentHealth(SpatialModel):
    status: HealthState
    details: Dict[str, Any] = Field(default_factory=dict)


class SystemHealthStatus(SpatialModel):
    """Synchronous health snapshot for the transport layer's health endpoints."""
    status: HealthState
    timestamp: datetime
    database: ComponentHealth
    cache: ComponentHealth
    performance: ComponentHealth
    database_metrics: DatabaseMetrics
    cache_statistics: Dict[str, CacheStatistics] = Field(default_factory=dict)
    statistics: PerformanceStatistics
    alerts: List[Alert] = Field(default_factory=list)
    memory_mb: float = Field(0.0, ge=0)
