"""Performance Monitoring for the Spatial Services

Rolling latency/outcome samples, threshold alerts and system health.
"""

from .performance_models import (
    OutcomeClass,
    AlertSeverity,
    AlertCategory,
    ThresholdDirection,
    PerformanceSample,
    OperationStats,
    PerformanceStatistics,
    ThresholdTier,
    ThresholdRule,
    Alert,
    ComponentHealth,
    SystemHealthStatus,
)
from .operation_tracking import OperationContext, classify_outcome, track_operation
from .performance_monitoring_service import PerformanceMonitoringService, build_threshold_rules

__all__ = [
    'OutcomeClass',
    'AlertSeverity',
    'AlertCategory',
    'ThresholdDirection',
    'PerformanceSample',
    'OperationStats',
    'PerformanceStatistics',
    'ThresholdTier',
    'ThresholdRule',
    'Alert',
    'ComponentHealth',
    'SystemHealthStatus',
    'OperationContext',
    'classify_outcome',
    'track_operation',
    'PerformanceMonitoringService',
    'build_threshold_rules',
]
