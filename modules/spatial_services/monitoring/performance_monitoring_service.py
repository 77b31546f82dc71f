"""Performance Monitoring Service

Records a latency/outcome sample per completed spatial operation in a bounded
rolling buffer, aggregates trailing windows with pandas, evaluates a threshold
table into alerts and reports a synchronous system health snapshot.
"""

import asyncio
import logging
import math
import time
import uuid
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Callable, Deque, Dict, List, Optional, Sequence, Tuple

import pandas as pd
import psutil

from gnaf_core.config import MonitoringSettings, ThresholdSettings
from gnaf_core.connection import DatabaseMetrics, GazetteerDatastore
from gnaf_core.exceptions import InvalidInputError
from gnaf_core.interfaces import HealthState, worst_state
from ..caching import SpatialCache
from .performance_models import (
    Alert, AlertCategory, AlertSeverity, ComponentHealth, OperationStats, OutcomeClass,
    PerformanceSample, PerformanceStatistics, SystemHealthStatus, ThresholdDirection,
    ThresholdRule, ThresholdTier
)

logger = logging.getLogger(__name__)

RECENT_ALERT_WINDOW = timedelta(hours=1)
MAX_HEALTH_ALERTS = 10

_SAMPLE_COLUMNS = ["operation_name", "latency_ms", "is_error", "cache_hit"]


def build_threshold_rules(thresholds: ThresholdSettings) -> List[ThresholdRule]:
    """Build the alert threshold table from configured values."""
    return [
        ThresholdRule(
            metric="latency_p95_ms",
            category=AlertCategory.LATENCY,
            description="95th percentile latency",
            tiers=[
                ThresholdTier(severity=AlertSeverity.WARNING, value=thresholds.latency_p95_warning_ms),
                ThresholdTier(severity=AlertSeverity.ERROR, value=thresholds.latency_p95_error_ms),
                ThresholdTier(severity=AlertSeverity.CRITICAL, value=thresholds.latency_p95_critical_ms),
            ],
        ),
        ThresholdRule(
            metric="error_rate",
            category=AlertCategory.ERROR_RATE,
            description="Error rate",
            tiers=[
                ThresholdTier(severity=AlertSeverity.WARNING, value=thresholds.error_rate_warning),
                ThresholdTier(severity=AlertSeverity.ERROR, value=thresholds.error_rate_error),
                ThresholdTier(severity=AlertSeverity.CRITICAL, value=thresholds.error_rate_critical),
            ],
        ),
        ThresholdRule(
            metric="throughput_per_second",
            category=AlertCategory.THROUGHPUT,
            direction=ThresholdDirection.BELOW,
            description="Throughput",
            tiers=[ThresholdTier(severity=AlertSeverity.WARNING, value=thresholds.throughput_floor_warning)],
        ),
        ThresholdRule(
            metric="pool_connections",
            category=AlertCategory.CONNECTION_POOL,
            description="Database connection count",
            tiers=[ThresholdTier(severity=AlertSeverity.WARNING, value=thresholds.pool_saturation_warning)],
        ),
        ThresholdRule(
            metric="cache_hit_ratio",
            category=AlertCategory.CACHE,
            direction=ThresholdDirection.BELOW,
            description="Cache hit ratio",
            tiers=[ThresholdTier(severity=AlertSeverity.WARNING, value=thresholds.cache_hit_floor_warning)],
        ),
    ]


class PerformanceMonitoringService:
    """Rolling performance statistics, threshold alerts and system health.

    The sample buffer is append-only and bounded; the oldest sample is
    dropped on overflow. Alerts are appended without de-duplication and stay
    until they age out of the retention window; ``resolve_alert`` marks one
    resolved by id.

    Args:
        settings: Monitoring settings including the threshold values
        datastore: Source of connection metrics, optional
        caches: Cache tiers whose statistics feed the cache-hit floor and health
        clock: Wall clock in epoch seconds, injectable for tests
    """

    def __init__(self, settings: Optional[MonitoringSettings] = None,
                 datastore: Optional[GazetteerDatastore] = None,
                 caches: Sequence[SpatialCache] = (),
                 clock: Callable[[], float] = time.time):
        self.settings = settings or MonitoringSettings()
        self.datastore = datastore
        self.caches = list(caches)
        self.rules = build_threshold_rules(self.settings.thresholds)
        self._clock = clock
        self._samples: Deque[PerformanceSample] = deque(maxlen=self.settings.buffer_capacity)
        self._alerts: List[Alert] = []
        self._process = psutil.Process()
        self._task: Optional[asyncio.Task] = None
        logger.info(f"PerformanceMonitoringService initialized (buffer {self.settings.buffer_capacity})")

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    def _memory_mb(self) -> float:
        return round(self._process.memory_info().rss / 1024 / 1024, 2)

    def record_sample(self, operation_name: str, latency_ms: float,
                      outcome_class: OutcomeClass = OutcomeClass.SUCCESS,
                      cache_hit: bool = False) -> PerformanceSample:
        """Append a sample for a completed operation."""
        sample = PerformanceSample(
            timestamp=self._now(),
            operation_name=operation_name,
            latency_ms=max(round(latency_ms, 2), 0.0),
            outcome_class=outcome_class,
            cache_hit=cache_hit,
            memory_mb=self._memory_mb(),
        )
        self._samples.append(sample)
        return sample

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @staticmethod
    def _resolve_window(window_seconds: Optional[float], default: float) -> float:
        if window_seconds is None:
            return default
        if not (math.isfinite(window_seconds) and window_seconds > 0):
            raise InvalidInputError("Window must be a positive number of seconds", {"window_seconds": window_seconds})
        return window_seconds

    def _window_frame(self, window_seconds: float, operation_name: Optional[str] = None) -> pd.DataFrame:
        cutoff = self._now() - timedelta(seconds=window_seconds)
        records = [
            {
                "operation_name": s.operation_name,
                "latency_ms": s.latency_ms,
                "is_error": s.outcome_class != OutcomeClass.SUCCESS,
                "cache_hit": s.cache_hit,
            }
            for s in self._samples
            if s.timestamp >= cutoff and (operation_name is None or s.operation_name == operation_name)
        ]
        return pd.DataFrame(records, columns=_SAMPLE_COLUMNS)

    @staticmethod
    def _percentile(sorted_latencies: List[float], fraction: float) -> float:
        index = min(int(len(sorted_latencies) * fraction), len(sorted_latencies) - 1)
        return float(sorted_latencies[index])

    def get_performance_statistics(self, window_seconds: Optional[float] = None) -> PerformanceStatistics:
        """Aggregate samples recorded within the trailing window.

        Args:
            window_seconds: Window length, defaulting to the configured statistics window

        Returns:
            PerformanceStatistics; all zero when the window holds no samples

        Raises:
            InvalidInputError: Window is not a positive number of seconds
        """
        window = self._resolve_window(window_seconds, self.settings.statistics_window_seconds)
        frame = self._window_frame(window)
        if frame.empty:
            return PerformanceStatistics(window_seconds=window)

        latencies = sorted(frame["latency_ms"].tolist())
        grouped = (
            frame.groupby("operation_name")
            .agg(
                request_count=("latency_ms", "size"),
                mean_latency_ms=("latency_ms", "mean"),
                error_rate=("is_error", "mean"),
                cache_hit_ratio=("cache_hit", "mean"),
            )
            .reset_index()
            .sort_values(["request_count", "operation_name"], ascending=[False, True])
            .head(self.settings.top_operations)
        )
        top_operations = [
            OperationStats(
                operation_name=row.operation_name,
                request_count=int(row.request_count),
                mean_latency_ms=round(float(row.mean_latency_ms), 2),
                error_rate=round(float(row.error_rate), 4),
                cache_hit_ratio=round(float(row.cache_hit_ratio), 4),
            )
            for row in grouped.itertuples(index=False)
        ]

        return PerformanceStatistics(
            window_seconds=window,
            sample_count=len(frame),
            mean_latency_ms=round(float(frame["latency_ms"].mean()), 2),
            p95_latency_ms=self._percentile(latencies, 0.95),
            p99_latency_ms=self._percentile(latencies, 0.99),
            error_rate=round(float(frame["is_error"].mean()), 4),
            throughput_per_second=round(len(frame) / window, 4),
            cache_hit_ratio=round(float(frame["cache_hit"].mean()), 4),
            top_operations=top_operations,
        )

    def get_operation_metrics(self, operation_name: str,
                              window_seconds: Optional[float] = None) -> OperationStats:
        """Aggregates for one operation name; defaults to a one hour window."""
        frame = self._window_frame(self._resolve_window(window_seconds, 3600.0), operation_name)
        if frame.empty:
            return OperationStats(operation_name=operation_name, request_count=0)
        return OperationStats(
            operation_name=operation_name,
            request_count=len(frame),
            mean_latency_ms=round(float(frame["latency_ms"].mean()), 2),
            error_rate=round(float(frame["is_error"].mean()), 4),
            cache_hit_ratio=round(float(frame["cache_hit"].mean()), 4),
        )

    def _cache_totals(self) -> Tuple[int, int]:
        hits = requests = 0
        for cache in self.caches:
            stats = cache.get_statistics()
            hits += stats.hits
            requests += stats.requests
        return hits, requests

    def _database_metrics(self) -> DatabaseMetrics:
        return self.datastore.get_metrics() if self.datastore is not None else DatabaseMetrics()

    def _observe_metrics(self, stats: PerformanceStatistics) -> Dict[str, float]:
        observed: Dict[str, float] = {}
        if stats.sample_count:
            observed["latency_p95_ms"] = stats.p95_latency_ms
            observed["error_rate"] = stats.error_rate
            observed["throughput_per_second"] = stats.throughput_per_second
        if self.datastore is not None:
            observed["pool_connections"] = float(self._database_metrics().total_connections)
        hits, requests = self._cache_totals()
        if requests:
            observed["cache_hit_ratio"] = round(hits / requests, 4)
        return observed

    def check_performance_alerts(self) -> List[Alert]:
        """Evaluate the threshold table over the statistics window.

        Metrics without data in the window are skipped. Each crossed rule
        appends one alert at its most severe crossed tier.

        Returns:
            The alerts raised by this check
        """
        self._prune_alerts()
        stats = self.get_performance_statistics()
        observed = self._observe_metrics(stats)

        new_alerts = []
        for rule in self.rules:
            if rule.metric not in observed:
                continue
            value = observed[rule.metric]
            tier = rule.crossed_tier(value)
            if tier is None:
                continue

            relation = "above" if rule.direction == ThresholdDirection.ABOVE else "below"
            alert = Alert(
                id=str(uuid.uuid4()),
                category=rule.category,
                severity=tier.severity,
                message=f"{rule.description} {value} is {relation} {tier.severity.value} threshold {tier.value}",
                threshold_value=tier.value,
                observed_value=value,
                created_at=self._now(),
            )
            self._alerts.append(alert)
            new_alerts.append(alert)
            logger.warning(f"Performance alert [{alert.severity.value}] {alert.message}")

        return new_alerts

    def _prune_alerts(self) -> None:
        cutoff = self._now() - timedelta(hours=self.settings.alert_retention_hours)
        self._alerts = [a for a in self._alerts if a.created_at >= cutoff]

    def get_alerts(self, include_resolved: bool = False) -> List[Alert]:
        self._prune_alerts()
        return [a for a in self._alerts if include_resolved or not a.resolved]

    def resolve_alert(self, alert_id: str) -> bool:
        """Mark an alert resolved.

        Returns:
            True if an alert with ``alert_id`` exists, False otherwise
        """
        for alert in self._alerts:
            if alert.id == alert_id:
                alert.resolved = True
                alert.resolved_at = self._now()
                logger.info(f"Performance alert resolved: {alert_id} ({alert.category.value}, {alert.severity.value})")
                return True
        return False

    def get_system_health_status(self) -> SystemHealthStatus:
        """Synchronous snapshot of database, cache and performance health.

        The overall status is the worst component status. Alerts are the
        unresolved ones raised in the last hour, newest first, at most ten.
        """
        thresholds = self.settings.thresholds
        db_metrics = self._database_metrics()
        database = ComponentHealth(
            status=(HealthState.HEALTHY if db_metrics.total_connections < thresholds.pool_saturation_warning
                    else HealthState.DEGRADED),
            details={
                "connections": db_metrics.total_connections,
                "idle_connections": db_metrics.idle_connections,
                "waiting_clients": db_metrics.waiting_clients,
                "average_query_time_ms": db_metrics.average_query_time_ms,
                "slow_queries": db_metrics.slow_queries,
            },
        )

        cache_statistics = {cache.name: cache.get_statistics() for cache in self.caches}
        hits, requests = self._cache_totals()
        hit_ratio = round(hits / requests, 4) if requests else None
        cache = ComponentHealth(
            status=(HealthState.DEGRADED if hit_ratio is not None and hit_ratio < thresholds.cache_hit_floor_warning
                    else HealthState.HEALTHY),
            details={
                "hit_ratio": hit_ratio,
                "tiers": {name: stats.status for name, stats in cache_statistics.items()},
            },
        )

        stats = self.get_performance_statistics()
        performance = ComponentHealth(
            status=(HealthState.HEALTHY if stats.p95_latency_ms < thresholds.latency_p95_error_ms
                    else HealthState.DEGRADED),
            details={
                "p95_latency_ms": stats.p95_latency_ms,
                "error_rate": stats.error_rate,
                "throughput_per_second": stats.throughput_per_second,
                "cache_hit_ratio": stats.cache_hit_ratio,
            },
        )

        recent_cutoff = self._now() - RECENT_ALERT_WINDOW
        recent_alerts = sorted(
            (a for a in self.get_alerts() if a.created_at >= recent_cutoff),
            key=lambda a: a.created_at,
            reverse=True,
        )[:MAX_HEALTH_ALERTS]

        return SystemHealthStatus(
            status=worst_state([database.status, cache.status, performance.status]),
            timestamp=self._now(),
            database=database,
            cache=cache,
            performance=performance,
            database_metrics=db_metrics,
            cache_statistics=cache_statistics,
            statistics=stats,
            alerts=recent_alerts,
            memory_mb=self._memory_mb(),
        )

    def _log_summary(self) -> None:
        stats = self.get_performance_statistics()
        logger.info(
            f"Performance summary: {stats.sample_count} samples, "
            f"mean {stats.mean_latency_ms}ms, p95 {stats.p95_latency_ms}ms, "
            f"error rate {stats.error_rate:.2%}, throughput {stats.throughput_per_second}/s, "
            f"cache hit ratio {stats.cache_hit_ratio:.2%}"
        )

    async def _run_periodic_checks(self) -> None:
        last_summary = self._clock()
        while True:
            await asyncio.sleep(self.settings.alert_check_interval_seconds)
            try:
                self.check_performance_alerts()
                if self._clock() - last_summary >= self.settings.summary_interval_seconds:
                    self._log_summary()
                    last_summary = self._clock()
            except Exception as e:
                logger.error(f"Performance monitoring check failed: {e}")

    def start(self) -> None:
        """Start the periodic alert check; requires a running event loop."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self._run_periodic_checks())
        logger.info("Performance monitoring started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Performance monitoring stopped")

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()
