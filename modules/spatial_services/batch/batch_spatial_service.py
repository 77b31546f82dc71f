"""Batch Spatial Service

Runs proximity, boundary and statistical operations in sequential groups.
Operations inside a group run concurrently and each settles into its own
outcome; fail-fast only takes effect between groups.
"""

import asyncio
import logging
import time
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional

from gnaf_core.config import BatchSettings
from gnaf_core.exceptions import GnafBaseException, InvalidInputError, UnsupportedOperationError
from gnaf_core.interfaces import SpatialService, HealthCheckResult, HealthState, worst_state
from ..boundaries import BoundaryService
from ..models import parse_request
from ..monitoring import PerformanceMonitoringService, track_operation
from ..proximity import SpatialAnalyticsService
from ..statistical_areas import StatisticalAreaService
from .batch_models import (
    OperationKind, OutcomeStatus, BatchOperation, BatchRequest, BatchOutcome,
    BatchSummary, BatchResult, ActiveJob
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_CODE = "INTERNAL_ERROR"


class _JobState:
    __slots__ = ("job_id", "total", "processed", "batch_size", "started_at", "start_time")

    def __init__(self, job_id: str, total: int, batch_size: int):
        self.job_id = job_id
        self.total = total
        self.processed = 0
        self.batch_size = batch_size
        self.started_at = datetime.now(timezone.utc)
        self.start_time = time.perf_counter()


class BatchSpatialService(SpatialService):
    """Grouped fan-out of spatial operations.

    Nothing outlives a single ``process_batch`` call except the in-flight job
    entry used for observability.
    """

    service_name = "batch"

    def __init__(self, spatial_analytics: SpatialAnalyticsService, boundary: BoundaryService,
                 statistical: StatisticalAreaService, settings: Optional[BatchSettings] = None,
                 monitor: Optional[PerformanceMonitoringService] = None):
        super().__init__()
        self.spatial_analytics = spatial_analytics
        self.boundary = boundary
        self.statistical = statistical
        self.settings = settings or BatchSettings()
        self.monitor = monitor
        self._active_jobs: Dict[str, _JobState] = {}
        self._jobs_completed = 0
        self._operations_processed = 0
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[Any]]] = {
            OperationKind.PROXIMITY.value: self.spatial_analytics.find_nearby,
            OperationKind.BOUNDARY.value: self.boundary.lookup,
            OperationKind.STATISTICAL.value: self.statistical.classify,
        }
        logger.info("BatchSpatialService initialized")

    def _validate_operations(self, operations: List[BatchOperation]) -> None:
        if not operations:
            raise InvalidInputError("Batch must contain at least one operation")
        if len(operations) > self.settings.max_operations:
            raise InvalidInputError(
                f"Batch must not exceed {self.settings.max_operations} operations",
                {"operations": len(operations)}
            )
        counts = Counter(op.id for op in operations)
        duplicates = sorted(op_id for op_id, count in counts.items() if count > 1)
        if duplicates:
            raise InvalidInputError("Operation ids must be unique within a batch", {"duplicates": ", ".join(duplicates)})

    def effective_batch_size(self, requested: Optional[int], operation_count: int) -> int:
        """Requested size (or the default) capped by the hard maximum and the operation count."""
        size = requested if requested is not None else self.settings.default_batch_size
        return max(1, min(size, self.settings.max_batch_size, operation_count))

    def _batch_operations(self, operations: List[BatchOperation], batch_size: int) -> Iterator[List[BatchOperation]]:
        for i in range(0, len(operations), batch_size):
            yield operations[i:i + batch_size]

    async def _execute_operation(self, operation: BatchOperation) -> BatchOutcome:
        """Run one operation, converting any failure into an error outcome."""
        try:
            handler = self._handlers.get(operation.kind)
            if handler is None:
                raise UnsupportedOperationError(f"Unsupported operation type: {operation.kind}")
            result = await handler(operation.parameters)
            return BatchOutcome(
                id=operation.id, kind=operation.kind, status=OutcomeStatus.SUCCESS, data=result.to_response()
            )
        except Exception as e:
            message = e.message if isinstance(e, GnafBaseException) else str(e)
            error_code = e.error_code if isinstance(e, GnafBaseException) else INTERNAL_ERROR_CODE
            logger.warning(f"Batch operation {operation.id} ({operation.kind}) failed: {message}")
            return BatchOutcome(
                id=operation.id, kind=operation.kind, status=OutcomeStatus.ERROR,
                error=message, error_code=error_code
            )

    async def process_batch(self, request: Any) -> BatchResult:
        """Execute a batch of operations.

        Raises:
            InvalidInputError: Empty batch, too many operations or duplicate ids
        """
        request = parse_request(BatchRequest, request)
        operations = request.operations
        job_id = str(uuid.uuid4())
        start_time = time.perf_counter()

        async with track_operation(self.monitor, "batch"):
            try:
                self._validate_operations(operations)
            except InvalidInputError as e:
                self._mark_run(e)
                logger.error(f"Batch rejected: {e}")
                raise

            batch_size = self.effective_batch_size(request.options.batch_size, len(operations))
            job = _JobState(job_id, len(operations), batch_size)
            self._active_jobs[job_id] = job
            logger.info(
                f"Batch {job_id} started: {len(operations)} operation(s), batch size {batch_size}, "
                f"fail_fast={request.options.fail_fast}"
            )

            outcomes: List[BatchOutcome] = []
            try:
                for group_num, group in enumerate(self._batch_operations(operations, batch_size), 1):
                    group_outcomes = await asyncio.gather(*(self._execute_operation(op) for op in group))
                    outcomes.extend(group_outcomes)
                    job.processed = len(outcomes)
                    group_failures = sum(1 for o in group_outcomes if o.status == OutcomeStatus.ERROR)
                    logger.debug(
                        f"Batch {job_id} group {group_num}: {len(group) - group_failures}/{len(group)} successful"
                    )
                    if request.options.fail_fast and group_failures:
                        logger.warning(
                            f"Batch {job_id} stopped after group {group_num}: fail-fast with "
                            f"{group_failures} failure(s), {len(operations) - len(outcomes)} operation(s) skipped"
                        )
                        break
            finally:
                del self._active_jobs[job_id]

        self._jobs_completed += 1
        self._operations_processed += len(outcomes)
        successful = sum(1 for o in outcomes if o.status == OutcomeStatus.SUCCESS)
        summary = BatchSummary(
            total=len(operations),
            successful=successful,
            failed=len(outcomes) - successful,
            processed=len(outcomes),
            skipped=len(operations) - len(outcomes),
            batch_size=batch_size,
            processing_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        self._mark_run()
        logger.info(
            f"Batch {job_id} completed: {summary.successful}/{summary.total} successful, "
            f"{summary.skipped} skipped in {summary.processing_time_ms:.0f}ms"
        )
        return BatchResult(job_id=job_id, results=outcomes, summary=summary)

    def get_active_jobs(self) -> List[ActiveJob]:
        now = time.perf_counter()
        return [
            ActiveJob(
                job_id=job.job_id,
                total_operations=job.total,
                processed_operations=job.processed,
                batch_size=job.batch_size,
                started_at=job.started_at,
                progress_percent=round(job.processed / job.total * 100, 1) if job.total else 0.0,
                duration_ms=round((now - job.start_time) * 1000, 2),
            )
            for job in self._active_jobs.values()
        ]

    def get_processing_stats(self) -> Dict[str, Any]:
        return {
            "active_jobs": len(self._active_jobs),
            "jobs_completed": self._jobs_completed,
            "operations_processed": self._operations_processed,
            "default_batch_size": self.settings.default_batch_size,
            "max_batch_size": self.settings.max_batch_size,
            "max_operations": self.settings.max_operations,
            "supported_operations": sorted(self._handlers),
        }

    async def health_check(self) -> HealthCheckResult:
        """Aggregate the health of the three services batches dispatch to."""
        checks = await asyncio.gather(
            self.spatial_analytics.health_check(),
            self.boundary.health_check(),
            self.statistical.health_check(),
        )
        states = [check.status for check in checks]
        active_jobs = len(self._active_jobs)

        if all(state == HealthState.UNHEALTHY for state in states):
            status = HealthState.UNHEALTHY
        elif worst_state(states) != HealthState.HEALTHY or active_jobs > self.settings.degraded_active_jobs:
            status = HealthState.DEGRADED
        else:
            status = HealthState.HEALTHY

        return self._mark_health(HealthCheckResult(
            status=status,
            details={
                "spatial_analytics": checks[0].status.value,
                "boundary": checks[1].status.value,
                "statistical": checks[2].status.value,
                "active_jobs": active_jobs,
            }
        ))
