"""Per-operation sample recording for the spatial services."""

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, TYPE_CHECKING

from .performance_models import OutcomeClass

if TYPE_CHECKING:
    from .performance_monitoring_service import PerformanceMonitoringService


class OperationContext:
    """Mutable per-operation state filled in by the tracked code."""

    def __init__(self):
        self.cache_hit = False


def classify_outcome(error: Optional[BaseException]) -> OutcomeClass:
    if error is None:
        return OutcomeClass.SUCCESS
    if getattr(error, "is_client_error", False):
        return OutcomeClass.CLIENT_ERROR
    return OutcomeClass.SERVER_ERROR


@asynccontextmanager
async def track_operation(monitor: Optional["PerformanceMonitoringService"],
                          operation_name: str) -> AsyncIterator[OperationContext]:
    """Record one sample for the wrapped block; a ``None`` monitor records nothing.

    Exceptions are re-raised after their outcome class is recorded.
    """
    context = OperationContext()
    start = time.perf_counter()
    try:
        yield context
    except Exception as e:
        if monitor is not None:
            monitor.record_sample(
                operation_name, (time.perf_counter() - start) * 1000, classify_outcome(e), context.cache_hit
            )
        raise
    if monitor is not None:
        monitor.record_sample(
            operation_name, (time.perf_counter() - start) * 1000, OutcomeClass.SUCCESS, context.cache_hit
        )
