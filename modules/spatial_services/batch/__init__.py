"""Grouped batch execution of spatial operations."""

from .batch_models import (
    OperationKind,
    OutcomeStatus,
    BatchOperation,
    BatchOptions,
    BatchRequest,
    BatchOutcome,
    BatchSummary,
    BatchResult,
    ActiveJob,
)
from .batch_spatial_service import BatchSpatialService

__all__ = [
    'OperationKind',
    'OutcomeStatus',
    'BatchOperation',
    'BatchOptions',
    'BatchRequest',
    'BatchOutcome',
    'BatchSummary',
    'BatchResult',
    'ActiveJob',
    'BatchSpatialService',
]
