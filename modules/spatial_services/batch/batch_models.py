"""Batch Processing Models"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from ..models import SpatialModel


class OperationKind(str, Enum):
    PROXIMITY = "proximity"
    BOUNDARY = "boundary"
    STATISTICAL = "statistical"


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class BatchOperation(SpatialModel):
    """One caller-identified operation; ``kind`` is checked at dispatch so that
    unknown kinds become error outcomes instead of rejecting the batch."""
    id: str = Field(..., min_length=1)
    kind: str
    parameters: Dict[str, Any] = Field(default_factory=dict)


class BatchOptions(SpatialModel):
    batch_size: Optional[int] = Field(None, description="Group size; capped by the hard maximum and the operation count")
    fail_fast: bool = False


class BatchRequest(SpatialModel):
    operations: List[BatchOperation] = Field(default_factory=list)
    options: BatchOptions = Field(default_factory=BatchOptions)


class BatchOutcome(SpatialModel):
    id: str
    kind: str
    status: OutcomeStatus
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    error_code: Optional[str] = None


class BatchSummary(SpatialModel):
    total: int = Field(ge=0)
    successful: int = Field(ge=0)
    failed: int = Field(ge=0)
    processed: int = Field(ge=0)
    skipped: int = Field(ge=0)
    batch_size: int = Field(gt=0)
    processing_time_ms: float = Field(ge=0)


class BatchResult(SpatialModel):
    """Outcomes in input order; a strict prefix of the input when fail-fast stopped early."""
    job_id: str
    results: List[BatchOutcome] = Field(default_factory=list)
    summary: BatchSummary


class ActiveJob(SpatialModel):
    job_id: str
    total_operations: int = Field(ge=0)
    processed_operations: int = Field(0, ge=0)
    batch_size: int = Field(gt=0)
    started_at: datetime
    progress_percent: float = Field(0.0, ge=0.0, le=100.0)
    duration_ms: float = Field(0.0, ge=0)
