"""Statistical area (SA1-SA4) classification."""

from .statistical_models import (
    Accuracy,
    StatisticalRequest,
    StatisticalLevel,
    StatisticalHierarchy,
    ClassificationMetadata,
    StatisticalClassification,
    UNKNOWN,
    state_for_code,
    derive_levels,
    derive_hierarchy,
    derive_accuracy,
    derive_classification,
)
from .statistical_area_service import StatisticalAreaService

__all__ = [
    'Accuracy',
    'StatisticalRequest',
    'StatisticalLevel',
    'StatisticalHierarchy',
    'ClassificationMetadata',
    'StatisticalClassification',
    'UNKNOWN',
    'state_for_code',
    'derive_levels',
    'derive_hierarchy',
    'derive_accuracy',
    'derive_classification',
    'StatisticalAreaService',
]
