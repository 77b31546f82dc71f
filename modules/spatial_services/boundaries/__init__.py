"""Administrative boundary lookup."""

from .boundary_models import (
    BoundaryRequest,
    BoundaryResult,
    Locality,
    LocalGovernmentArea,
    PostalArea,
    lga_category,
    delivery_region,
)
from .boundary_service import BoundaryService

__all__ = [
    'BoundaryRequest',
    'BoundaryResult',
    'Locality',
    'LocalGovernmentArea',
    'PostalArea',
    'lga_category',
    'delivery_region',
    'BoundaryService',
]
