"""Proximity Search Models"""

from typing import List, Optional

from pydantic import Field

from ..models import SpatialModel, CoordinatePoint, Coordinate, ReferenceSystem


class ProximityRequest(SpatialModel):
    """Center given as coordinates or as an address to geocode first."""
    coordinates: Optional[CoordinatePoint] = None
    address: Optional[str] = None
    coordinate_system: str = Field(ReferenceSystem.WGS84.value)
    radius: Optional[float] = Field(
        None, allow_inf_nan=False, description="Search radius in meters, clamped to [1, 5000]"
    )
    limit: Optional[int] = Field(None, description="Maximum results, clamped to [1, 50]")
    property_types: Optional[List[str]] = Field(None, description="Restrict to these gazetteer address types")
    include_distance: bool = True
    include_bearing: bool = False


class ProximityMatch(SpatialModel):
    identifier: str
    formatted_address: str
    coordinate: Coordinate
    reliability_tier: int = Field(ge=1, le=3)
    distance_meters: Optional[float] = Field(None, ge=0)
    distance_kilometers: Optional[float] = Field(None, ge=0)
    bearing_degrees: Optional[float] = Field(None, ge=0, lt=360)


class ProximitySummary(SpatialModel):
    """Statistics over the returned results only."""
    count: int = Field(ge=0)
    average_distance: int = Field(0, ge=0, description="Mean distance in whole meters")
    elapsed_ms: float = Field(ge=0)


class ProximityResult(SpatialModel):
    """Nearby gazetteer entries ordered by distance, then reliability."""
    center: Coordinate
    radius_meters: float = Field(gt=0)
    results: List[ProximityMatch] = Field(default_factory=list)
    summary: ProximitySummary
