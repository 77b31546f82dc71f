"""Geocoding Request and Result Models

Pydantic models for forward and reverse geocoding requests and results.
"""

from typing import List, Optional

from pydantic import Field

from ..models import (
    SpatialModel, CoordinatePoint, Coordinate, ReferenceSystem,
    PrecisionTier, AddressComponents, AddressCandidate, DEFAULT_RELIABILITY
)


class GeocodeRequest(SpatialModel):
    """Free-text address to resolve into a coordinate."""
    address: str = Field(..., description="Free-text street address")
    coordinate_system: str = Field(ReferenceSystem.WGS84.value, description="System of the returned coordinate")
    include_components: bool = Field(True, description="Include the street/suburb/state breakdown")


class GeocodeResult(SpatialModel):
    """Best match for a forward geocoding request.

    An unmatched address yields ``success=False`` with zero confidence, no
    coordinate, REGION precision and the least reliable tier.
    """
    success: bool
    confidence: float = Field(ge=0, le=100)
    coordinate: Optional[Coordinate] = None
    precision_tier: PrecisionTier = PrecisionTier.REGION
    reliability_tier: int = Field(DEFAULT_RELIABILITY, ge=1, le=3)
    identifier: str = ""
    formatted_address: Optional[str] = None
    components: Optional[AddressComponents] = None
    match_rule: Optional[str] = Field(None, description="Name of the scoring rule that matched")


class ReverseGeocodeRequest(SpatialModel):
    coordinates: CoordinatePoint
    coordinate_system: str = Field(ReferenceSystem.WGS84.value)
    radius: Optional[float] = Field(
        None, allow_inf_nan=False, description="Search radius in meters, clamped to [1, 1000]"
    )
    limit: Optional[int] = Field(None, description="Maximum results, clamped to [1, 10]")
    include_distance: bool = True


class ReverseGeocodeMatch(SpatialModel):
    candidate: AddressCandidate
    distance_meters: Optional[float] = Field(None, ge=0)
    bearing_degrees: float = Field(ge=0, lt=360)
    confidence: float = Field(ge=0, le=100)


class ReverseGeocodeResult(SpatialModel):
    success: bool
    results: List[ReverseGeocodeMatch] = Field(default_factory=list)
    search_radius: float = Field(gt=0)
    limit: int = Field(gt=0)
    coordinate_system: ReferenceSystem
