"""Address candidate models and gazetteer row mapping."""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field, field_validator

from .base import SpatialModel
from .coordinate import Coordinate, ReferenceSystem


class PrecisionTier(str, Enum):
    """Granularity of a matched coordinate, finest first."""

    PROPERTY = "PROPERTY"
    STREET = "STREET"
    LOCALITY = "LOCALITY"
    REGION = "REGION"


DEFAULT_RELIABILITY = 3


class AddressComponents(SpatialModel):
    street_number: Optional[str] = None
    street_name: Optional[str] = None
    street_type: Optional[str] = None
    suburb: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None


class AddressCandidate(SpatialModel):
    """A gazetteer row projected into a scored candidate.

    Candidates are created per query and never persisted.
    """

    identifier: str = Field(..., description="Gazetteer persistent identifier (gnaf_pid)")
    formatted_address: str = Field(..., description="Single line address")
    coordinate: Coordinate
    precision_tier: PrecisionTier = PrecisionTier.LOCALITY
    reliability_tier: int = Field(DEFAULT_RELIABILITY, ge=1, le=3, description="1 is most reliable")
    match_score: float = Field(0.0, ge=0.0, le=100.0)
    components: Optional[AddressComponents] = None

    @field_validator("match_score")
    @classmethod
    def round_match_score(cls, v: float) -> float:
        return round(v, 2)


def precision_from_row(value: Any) -> PrecisionTier:
    """Map a raw ``coordinate_precision`` value, defaulting to LOCALITY."""
    if value is None:
        return PrecisionTier.LOCALITY
    try:
        return PrecisionTier(str(value).strip().upper())
    except ValueError:
        return PrecisionTier.LOCALITY


def reliability_from_row(value: Any) -> int:
    """Map a raw ``coordinate_reliability`` value; anything outside 1-3 is least reliable."""
    try:
        reliability = int(value)
    except (TypeError, ValueError):
        return DEFAULT_RELIABILITY
    return reliability if 1 <= reliability <= 3 else DEFAULT_RELIABILITY


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def components_from_row(row: Dict[str, Any]) -> AddressComponents:
    return AddressComponents(
        street_number=_text(row.get("street_number")),
        street_name=_text(row.get("street_name")),
        street_type=_text(row.get("street_type")),
        suburb=_text(row.get("locality_name")),
        state=_text(row.get("state_code")),
        postcode=_text(row.get("postcode")),
    )


def coordinate_from_row(row: Dict[str, Any],
                        reference_system: ReferenceSystem = ReferenceSystem.WGS84) -> Coordinate:
    return Coordinate(
        latitude=float(row["latitude"]),
        longitude=float(row["longitude"]),
        reference_system=reference_system,
    )


def candidate_from_row(row: Dict[str, Any], match_score: float,
                       include_components: bool = True) -> AddressCandidate:
    """Build an ``AddressCandidate`` from a gazetteer row in the native system."""
    return AddressCandidate(
        identifier=str(row.get("gnaf_pid") or row.get("address_detail_pid") or ""),
        formatted_address=_text(row.get("formatted_address")) or "",
        coordinate=coordinate_from_row(row),
        precision_tier=precision_from_row(row.get("coordinate_precision")),
        reliability_tier=reliability_from_row(row.get("coordinate_reliability")),
        match_score=match_score,
        components=components_from_row(row) if include_components else None,
    )
