"""Administrative Boundary Models and derivation tables."""

from typing import Optional, Tuple

from pydantic import Field

from ..models import SpatialModel, CoordinatePoint, Coordinate, ReferenceSystem

# Checked in order; the first keyword contained in the raw name wins, ignoring case
LGA_CATEGORY_KEYWORDS: Tuple[str, ...] = (
    "City", "Shire", "Town", "Borough", "District", "Council", "Regional",
)
DEFAULT_LGA_CATEGORY = "Area"

# Inclusive postcode ranges per state or territory
POSTCODE_DELIVERY_REGIONS: Tuple[Tuple[int, int, str], ...] = (
    (200, 299, "ACT"),
    (800, 899, "NT"),
    (1000, 2999, "NSW"),
    (3000, 3999, "VIC"),
    (4000, 4999, "QLD"),
    (5000, 5999, "SA"),
    (6000, 6999, "WA"),
    (7000, 7999, "TAS"),
)
UNKNOWN_DELIVERY_REGION = "Unknown"


def lga_category(name: Optional[str]) -> str:
    """Derive the LGA category from its raw name, e.g. ``"Ballarat Shire"`` -> ``"Shire"``."""
    if not name:
        return DEFAULT_LGA_CATEGORY
    lowered = name.lower()
    for keyword in LGA_CATEGORY_KEYWORDS:
        if keyword.lower() in lowered:
            return keyword
    return DEFAULT_LGA_CATEGORY


def delivery_region(postcode: Optional[str]) -> str:
    """Map a postcode onto its state or territory abbreviation."""
    if postcode is None:
        return UNKNOWN_DELIVERY_REGION
    try:
        code = int(str(postcode).strip())
    except ValueError:
        return UNKNOWN_DELIVERY_REGION
    for low, high, region in POSTCODE_DELIVERY_REGIONS:
        if low <= code <= high:
            return region
    return UNKNOWN_DELIVERY_REGION


class BoundaryRequest(SpatialModel):
    coordinates: CoordinatePoint
    coordinate_system: str = Field(ReferenceSystem.WGS84.value)
    include_lga: bool = Field(True, alias="includeLGA")
    include_electoral: bool = False
    include_postal: bool = True


class Locality(SpatialModel):
    name: str
    id: str
    postcode: Optional[str] = None
    state: Optional[str] = None


class LocalGovernmentArea(SpatialModel):
    name: str
    category: str = DEFAULT_LGA_CATEGORY


class PostalArea(SpatialModel):
    postcode: str
    delivery_region: str = UNKNOWN_DELIVERY_REGION


class BoundaryResult(SpatialModel):
    """Enclosing administrative boundaries of a coordinate.

    ``electoral_district`` is always None; the boundary dataset carries no
    electoral geometry.
    """
    coordinate: Coordinate
    locality: Locality
    local_government_area: Optional[LocalGovernmentArea] = None
    postal_area: Optional[PostalArea] = None
    electoral_district: Optional[str] = None
