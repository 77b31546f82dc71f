"""Statistical Area Models

Classification of a coordinate into the four-level SA1-SA4 hierarchy. The
coarser codes are prefix truncations of the SA2 code; the coarser names carry
the state abbreviation given by the code's leading digit.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field

from ..models import SpatialModel, CoordinatePoint, Coordinate, ReferenceSystem

UNKNOWN = "Unknown"
DATA_SOURCE = "G-NAF"

SA2_FROM_SA1_LENGTH = 9
SA3_LENGTH = 5
SA4_LENGTH = 3
COLLECTION_DISTRICT_LENGTH = 8

STATE_BY_LEADING_DIGIT = {
    "1": "NSW",
    "2": "VIC",
    "3": "QLD",
    "4": "SA",
    "5": "WA",
    "6": "TAS",
    "7": "NT",
    "8": "ACT",
}
FALLBACK_STATE = "AUS"


class Accuracy(str, Enum):
    EXACT = "EXACT"
    INTERPOLATED = "INTERPOLATED"


class StatisticalRequest(SpatialModel):
    coordinates: Optional[CoordinatePoint] = None
    address: Optional[str] = None
    coordinate_system: str = Field(ReferenceSystem.WGS84.value)
    include_hierarchy: bool = True


class StatisticalLevel(SpatialModel):
    code: str
    name: str


class StatisticalHierarchy(SpatialModel):
    mesh_block: str = UNKNOWN
    collection_district: str = UNKNOWN


class ClassificationMetadata(SpatialModel):
    source: str = DATA_SOURCE
    accuracy: Accuracy = Accuracy.INTERPOLATED


class StatisticalClassification(SpatialModel):
    """Levels ordered finest to coarsest."""
    coordinate: Coordinate
    sa1: StatisticalLevel
    sa2: StatisticalLevel
    sa3: StatisticalLevel
    sa4: StatisticalLevel
    hierarchy: Optional[StatisticalHierarchy] = None
    metadata: ClassificationMetadata = Field(default_factory=ClassificationMetadata)


def state_for_code(code: str) -> str:
    return STATE_BY_LEADING_DIGIT.get(code[:1], FALLBACK_STATE)


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _level(code: Optional[str], label: str, with_state: bool = False) -> StatisticalLevel:
    if not code:
        return StatisticalLevel(code=UNKNOWN, name=f"{UNKNOWN} {label}")
    if with_state:
        return StatisticalLevel(code=code, name=f"{state_for_code(code)} {label} {code}")
    return StatisticalLevel(code=code, name=f"{label} {code}")


def derive_levels(row: Dict[str, Any]) -> Dict[str, StatisticalLevel]:
    """Derive SA1-SA4 from a raw statistical row.

    SA2 falls back to the first nine digits of SA1; SA3 and SA4 truncate SA2.
    Missing codes degrade to ``Unknown`` at every dependent level.

    >>> derive_levels({"statistical_area_2": "206639700"})["sa3"].code
    '20663'
    """
    sa1 = _clean(row.get("statistical_area_1"))
    sa2 = _clean(row.get("statistical_area_2")) or (sa1[:SA2_FROM_SA1_LENGTH] if sa1 else None)
    sa3 = sa2[:SA3_LENGTH] if sa2 else None
    sa4 = sa2[:SA4_LENGTH] if sa2 else None
    return {
        "sa1": _level(sa1, "SA1"),
        "sa2": _level(sa2, "SA2"),
        "sa3": _level(sa3, "SA3", with_state=True),
        "sa4": _level(sa4, "SA4", with_state=True),
    }


def derive_hierarchy(row: Dict[str, Any]) -> StatisticalHierarchy:
    mesh_block = _clean(row.get("mesh_block_code"))
    return StatisticalHierarchy(
        mesh_block=mesh_block or UNKNOWN,
        collection_district=mesh_block[:COLLECTION_DISTRICT_LENGTH] if mesh_block else UNKNOWN,
    )


def derive_accuracy(distance_meters: Any) -> Accuracy:
    """EXACT when the nearest address sits on the query point or the distance is unreported."""
    if distance_meters is None or float(distance_meters) == 0.0:
        return Accuracy.EXACT
    return Accuracy.INTERPOLATED


def derive_classification(coordinate: Coordinate, row: Dict[str, Any],
                          include_hierarchy: bool = True) -> StatisticalClassification:
    return StatisticalClassification(
        coordinate=coordinate,
        hierarchy=derive_hierarchy(row) if include_hierarchy else None,
        metadata=ClassificationMetadata(accuracy=derive_accuracy(row.get("distance_meters"))),
        **derive_levels(row),
    )
