"""Coordinate models shared by every spatial service."""

from enum import Enum
from typing import Union

from pydantic import Field

from gnaf_core.exceptions import UnknownReferenceSystemError
from .base import SpatialModel


class ReferenceSystem(str, Enum):
    """Supported coordinate reference systems."""

    WGS84 = "WGS84"
    GDA2020 = "GDA2020"

    @property
    def epsg(self) -> int:
        return _EPSG_CODES[self]

    @classmethod
    def parse(cls, name: Union[str, "ReferenceSystem"]) -> "ReferenceSystem":
        """Resolve a case-insensitive system name.

        Raises:
            UnknownReferenceSystemError: For any name other than WGS84 or GDA2020
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().upper())
        except ValueError as e:
            raise UnknownReferenceSystemError(
                f"Coordinate system must be either WGS84 or GDA2020, got '{name}'",
                {"reference_system": name}
            ) from e


_EPSG_CODES = {
    ReferenceSystem.WGS84: 4326,
    ReferenceSystem.GDA2020: 7844,
}


class CoordinatePoint(SpatialModel):
    """A bare latitude/longitude pair as supplied by callers.

    Range checks are left to the territorial bound so that out-of-range input
    is reported as out of territory rather than as malformed.
    """

    latitude: float = Field(..., description="Latitude in decimal degrees")
    longitude: float = Field(..., description="Longitude in decimal degrees")


class Coordinate(CoordinatePoint):
    """A latitude/longitude pair tagged with its reference system."""

    reference_system: ReferenceSystem = Field(ReferenceSystem.WGS84, description="Reference system of the pair")
