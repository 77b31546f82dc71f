"""Coordinate validation, datum conversion and great-circle geometry.

Validation checks a point against the configured Australian territorial bound;
conversion between WGS84 and GDA2020 uses cached pyproj transformers; distance
and bearing are pure spherical calculations.
"""

import logging
import math
from typing import Dict, Optional, Tuple, Union

from pyproj import Transformer
from pyproj.exceptions import CRSError
from shapely.geometry import Point, box

from gnaf_core.config import TerritorySettings
from gnaf_core.exceptions import OutOfTerritoryError, InvalidCoordinatesError
from ..models import Coordinate, CoordinatePoint, ReferenceSystem

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371000.0
COORDINATE_DECIMALS = 7


class CoordinateTransform:
    """Coordinate validation and conversion bound to a territorial box.

    All operations are deterministic; the only state is the transformer cache.
    """

    def __init__(self, territory: Optional[TerritorySettings] = None,
                 native_system: Union[str, ReferenceSystem] = ReferenceSystem.WGS84):
        self.territory = territory or TerritorySettings()
        self.native_system = ReferenceSystem.parse(native_system)
        self._bounds = box(
            self.territory.min_longitude, self.territory.min_latitude,
            self.territory.max_longitude, self.territory.max_latitude
        )
        self._transformer_cache: Dict[Tuple[ReferenceSystem, ReferenceSystem], Transformer] = {}
        logger.debug(f"CoordinateTransform initialized with bounds {self._bounds.bounds}")

    def is_within_territory(self, latitude: float, longitude: float) -> bool:
        if not (math.isfinite(latitude) and math.isfinite(longitude)):
            return False
        return self._bounds.covers(Point(longitude, latitude))

    def validate(self, coordinate: CoordinatePoint,
                 system: Union[str, ReferenceSystem, None] = None) -> Coordinate:
        """Validate a coordinate and return it tagged with its reference system.

        The system defaults to the coordinate's own, or WGS84 for a bare point.
        Bounds are inclusive on every edge.

        Raises:
            UnknownReferenceSystemError: For an unrecognized system name
            OutOfTerritoryError: If the point lies outside the territorial bound
        """
        if system is None:
            system = getattr(coordinate, "reference_system", ReferenceSystem.WGS84)
        reference_system = ReferenceSystem.parse(system)

        if not self.is_within_territory(coordinate.latitude, coordinate.longitude):
            raise OutOfTerritoryError(
                "Coordinates are outside the Australian territorial bound",
                {"latitude": coordinate.latitude, "longitude": coordinate.longitude}
            )

        return Coordinate(
            latitude=round(coordinate.latitude, COORDINATE_DECIMALS),
            longitude=round(coordinate.longitude, COORDINATE_DECIMALS),
            reference_system=reference_system,
        )

    def _get_transformer(self, source: ReferenceSystem, target: ReferenceSystem) -> Transformer:
        key = (source, target)
        if key not in self._transformer_cache:
            try:
                self._transformer_cache[key] = Transformer.from_crs(
                    f"EPSG:{source.epsg}", f"EPSG:{target.epsg}", always_xy=True
                )
                logger.debug(f"Created transformer EPSG:{source.epsg} -> EPSG:{target.epsg}")
            except CRSError as e:
                raise InvalidCoordinatesError(
                    f"Cannot build transformation {source.value} -> {target.value}: {e}"
                ) from e
        return self._transformer_cache[key]

    def convert(self, coordinate: CoordinatePoint,
                source: Union[str, ReferenceSystem],
                target: Union[str, ReferenceSystem]) -> Coordinate:
        """Convert between WGS84 and GDA2020; identity when both systems match."""
        source_system = ReferenceSystem.parse(source)
        target_system = ReferenceSystem.parse(target)

        if source_system == target_system:
            return Coordinate(
                latitude=coordinate.latitude,
                longitude=coordinate.longitude,
                reference_system=target_system,
            )

        transformer = self._get_transformer(source_system, target_system)
        longitude, latitude = transformer.transform(coordinate.longitude, coordinate.latitude)
        return Coordinate(
            latitude=round(latitude, COORDINATE_DECIMALS),
            longitude=round(longitude, COORDINATE_DECIMALS),
            reference_system=target_system,
        )

    def to_native(self, coordinate: Coordinate) -> Coordinate:
        return self.convert(coordinate, coordinate.reference_system, self.native_system)

    def from_native(self, coordinate: CoordinatePoint, target: Union[str, ReferenceSystem]) -> Coordinate:
        return self.convert(coordinate, self.native_system, target)

    @staticmethod
    def distance(a: CoordinatePoint, b: CoordinatePoint) -> float:
        """Haversine distance in meters, rounded to centimetres."""
        phi1 = math.radians(a.latitude)
        phi2 = math.radians(b.latitude)
        delta_phi = math.radians(b.latitude - a.latitude)
        delta_lambda = math.radians(b.longitude - a.longitude)

        h = (math.sin(delta_phi / 2) ** 2
             + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
        c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
        return round(EARTH_RADIUS_METERS * c, 2)

    @staticmethod
    def bearing(a: CoordinatePoint, b: CoordinatePoint) -> float:
        """Initial bearing in degrees clockwise from north, in ``[0, 360)``.

        Coincident points have a bearing of 0.
        """
        if a.latitude == b.latitude and a.longitude == b.longitude:
            return 0.0

        phi1 = math.radians(a.latitude)
        phi2 = math.radians(b.latitude)
        delta_lambda = math.radians(b.longitude - a.longitude)

        y = math.sin(delta_lambda) * math.cos(phi2)
        x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda)
        bearing = round((math.degrees(math.atan2(y, x)) + 360) % 360, 2)
        return 0.0 if bearing >= 360.0 else bearing

    def get_cache_stats(self) -> Dict[str, object]:
        return {
            "cached_transformers": len(self._transformer_cache),
            "transformations": [f"{s.value}->{t.value}" for s, t in self._transformer_cache],
        }
