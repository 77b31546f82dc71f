"""Spatial Analytics Service

Proximity search around a coordinate or a geocoded address.
"""

import logging
import time
from typing import Any, List, Optional

from gnaf_core.config import ProximitySettings
from gnaf_core.connection import GazetteerDatastore
from gnaf_core.exceptions import MissingLocationError, DependencyFailureError
from gnaf_core.interfaces import SpatialService, HealthCheckResult, HealthState
from ..coordinates import CoordinateTransform
from ..gazetteer_queries import PROXIMITY_QUERY, POSTGIS_EXTENSION_QUERY, SPATIAL_INDEX_QUERY
from ..geocoding import GeocodingService
from ..models import Coordinate, ReferenceSystem, parse_request, coordinate_from_row, reliability_from_row
from ..monitoring import PerformanceMonitoringService, track_operation
from .proximity_models import ProximityRequest, ProximityMatch, ProximitySummary, ProximityResult

logger = logging.getLogger(__name__)


class SpatialAnalyticsService(SpatialService):
    """Nearest-within-radius search over the gazetteer.

    The center is validated against the territorial bound before the single
    radius query is issued. Bearings are only computed when requested.
    """

    service_name = "spatial_analytics"

    def __init__(self, datastore: GazetteerDatastore, geocoding: GeocodingService,
                 transform: CoordinateTransform, settings: Optional[ProximitySettings] = None,
                 monitor: Optional[PerformanceMonitoringService] = None):
        super().__init__()
        self.datastore = datastore
        self.geocoding = geocoding
        self.transform = transform
        self.settings = settings or ProximitySettings()
        self.monitor = monitor
        logger.info("SpatialAnalyticsService initialized")

    async def resolve_center(self, request: ProximityRequest) -> Coordinate:
        """Resolve and validate the search center in the caller's system.

        Raises:
            MissingLocationError: Neither coordinates nor address supplied
            GeocodingFailedError: The address did not resolve
            OutOfTerritoryError: The center lies outside the territorial bound
        """
        system = ReferenceSystem.parse(request.coordinate_system)

        if request.coordinates is not None:
            return self.transform.validate(request.coordinates, system)

        if request.address:
            resolved = await self.geocoding.resolve_coordinate(request.address, system)
            return self.transform.validate(resolved, system)

        raise MissingLocationError("Either coordinates or address must be provided")

    async def find_nearby(self, request: Any) -> ProximityResult:
        """Find gazetteer entries within a radius of the center.

        Radius is clamped to [1, 5000] meters (default 1000), limit to
        [1, 50] (default 10). The summary covers the returned results only.

        Raises:
            MissingLocationError, GeocodingFailedError, OutOfTerritoryError,
            UnknownReferenceSystemError, DependencyFailureError
        """
        request = parse_request(ProximityRequest, request)
        start_time = time.perf_counter()

        async with track_operation(self.monitor, "proximity"):
            try:
                center = await self.resolve_center(request)
                radius = self.settings.radius_meters.clamp(request.radius)
                limit = int(self.settings.limit.clamp(request.limit))
                property_types = request.property_types or None

                native_center = self.transform.to_native(center)
                parameters = [native_center.latitude, native_center.longitude, radius, limit, property_types]
                logger.debug(f"Executing proximity query with parameters {parameters}")
                rows = await self.datastore.query(PROXIMITY_QUERY, parameters)

                ranked = self._rank_rows(rows, native_center, center.reference_system, request)
                elapsed_ms = round((time.perf_counter() - start_time) * 1000, 2)
                distances = [distance for distance, _ in ranked]
                summary = ProximitySummary(
                    count=len(ranked),
                    average_distance=round(sum(distances) / len(distances)) if distances else 0,
                    elapsed_ms=elapsed_ms,
                )
                result = ProximityResult(
                    center=center,
                    radius_meters=radius,
                    results=[match for _, match in ranked],
                    summary=summary,
                )
            except Exception as e:
                self._mark_run(e)
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(f"Proximity analysis failed after {duration_ms:.0f}ms: {e}")
                raise

        self._mark_run()
        logger.info(
            f"Proximity analysis completed: {summary.count} result(s) within {radius}m "
            f"in {summary.elapsed_ms:.0f}ms"
        )
        return result

    def _rank_rows(self, rows: List[dict], native_center: Coordinate,
                   target_system: ReferenceSystem, request: ProximityRequest):
        ranked = []
        for row in rows:
            native_point = coordinate_from_row(row, self.transform.native_system)
            distance = self.transform.distance(native_center, native_point)
            reliability = reliability_from_row(row.get("coordinate_reliability"))
            match = ProximityMatch(
                identifier=str(row.get("gnaf_pid") or ""),
                formatted_address=str(row.get("formatted_address") or ""),
                coordinate=self.transform.from_native(native_point, target_system),
                reliability_tier=reliability,
                distance_meters=distance if request.include_distance else None,
                distance_kilometers=round(distance / 1000, 2) if request.include_distance else None,
                bearing_degrees=(self.transform.bearing(native_center, native_point)
                                 if request.include_bearing else None),
            )
            ranked.append((distance, match))

        ranked.sort(key=lambda item: (item[0], item[1].reliability_tier))
        return ranked

    async def health_check(self) -> HealthCheckResult:
        """Check the PostGIS extension and the gazetteer spatial index."""
        try:
            extension_rows = await self.datastore.query(POSTGIS_EXTENSION_QUERY)
            index_rows = await self.datastore.query(SPATIAL_INDEX_QUERY)
        except DependencyFailureError as e:
            logger.error(f"Spatial analytics health check failed: {e.message}")
            return self._mark_health(HealthCheckResult(
                status=HealthState.UNHEALTHY,
                details={"spatial_extensions": False, "index_health": "unknown", "error": e.message}
            ))

        spatial_extensions = bool(extension_rows and extension_rows[0].get("postgis_available"))
        index_health = "healthy" if index_rows else "missing"
        status = HealthState.HEALTHY if spatial_extensions and index_health == "healthy" else HealthState.DEGRADED
        return self._mark_health(HealthCheckResult(
            status=status,
            details={"spatial_extensions": spatial_extensions, "index_health": index_health}
        ))
