"""Statistical Area Service

Classifies a coordinate, or a geocoded address, into the SA1-SA4 hierarchy
using the statistical codes of the nearest gazetteer address.
"""

import logging
import time
from typing import Any, Dict, Optional

from gnaf_core.config import StatisticalSettings
from gnaf_core.connection import GazetteerDatastore
from gnaf_core.exceptions import MissingLocationError, StatisticalDataNotFoundError, DependencyFailureError
from gnaf_core.interfaces import SpatialService, HealthCheckResult, HealthState
from ..caching import SpatialCache
from ..coordinates import CoordinateTransform
from ..gazetteer_queries import STATISTICAL_AREA_QUERY
from ..geocoding import GeocodingService
from ..models import Coordinate, ReferenceSystem, parse_request
from ..monitoring import PerformanceMonitoringService, track_operation
from .statistical_models import StatisticalRequest, StatisticalClassification, derive_classification

logger = logging.getLogger(__name__)

HEALTH_CHECK_POINT = Coordinate(latitude=-37.8136, longitude=144.9631)


class StatisticalAreaService(SpatialService):
    """SA1-SA4 classification read through a shared coordinate-keyed cache."""

    service_name = "statistical_area"

    def __init__(self, datastore: GazetteerDatastore, geocoding: GeocodingService,
                 transform: CoordinateTransform, cache: Optional[SpatialCache] = None,
                 settings: Optional[StatisticalSettings] = None,
                 monitor: Optional[PerformanceMonitoringService] = None):
        super().__init__()
        self.datastore = datastore
        self.geocoding = geocoding
        self.transform = transform
        self.cache = cache or SpatialCache("statistical")
        self.settings = settings or StatisticalSettings()
        self.monitor = monitor
        logger.info("StatisticalAreaService initialized")

    async def _query_statistical_area(self, native: Coordinate) -> Optional[Dict[str, Any]]:
        rows = await self.datastore.query(
            STATISTICAL_AREA_QUERY,
            [native.latitude, native.longitude, self.settings.nearest_address_tolerance_meters]
        )
        return rows[0] if rows else None

    async def _resolve_location(self, request: StatisticalRequest, system: ReferenceSystem) -> Coordinate:
        if request.coordinates is not None:
            return self.transform.validate(request.coordinates, system)
        if request.address:
            resolved = await self.geocoding.resolve_coordinate(request.address, system)
            return self.transform.validate(resolved, system)
        raise MissingLocationError("Either coordinates or address must be provided")

    async def classify(self, request: Any) -> StatisticalClassification:
        """Classify a location into statistical areas.

        Raises:
            MissingLocationError: Neither coordinates nor address supplied
            GeocodingFailedError: The address did not resolve
            OutOfTerritoryError: Coordinate outside the territorial bound
            StatisticalDataNotFoundError: No gazetteer address near the coordinate
            DependencyFailureError: Datastore failure
        """
        request = parse_request(StatisticalRequest, request)
        start_time = time.perf_counter()

        async with track_operation(self.monitor, "statistical") as context:
            try:
                system = ReferenceSystem.parse(request.coordinate_system)
                coordinate = await self._resolve_location(request, system)
                native = self.transform.to_native(coordinate)
                key = self.cache.make_key(native.latitude, native.longitude, prefix="statistical")

                row, context.cache_hit = await self.cache.get_or_load(
                    key, lambda: self._query_statistical_area(native)
                )
                if row is None:
                    raise StatisticalDataNotFoundError(
                        "No statistical area data found for the given coordinates",
                        {"latitude": coordinate.latitude, "longitude": coordinate.longitude}
                    )

                result = derive_classification(coordinate, row, request.include_hierarchy)
            except Exception as e:
                self._mark_run(e)
                logger.error(f"Statistical area classification failed: {e}")
                raise

        self._mark_run()
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Statistical area classification completed: SA2 {result.sa2.code} "
            f"(cache_hit={context.cache_hit}) in {duration_ms:.0f}ms"
        )
        return result

    async def health_check(self) -> HealthCheckResult:
        """Classify a known Melbourne point."""
        cache_stats = self.cache.get_statistics()
        try:
            row = await self._query_statistical_area(self.transform.to_native(HEALTH_CHECK_POINT))
        except DependencyFailureError as e:
            logger.error(f"Statistical area health check failed: {e.message}")
            return self._mark_health(HealthCheckResult(
                status=HealthState.UNHEALTHY,
                details={"statistical_data": False, "cache_size": cache_stats.size, "error": e.message}
            ))

        status = HealthState.HEALTHY if row is not None else HealthState.DEGRADED
        return self._mark_health(HealthCheckResult(
            status=status,
            details={"statistical_data": row is not None, "cache_size": cache_stats.size}
        ))
