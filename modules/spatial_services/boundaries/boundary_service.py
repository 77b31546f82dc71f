"""Boundary Service

Containment lookup of the locality, local government area and postal area
enclosing a coordinate, read through a shared coordinate-keyed cache.
"""

import logging
import time
from typing import Any, Dict, Optional

from gnaf_core.connection import GazetteerDatastore
from gnaf_core.exceptions import LocalityNotFoundError, DependencyFailureError
from gnaf_core.interfaces import SpatialService, HealthCheckResult, HealthState
from ..caching import SpatialCache
from ..coordinates import CoordinateTransform
from ..gazetteer_queries import BOUNDARY_QUERY
from ..models import Coordinate, ReferenceSystem, parse_request
from ..monitoring import PerformanceMonitoringService, track_operation
from .boundary_models import (
    BoundaryRequest, BoundaryResult, Locality, LocalGovernmentArea, PostalArea,
    lga_category, delivery_region
)

logger = logging.getLogger(__name__)

# Melbourne CBD, used as a known-good containment probe
HEALTH_CHECK_POINT = Coordinate(latitude=-37.8136, longitude=144.9631)


class BoundaryService(SpatialService):
    """Administrative boundary lookup.

    The raw containment row is cached under the quantized native coordinate,
    so requests differing only in their include flags share an entry. Misses
    are not cached.
    """

    service_name = "boundary"

    def __init__(self, datastore: GazetteerDatastore, transform: CoordinateTransform,
                 cache: Optional[SpatialCache] = None,
                 monitor: Optional[PerformanceMonitoringService] = None):
        super().__init__()
        self.datastore = datastore
        self.transform = transform
        self.cache = cache or SpatialCache("boundary")
        self.monitor = monitor
        logger.info("BoundaryService initialized")

    async def _query_boundary(self, native: Coordinate) -> Optional[Dict[str, Any]]:
        rows = await self.datastore.query(BOUNDARY_QUERY, [native.latitude, native.longitude])
        return rows[0] if rows else None

    async def lookup(self, request: Any) -> BoundaryResult:
        """Resolve the boundaries enclosing a coordinate.

        Raises:
            OutOfTerritoryError: Coordinate outside the territorial bound
            UnknownReferenceSystemError: Unrecognized coordinate system
            LocalityNotFoundError: No locality contains the coordinate
            DependencyFailureError: Datastore failure
        """
        request = parse_request(BoundaryRequest, request)
        start_time = time.perf_counter()

        async with track_operation(self.monitor, "boundary") as context:
            try:
                system = ReferenceSystem.parse(request.coordinate_system)
                coordinate = self.transform.validate(request.coordinates, system)
                native = self.transform.to_native(coordinate)
                key = self.cache.make_key(native.latitude, native.longitude, prefix="boundary")

                row, context.cache_hit = await self.cache.get_or_load(key, lambda: self._query_boundary(native))
                if row is None:
                    raise LocalityNotFoundError(
                        "No locality found for the given coordinates",
                        {"latitude": coordinate.latitude, "longitude": coordinate.longitude}
                    )

                result = self._build_result(coordinate, row, request)
            except Exception as e:
                self._mark_run(e)
                logger.error(f"Boundary lookup failed: {e}")
                raise

        self._mark_run()
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Boundary lookup completed: {result.locality.name} "
            f"(cache_hit={context.cache_hit}) in {duration_ms:.0f}ms"
        )
        return result

    def _build_result(self, coordinate: Coordinate, row: Dict[str, Any],
                      request: BoundaryRequest) -> BoundaryResult:
        postcode = row.get("postcode")
        postcode = str(postcode) if postcode is not None else None

        lga = None
        lga_name = row.get("local_government_area")
        if request.include_lga and lga_name:
            lga = LocalGovernmentArea(name=lga_name, category=lga_category(lga_name))

        postal = None
        if request.include_postal and postcode:
            postal = PostalArea(postcode=postcode, delivery_region=delivery_region(postcode))

        if request.include_electoral:
            logger.debug("Electoral district requested; no electoral boundaries are available")

        return BoundaryResult(
            coordinate=coordinate,
            locality=Locality(
                name=str(row.get("locality_name") or ""),
                id=str(row.get("locality_pid") or ""),
                postcode=postcode,
                state=row.get("state_code"),
            ),
            local_government_area=lga,
            postal_area=postal,
            electoral_district=None,
        )

    async def health_check(self) -> HealthCheckResult:
        """Run the containment query at a known Melbourne point."""
        cache_stats = self.cache.get_statistics()
        try:
            row = await self._query_boundary(self.transform.to_native(HEALTH_CHECK_POINT))
        except DependencyFailureError as e:
            logger.error(f"Boundary health check failed: {e.message}")
            return self._mark_health(HealthCheckResult(
                status=HealthState.UNHEALTHY,
                details={"boundary_data": False, "cache_size": cache_stats.size, "error": e.message}
            ))

        status = HealthState.HEALTHY if row is not None else HealthState.DEGRADED
        return self._mark_health(HealthCheckResult(
            status=status,
            details={"boundary_data": row is not None, "cache_size": cache_stats.size}
        ))
