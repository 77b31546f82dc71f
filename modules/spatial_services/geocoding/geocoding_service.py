"""Geocoding Service

Forward geocoding resolves a free-text address to the best-scoring gazetteer
row; reverse geocoding finds gazetteer addresses within a radius of a point.
"""

import logging
import time
from typing import Any, Optional

from gnaf_core.config import GeocodingSettings
from gnaf_core.connection import GazetteerDatastore
from gnaf_core.exceptions import InvalidInputError, GeocodingFailedError, DependencyFailureError
from gnaf_core.interfaces import SpatialService, HealthCheckResult, HealthState
from ..coordinates import CoordinateTransform
from ..gazetteer_queries import ADDRESS_CANDIDATES_QUERY, REVERSE_GEOCODE_QUERY, ADDRESS_TABLE_HEALTH_QUERY
from ..models import (
    Coordinate, ReferenceSystem, PrecisionTier, DEFAULT_RELIABILITY, parse_request,
    candidate_from_row, coordinate_from_row
)
from ..monitoring import PerformanceMonitoringService, track_operation
from .address_matching import tokenize_address, select_best_match
from .geocoding_models import (
    GeocodeRequest, GeocodeResult, ReverseGeocodeRequest, ReverseGeocodeMatch, ReverseGeocodeResult
)

logger = logging.getLogger(__name__)

REVERSE_CONFIDENCE = {1: 90.0, 2: 75.0}
REVERSE_CONFIDENCE_DEFAULT = 60.0


def reverse_confidence(reliability: int) -> float:
    """Confidence of a reverse match from its reliability tier: 1 -> 90, 2 -> 75, else 60."""
    return REVERSE_CONFIDENCE.get(reliability, REVERSE_CONFIDENCE_DEFAULT)


class GeocodingService(SpatialService):
    """Forward and reverse geocoding against the gazetteer.

    Caller input is validated before any datastore call. Datastore failures
    propagate unchanged.
    """

    service_name = "geocoding"

    def __init__(self, datastore: GazetteerDatastore, transform: CoordinateTransform,
                 settings: Optional[GeocodingSettings] = None,
                 monitor: Optional[PerformanceMonitoringService] = None):
        super().__init__()
        self.datastore = datastore
        self.transform = transform
        self.settings = settings or GeocodingSettings()
        self.monitor = monitor
        logger.info("GeocodingService initialized")

    def _validate_address(self, address: str) -> str:
        if not address or not address.strip():
            raise InvalidInputError("Address is required")
        if len(address) > self.settings.max_address_length:
            raise InvalidInputError(
                f"Address must not exceed {self.settings.max_address_length} characters",
                {"length": len(address)}
            )
        return address.strip()

    async def geocode(self, request: Any) -> GeocodeResult:
        """Resolve a free-text address to its best gazetteer match.

        Args:
            request: ``GeocodeRequest`` or its JSON-shaped dictionary

        Returns:
            GeocodeResult; ``success`` is False with zero confidence when no row matches

        Raises:
            InvalidInputError: Empty or over-length address, malformed request
            UnknownReferenceSystemError: Unrecognized coordinate system
            DependencyFailureError: Datastore failure
        """
        request = parse_request(GeocodeRequest, request)
        start_time = time.perf_counter()

        async with track_operation(self.monitor, "geocode"):
            try:
                address = self._validate_address(request.address)
                target_system = ReferenceSystem.parse(request.coordinate_system)
                tokens = tokenize_address(address)

                logger.debug(f"Geocoding tokens: {tokens}")
                rows = await self.datastore.query(
                    ADDRESS_CANDIDATES_QUERY,
                    [tokens.full_text, tokens.street_number, tokens.street_name, tokens.locality,
                     self.settings.candidate_limit]
                )
                best = select_best_match(tokens, rows)

                if best is None:
                    result = GeocodeResult(
                        success=False,
                        confidence=0.0,
                        precision_tier=PrecisionTier.REGION,
                        reliability_tier=DEFAULT_RELIABILITY,
                    )
                else:
                    candidate = candidate_from_row(best.row, best.score, request.include_components)
                    result = GeocodeResult(
                        success=True,
                        confidence=best.score,
                        coordinate=self.transform.from_native(candidate.coordinate, target_system),
                        precision_tier=candidate.precision_tier,
                        reliability_tier=candidate.reliability_tier,
                        identifier=candidate.identifier,
                        formatted_address=candidate.formatted_address,
                        components=candidate.components,
                        match_rule=best.rule,
                    )
            except Exception as e:
                self._mark_run(e)
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(f"Geocoding failed for '{request.address[:100]}' after {duration_ms:.0f}ms: {e}")
                raise

        self._mark_run()
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Geocoding completed: success={result.success}, confidence={result.confidence}, "
            f"{len(rows)} candidate(s) in {duration_ms:.0f}ms"
        )
        return result

    async def reverse_geocode(self, request: Any) -> ReverseGeocodeResult:
        """Find gazetteer addresses near a coordinate.

        Radius is clamped to [1, 1000] meters (default 100) and limit to
        [1, 10] (default 1). The query runs in the native system; results are
        converted back to the caller's system, ordered by distance then
        reliability.

        Raises:
            UnknownReferenceSystemError: Unrecognized coordinate system
            OutOfTerritoryError: Coordinate outside the territorial bound
            DependencyFailureError: Datastore failure
        """
        request = parse_request(ReverseGeocodeRequest, request)
        start_time = time.perf_counter()

        async with track_operation(self.monitor, "reverse_geocode"):
            try:
                source_system = ReferenceSystem.parse(request.coordinate_system)
                center = self.transform.validate(request.coordinates, source_system)
                radius = self.settings.reverse_radius_meters.clamp(request.radius)
                limit = int(self.settings.reverse_limit.clamp(request.limit))

                native_center = self.transform.to_native(center)
                rows = await self.datastore.query(
                    REVERSE_GEOCODE_QUERY,
                    [native_center.latitude, native_center.longitude, radius, limit]
                )

                matches = []
                for row in rows:
                    native_point = coordinate_from_row(row, self.transform.native_system)
                    distance = self.transform.distance(native_center, native_point)
                    candidate = candidate_from_row(row, 0.0)
                    candidate.coordinate = self.transform.from_native(native_point, source_system)
                    confidence = reverse_confidence(candidate.reliability_tier)
                    candidate.match_score = confidence
                    matches.append((distance, ReverseGeocodeMatch(
                        candidate=candidate,
                        distance_meters=distance if request.include_distance else None,
                        bearing_degrees=self.transform.bearing(native_center, native_point),
                        confidence=confidence,
                    )))

                matches.sort(key=lambda m: (m[0], m[1].candidate.reliability_tier))
                result = ReverseGeocodeResult(
                    success=True,
                    results=[match for _, match in matches],
                    search_radius=radius,
                    limit=limit,
                    coordinate_system=source_system,
                )
            except Exception as e:
                self._mark_run(e)
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"Reverse geocoding failed for ({request.coordinates.latitude}, "
                    f"{request.coordinates.longitude}) after {duration_ms:.0f}ms: {e}"
                )
                raise

        self._mark_run()
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Reverse geocoding completed: {len(result.results)} result(s) within {radius}m in {duration_ms:.0f}ms"
        )
        return result

    async def resolve_coordinate(self, address: str, coordinate_system: Any = ReferenceSystem.WGS84) -> Coordinate:
        """Geocode ``address`` for services that accept an address in place of coordinates.

        Raises:
            GeocodingFailedError: The address produced no match
        """
        system = ReferenceSystem.parse(coordinate_system)
        logger.debug(f"Resolving coordinate from address: {address[:100]}")
        geocoded = await self.geocode(
            GeocodeRequest(address=address, coordinate_system=system.value, include_components=False)
        )
        if not geocoded.success or geocoded.coordinate is None:
            raise GeocodingFailedError(f"Unable to geocode address: {address[:100]}", {"address": address[:100]})
        return geocoded.coordinate

    async def health_check(self) -> HealthCheckResult:
        """Check that the gazetteer address table is reachable and populated."""
        try:
            rows = await self.datastore.query(ADDRESS_TABLE_HEALTH_QUERY)
        except DependencyFailureError as e:
            logger.error(f"Geocoding health check failed: {e.message}")
            return self._mark_health(HealthCheckResult(status=HealthState.UNHEALTHY, details={"error": e.message}))

        address_count = int(rows[0]["address_count"]) if rows else 0
        status = HealthState.HEALTHY if address_count > 0 else HealthState.DEGRADED
        return self._mark_health(HealthCheckResult(status=status, details={"addresses_available": address_count > 0}))
