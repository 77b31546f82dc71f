"""Tests for proximity search."""

import pytest

from gnaf_core.exceptions import (
    DependencyFailureError,
    GeocodingFailedError,
    InvalidInputError,
    MissingLocationError,
    OutOfTerritoryError,
)
from gnaf_core.interfaces import HealthState
from modules.spatial_services.gazetteer_queries import (
    ADDRESS_CANDIDATES_QUERY,
    POSTGIS_EXTENSION_QUERY,
    PROXIMITY_QUERY,
    SPATIAL_INDEX_QUERY,
)
from modules.spatial_services.geocoding import GeocodingService
from modules.spatial_services.models import ReferenceSystem
from modules.spatial_services.proximity import SpatialAnalyticsService

CENTER = {"latitude": -37.8136, "longitude": 144.9631}


@pytest.fixture
def service(datastore, transform):
    return SpatialAnalyticsService(datastore, GeocodingService(datastore, transform), transform)


class TestFindNearby:

    @pytest.mark.asyncio
    async def test_sorted_by_distance_then_reliability(self, service, datastore, make_address_row):
        datastore.responses[PROXIMITY_QUERY] = [
            make_address_row("FAR", latitude=-37.8236),
            make_address_row("TIE_LOW", latitude=-37.8146, reliability=3),
            make_address_row("TIE_HIGH", latitude=-37.8146, reliability=1),
            make_address_row("CENTER", reliability=2),
        ]

        result = await service.find_nearby({"coordinates": CENTER})

        assert [m.identifier for m in result.results] == ["CENTER", "TIE_HIGH", "TIE_LOW", "FAR"]
        distances = [m.distance_meters for m in result.results]
        assert distances == sorted(distances)
        assert result.results[0].distance_meters == 0.0
        assert result.results[3].distance_kilometers == pytest.approx(1.11, abs=0.01)

    @pytest.mark.asyncio
    async def test_bearing_only_when_requested(self, service, datastore, make_address_row):
        datastore.responses[PROXIMITY_QUERY] = [make_address_row(latitude=-37.8046)]

        without = await service.find_nearby({"coordinates": CENTER})
        with_bearing = await service.find_nearby({"coordinates": CENTER, "includeBearing": True})

        assert without.results[0].bearing_degrees is None
        assert with_bearing.results[0].bearing_degrees == pytest.approx(0.0, abs=0.01)

    @pytest.mark.asyncio
    async def test_distance_omitted_on_request(self, service, datastore, make_address_row):
        datastore.responses[PROXIMITY_QUERY] = [make_address_row()]

        result = await service.find_nearby({"coordinates": CENTER, "includeDistance": False})

        assert result.results[0].distance_meters is None
        assert result.results[0].distance_kilometers is None

    @pytest.mark.asyncio
    async def test_summary(self, service, datastore, make_address_row):
        datastore.responses[PROXIMITY_QUERY] = [
            make_address_row("A"),
            make_address_row("B", latitude=-37.8146),
        ]

        result = await service.find_nearby({"coordinates": CENTER})

        assert result.summary.count == 2
        assert result.summary.average_distance == 56
        assert result.summary.elapsed_ms >= 0

    @pytest.mark.asyncio
    async def test_empty_result(self, service, datastore):
        datastore.responses[PROXIMITY_QUERY] = []

        result = await service.find_nearby({"coordinates": CENTER})

        assert result.results == []
        assert result.summary.count == 0
        assert result.summary.average_distance == 0

    @pytest.mark.asyncio
    async def test_defaults_and_parameters(self, service, datastore):
        result = await service.find_nearby({"coordinates": CENTER})

        assert result.radius_meters == 1000
        assert datastore.calls_for(PROXIMITY_QUERY) == [[-37.8136, 144.9631, 1000, 10, None]]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("radius,limit,expected", [
        (10000, 500, [5000, 50]),
        (0.5, 0, [1, 1]),
        (250, 20, [250, 20]),
    ])
    async def test_radius_and_limit_clamped(self, service, datastore, radius, limit, expected):
        await service.find_nearby({"coordinates": CENTER, "radius": radius, "limit": limit})

        assert datastore.calls_for(PROXIMITY_QUERY)[0][2:4] == expected

    @pytest.mark.asyncio
    async def test_property_types_passed_through(self, service, datastore):
        await service.find_nearby({"coordinates": CENTER, "propertyTypes": ["R", "C"]})

        assert datastore.calls_for(PROXIMITY_QUERY)[0][4] == ["R", "C"]

    @pytest.mark.asyncio
    async def test_empty_property_types_mean_no_filter(self, service, datastore):
        await service.find_nearby({"coordinates": CENTER, "propertyTypes": []})

        assert datastore.calls_for(PROXIMITY_QUERY)[0][4] is None

    @pytest.mark.asyncio
    async def test_results_in_caller_system(self, service, datastore, make_address_row):
        datastore.responses[PROXIMITY_QUERY] = [make_address_row()]

        result = await service.find_nearby({"coordinates": CENTER, "coordinateSystem": "GDA2020"})

        assert result.center.reference_system == ReferenceSystem.GDA2020
        assert result.results[0].coordinate.reference_system == ReferenceSystem.GDA2020

    @pytest.mark.asyncio
    async def test_center_from_address(self, service, datastore, make_address_row):
        datastore.responses[ADDRESS_CANDIDATES_QUERY] = [make_address_row(latitude=-38.2731, longitude=144.4917)]
        datastore.responses[PROXIMITY_QUERY] = []

        result = await service.find_nearby({"address": "10 Bridge Rd Barwon Heads"})

        assert (result.center.latitude, result.center.longitude) == (-38.2731, 144.4917)
        assert datastore.calls_for(PROXIMITY_QUERY)[0][:2] == [-38.2731, 144.4917]

    @pytest.mark.asyncio
    async def test_coordinates_take_precedence_over_address(self, service, datastore):
        await service.find_nearby({"coordinates": CENTER, "address": "10 Bridge Rd Barwon Heads"})

        assert datastore.calls_for(ADDRESS_CANDIDATES_QUERY) == []

    @pytest.mark.asyncio
    async def test_unresolved_address(self, service, datastore):
        with pytest.raises(GeocodingFailedError):
            await service.find_nearby({"address": "1 Nowhere St Atlantis"})

        assert datastore.calls_for(PROXIMITY_QUERY) == []

    @pytest.mark.asyncio
    async def test_missing_location(self, service, datastore):
        with pytest.raises(MissingLocationError) as exc_info:
            await service.find_nearby({"radius": 500})

        assert exc_info.value.error_code == "MISSING_LOCATION"
        assert datastore.calls == []

    @pytest.mark.asyncio
    async def test_out_of_territory(self, service, datastore):
        with pytest.raises(OutOfTerritoryError):
            await service.find_nearby({"coordinates": {"latitude": 0.0, "longitude": 0.0}})

        assert datastore.calls == []

    @pytest.mark.asyncio
    async def test_malformed_request(self, service):
        with pytest.raises(InvalidInputError):
            await service.find_nearby({"coordinates": CENTER, "radius": "wide"})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("radius", [float("nan"), float("inf"), float("-inf")])
    async def test_non_finite_radius_rejected_before_query(self, service, datastore, radius):
        with pytest.raises(InvalidInputError) as exc_info:
            await service.find_nearby({"coordinates": CENTER, "radius": radius})

        assert exc_info.value.context["fields"] == "radius"
        assert datastore.calls == []


class TestSpatialAnalyticsHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, service, datastore):
        datastore.responses[POSTGIS_EXTENSION_QUERY] = [{"postgis_available": True}]
        datastore.responses[SPATIAL_INDEX_QUERY] = [{"indexname": "address_geometry_idx"}]

        result = await service.health_check()

        assert result.status == HealthState.HEALTHY
        assert result.details == {"spatial_extensions": True, "index_health": "healthy"}

    @pytest.mark.asyncio
    async def test_missing_index_degraded(self, service, datastore):
        datastore.responses[POSTGIS_EXTENSION_QUERY] = [{"postgis_available": True}]
        datastore.responses[SPATIAL_INDEX_QUERY] = []

        result = await service.health_check()

        assert result.status == HealthState.DEGRADED
        assert result.details["index_health"] == "missing"

    @pytest.mark.asyncio
    async def test_missing_extension_degraded(self, service, datastore):
        datastore.responses[POSTGIS_EXTENSION_QUERY] = [{"postgis_available": False}]
        datastore.responses[SPATIAL_INDEX_QUERY] = [{"indexname": "address_geometry_idx"}]

        result = await service.health_check()

        assert result.status == HealthState.DEGRADED
        assert result.details["spatial_extensions"] is False

    @pytest.mark.asyncio
    async def test_datastore_failure(self, service, datastore):
        datastore.responses[POSTGIS_EXTENSION_QUERY] = DependencyFailureError("connection refused")

        result = await service.health_check()

        assert result.status == HealthState.UNHEALTHY
        assert result.details["error"] == "connection refused"
