"""Tests for the administrative boundary lookup and its derivation tables."""

import pytest

from gnaf_core.exceptions import DependencyFailureError, LocalityNotFoundError, OutOfTerritoryError
from gnaf_core.interfaces import HealthState
from modules.spatial_services.boundaries import BoundaryService, delivery_region, lga_category
from modules.spatial_services.caching import SpatialCache
from modules.spatial_services.gazetteer_queries import BOUNDARY_QUERY
from modules.spatial_services.models import ReferenceSystem
from modules.spatial_services.monitoring import PerformanceMonitoringService

MELBOURNE_ROW = {
    "locality_pid": "VIC2615",
    "locality_name": "MELBOURNE",
    "postcode": "3000",
    "state_code": "VIC",
    "local_government_area": "City of Melbourne",
}


def melbourne_request(**overrides):
    request = {"coordinates": {"latitude": -37.8136, "longitude": 144.9631}}
    request.update(overrides)
    return request


@pytest.fixture
def cache(clock):
    return SpatialCache("boundary", clock=clock)


@pytest.fixture
def service(datastore, transform, cache):
    datastore.responses[BOUNDARY_QUERY] = [MELBOURNE_ROW]
    return BoundaryService(datastore, transform, cache)


class TestLgaCategory:

    @pytest.mark.parametrize("name,category", [
        ("City of Melbourne", "City"),
        ("Ballarat Shire", "Shire"),
        ("Greater Geelong,City", "City"),
        ("Town of Port Hedland", "Town"),
        ("CITY OF MELBOURNE", "City"),
        ("BALLARAT SHIRE", "Shire"),
        ("Melbourne city", "City"),
        ("Mornington Peninsula Shire Council", "Shire"),
        ("Hobart", "Area"),
        ("", "Area"),
        (None, "Area"),
    ])
    def test_category(self, name, category):
        assert lga_category(name) == category

    def test_first_keyword_in_table_order_wins(self):
        assert lga_category("Shire of Town City") == "City"


class TestDeliveryRegion:

    @pytest.mark.parametrize("postcode,region", [
        ("0200", "ACT"),
        ("0800", "NT"),
        ("2000", "NSW"),
        ("3000", "VIC"),
        ("3227", "VIC"),
        ("4000", "QLD"),
        ("5000", "SA"),
        ("6000", "WA"),
        ("7000", "TAS"),
        ("7999", "TAS"),
        ("9999", "Unknown"),
        ("ABC", "Unknown"),
        (None, "Unknown"),
    ])
    def test_region(self, postcode, region):
        assert delivery_region(postcode) == region


class TestBoundaryLookup:

    @pytest.mark.asyncio
    async def test_full_result(self, service):
        result = await service.lookup(melbourne_request())

        assert result.locality.name == "MELBOURNE"
        assert result.locality.id == "VIC2615"
        assert result.locality.postcode == "3000"
        assert result.locality.state == "VIC"
        assert result.local_government_area.name == "City of Melbourne"
        assert result.local_government_area.category == "City"
        assert result.postal_area.postcode == "3000"
        assert result.postal_area.delivery_region == "VIC"
        assert result.electoral_district is None
        assert result.coordinate.reference_system == ReferenceSystem.WGS84

    @pytest.mark.asyncio
    async def test_response_shape(self, service):
        response = (await service.lookup(melbourne_request())).to_response()

        assert response["localGovernmentArea"] == {"name": "City of Melbourne", "category": "City"}
        assert response["postalArea"] == {"postcode": "3000", "deliveryRegion": "VIC"}
        assert response["electoralDistrict"] is None

    @pytest.mark.asyncio
    async def test_optional_sections_excluded(self, service):
        result = await service.lookup(melbourne_request(includeLGA=False, includePostal=False))

        assert result.local_government_area is None
        assert result.postal_area is None
        assert result.locality.name == "MELBOURNE"

    @pytest.mark.asyncio
    async def test_electoral_district_always_absent(self, service):
        result = await service.lookup(melbourne_request(includeElectoral=True))

        assert result.electoral_district is None

    @pytest.mark.asyncio
    async def test_missing_lga_name(self, service, datastore):
        datastore.responses[BOUNDARY_QUERY] = [dict(MELBOURNE_ROW, local_government_area=None)]

        result = await service.lookup(melbourne_request())

        assert result.local_government_area is None

    @pytest.mark.asyncio
    async def test_query_parameters(self, service, datastore):
        await service.lookup(melbourne_request())

        assert datastore.calls_for(BOUNDARY_QUERY) == [[-37.8136, 144.9631]]

    @pytest.mark.asyncio
    async def test_locality_not_found(self, service, datastore):
        datastore.responses[BOUNDARY_QUERY] = []

        with pytest.raises(LocalityNotFoundError):
            await service.lookup(melbourne_request())

    @pytest.mark.asyncio
    async def test_misses_are_not_cached(self, service, datastore, cache):
        datastore.responses[BOUNDARY_QUERY] = []

        for _ in range(2):
            with pytest.raises(LocalityNotFoundError):
                await service.lookup(melbourne_request())

        assert len(datastore.calls_for(BOUNDARY_QUERY)) == 2
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_out_of_territory(self, service, datastore):
        with pytest.raises(OutOfTerritoryError):
            await service.lookup({"coordinates": {"latitude": -33.9249, "longitude": 18.4241}})

        assert datastore.calls == []

    @pytest.mark.asyncio
    async def test_datastore_failure_propagates(self, service, datastore):
        datastore.responses[BOUNDARY_QUERY] = DependencyFailureError("query timed out")

        with pytest.raises(DependencyFailureError):
            await service.lookup(melbourne_request())


class TestBoundaryCaching:

    @pytest.mark.asyncio
    async def test_nearby_coordinates_share_an_entry(self, service, datastore):
        first = await service.lookup({"coordinates": {"latitude": -37.81360001, "longitude": 144.96310002}})
        second = await service.lookup({"coordinates": {"latitude": -37.81360004, "longitude": 144.96309998}})

        assert len(datastore.calls_for(BOUNDARY_QUERY)) == 1
        assert first.locality == second.locality
        assert first.postal_area == second.postal_area

    @pytest.mark.asyncio
    async def test_include_flags_share_an_entry(self, service, datastore):
        await service.lookup(melbourne_request())
        result = await service.lookup(melbourne_request(includeLGA=False))

        assert len(datastore.calls_for(BOUNDARY_QUERY)) == 1
        assert result.local_government_area is None

    @pytest.mark.asyncio
    async def test_expired_entry_reloaded(self, service, datastore, clock):
        await service.lookup(melbourne_request())
        clock.advance(1800)
        await service.lookup(melbourne_request())

        assert len(datastore.calls_for(BOUNDARY_QUERY)) == 2

    @pytest.mark.asyncio
    async def test_cache_hits_recorded(self, datastore, transform, cache, clock):
        datastore.responses[BOUNDARY_QUERY] = [MELBOURNE_ROW]
        monitor = PerformanceMonitoringService(caches=[cache], clock=clock)
        service = BoundaryService(datastore, transform, cache, monitor)

        await service.lookup(melbourne_request())
        await service.lookup(melbourne_request())

        metrics = monitor.get_operation_metrics("boundary")
        assert metrics.request_count == 2
        assert metrics.cache_hit_ratio == 0.5


class TestBoundaryHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, service, datastore):
        result = await service.health_check()

        assert result.status == HealthState.HEALTHY
        assert result.details == {"boundary_data": True, "cache_size": 0}
        assert datastore.calls_for(BOUNDARY_QUERY) == [[-37.8136, 144.9631]]

    @pytest.mark.asyncio
    async def test_no_boundary_data(self, service, datastore):
        datastore.responses[BOUNDARY_QUERY] = []

        result = await service.health_check()

        assert result.status == HealthState.DEGRADED
        assert result.details["boundary_data"] is False

    @pytest.mark.asyncio
    async def test_datastore_failure(self, service, datastore):
        datastore.responses[BOUNDARY_QUERY] = DependencyFailureError("pool closed")

        result = await service.health_check()

        assert result.status == HealthState.UNHEALTHY
        assert result.details["error"] == "pool closed"
