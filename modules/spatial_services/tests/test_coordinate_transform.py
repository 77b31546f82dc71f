"""Tests for coordinate validation, conversion and great-circle geometry."""

import math

import pytest

from gnaf_core.config import TerritorySettings
from gnaf_core.exceptions import OutOfTerritoryError, UnknownReferenceSystemError, InvalidCoordinatesError
from modules.spatial_services.coordinates import CoordinateTransform
from modules.spatial_services.models import Coordinate, CoordinatePoint, ReferenceSystem

MELBOURNE = CoordinatePoint(latitude=-37.8136, longitude=144.9631)
SYDNEY = CoordinatePoint(latitude=-33.8688, longitude=151.2093)


class TestValidate:
    """Territorial bound and reference system validation."""

    @pytest.mark.parametrize("latitude,longitude", [
        (-37.8136, 144.9631),
        (-45.0, 110.0),
        (-10.0, 155.0),
        (-45.0, 155.0),
        (-10.0, 110.0),
        (-27.5, 132.0),
    ])
    def test_inside_bound_succeeds(self, transform, latitude, longitude):
        """Every point in the box, edges included, validates."""
        result = transform.validate(CoordinatePoint(latitude=latitude, longitude=longitude))

        assert result.latitude == latitude
        assert result.longitude == longitude
        assert result.reference_system == ReferenceSystem.WGS84

    @pytest.mark.parametrize("latitude,longitude", [
        (-45.0001, 144.0),
        (-9.9999, 144.0),
        (-37.0, 109.9999),
        (-37.0, 155.0001),
        (51.5074, -0.1278),
        (0.0, 0.0),
        (float("nan"), 144.0),
        (-37.0, float("inf")),
    ])
    def test_outside_bound_rejected(self, transform, latitude, longitude):
        """Points outside the box fail rather than being clamped."""
        with pytest.raises(OutOfTerritoryError) as exc_info:
            transform.validate(CoordinatePoint(latitude=latitude, longitude=longitude))

        assert isinstance(exc_info.value, InvalidCoordinatesError)

    def test_unknown_reference_system(self, transform):
        with pytest.raises(UnknownReferenceSystemError):
            transform.validate(MELBOURNE, "NAD27")

    def test_reference_system_case_insensitive(self, transform):
        result = transform.validate(MELBOURNE, "gda2020")

        assert result.reference_system == ReferenceSystem.GDA2020

    def test_uses_coordinate_system_when_not_given(self, transform):
        coordinate = Coordinate(latitude=-37.8136, longitude=144.9631, reference_system=ReferenceSystem.GDA2020)

        assert transform.validate(coordinate).reference_system == ReferenceSystem.GDA2020

    def test_rounds_to_seven_decimals(self, transform):
        result = transform.validate(CoordinatePoint(latitude=-37.813612345678, longitude=144.963198765432))

        assert result.latitude == -37.8136123
        assert result.longitude == 144.9631988

    def test_custom_territory(self):
        transform = CoordinateTransform(TerritorySettings(
            min_latitude=-39.0, max_latitude=-34.0, min_longitude=141.0, max_longitude=150.0
        ))

        assert transform.is_within_territory(-37.8136, 144.9631)
        assert not transform.is_within_territory(-33.8688, 151.2093)


class TestConvert:
    """Datum conversion between WGS84 and GDA2020."""

    def test_same_system_is_identity(self, transform):
        result = transform.convert(MELBOURNE, "WGS84", "WGS84")

        assert result.latitude == MELBOURNE.latitude
        assert result.longitude == MELBOURNE.longitude
        assert result.reference_system == ReferenceSystem.WGS84
        assert transform.get_cache_stats()["cached_transformers"] == 0

    def test_wgs84_to_gda2020(self, transform):
        result = transform.convert(MELBOURNE, ReferenceSystem.WGS84, ReferenceSystem.GDA2020)

        assert result.reference_system == ReferenceSystem.GDA2020
        assert abs(result.latitude - MELBOURNE.latitude) < 0.001
        assert abs(result.longitude - MELBOURNE.longitude) < 0.001

    def test_transformers_are_cached(self, transform):
        transform.convert(MELBOURNE, "WGS84", "GDA2020")
        transform.convert(SYDNEY, "WGS84", "GDA2020")
        transform.convert(SYDNEY, "GDA2020", "WGS84")

        stats = transform.get_cache_stats()
        assert stats["cached_transformers"] == 2
        assert "WGS84->GDA2020" in stats["transformations"]

    def test_native_round_trip_keeps_system(self):
        transform = CoordinateTransform(native_system="GDA2020")
        coordinate = Coordinate(latitude=-37.8136, longitude=144.9631)

        native = transform.to_native(coordinate)
        back = transform.from_native(native, ReferenceSystem.WGS84)

        assert native.reference_system == ReferenceSystem.GDA2020
        assert back.reference_system == ReferenceSystem.WGS84
        assert abs(back.latitude - coordinate.latitude) < 1e-6
        assert abs(back.longitude - coordinate.longitude) < 1e-6

    def test_unknown_target_system(self, transform):
        with pytest.raises(UnknownReferenceSystemError):
            transform.convert(MELBOURNE, "WGS84", "OSGB36")


class TestGeometry:
    """Great-circle distance and bearing."""

    def test_distance_melbourne_sydney(self):
        distance = CoordinateTransform.distance(MELBOURNE, SYDNEY)

        assert 705_000 < distance < 720_000

    def test_distance_is_symmetric(self):
        assert CoordinateTransform.distance(MELBOURNE, SYDNEY) == CoordinateTransform.distance(SYDNEY, MELBOURNE)

    def test_distance_coincident_is_zero(self):
        assert CoordinateTransform.distance(MELBOURNE, MELBOURNE) == 0.0

    def test_one_degree_of_latitude(self):
        a = CoordinatePoint(latitude=-38.0, longitude=145.0)
        b = CoordinatePoint(latitude=-37.0, longitude=145.0)

        expected = round(6371000.0 * math.radians(1.0), 2)
        assert CoordinateTransform.distance(a, b) == pytest.approx(expected, abs=0.01)

    def test_bearing_coincident_is_north(self):
        assert CoordinateTransform.bearing(MELBOURNE, MELBOURNE) == 0.0

    @pytest.mark.parametrize("target,low,high", [
        (CoordinatePoint(latitude=-37.0, longitude=145.0), 0.0, 0.01),
        (CoordinatePoint(latitude=-39.0, longitude=145.0), 179.99, 180.01),
        (CoordinatePoint(latitude=-38.0, longitude=146.0), 89.0, 91.0),
        (CoordinatePoint(latitude=-38.0, longitude=144.0), 269.0, 271.0),
    ])
    def test_bearing_cardinal_directions(self, target, low, high):
        origin = CoordinatePoint(latitude=-38.0, longitude=145.0)

        bearing = CoordinateTransform.bearing(origin, target)

        assert low <= bearing <= high

    def test_bearing_range(self):
        bearing = CoordinateTransform.bearing(SYDNEY, MELBOURNE)

        assert 0.0 <= bearing < 360.0
        assert 220.0 < bearing < 250.0
