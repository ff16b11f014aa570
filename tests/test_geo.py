import pytest

from sondealert.core.geo import Coordinate, distance_km


def test_distance_km_is_zero_for_same_point():
    for point in [Coordinate(0.0, 0.0), Coordinate(40.0, -74.0), Coordinate(-89.9, 179.9)]:
        assert distance_km(point, point) == 0.0


def test_distance_km_is_symmetric():
    a = Coordinate(40.0, -74.0)
    b = Coordinate(51.5, -0.12)
    assert distance_km(a, b) == pytest.approx(distance_km(b, a))
    assert distance_km(a, b) > 0


def test_distance_km_known_values():
    # One degree of latitude on the mean-radius sphere.
    assert distance_km(Coordinate(0.0, 0.0), Coordinate(1.0, 0.0)) == pytest.approx(111.195, abs=0.01)
    assert distance_km(Coordinate(40.0, -74.0), Coordinate(40.05, -74.05)) == pytest.approx(7.0, abs=0.05)


def test_distance_km_accepts_antipodal_points():
    assert distance_km(Coordinate(0.0, 0.0), Coordinate(0.0, 180.0)) == pytest.approx(20015.1, abs=0.1)
