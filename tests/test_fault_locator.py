import math

import pytest

from app.models.route_models import UNKNOWN_DEPTH, RouteModel, Waypoint
from app.services.fault_locator import locate


def _route(*waypoints):
    return RouteModel(segment_key="sjc1", waypoints=tuple(waypoints))


@pytest.fixture
def route():
    return _route(
        Waypoint(latitude=10.0, longitude=120.0, cumulative_distance_km=0.0, depth_m=100.0),
        Waypoint(latitude=10.5, longitude=120.5, cumulative_distance_km=10.0),
    )


def test_midpoint_is_linearly_interpolated(route):
    point = locate(route, 5.0)
    assert point.latitude == pytest.approx(10.25)
    assert point.longitude == pytest.approx(120.25)


def test_distance_on_waypoint_returns_it_exactly(route):
    start = locate(route, 0.0)
    end = locate(route, 10.0)
    assert (start.latitude, start.longitude) == (10.0, 120.0)
    assert (end.latitude, end.longitude) == (10.5, 120.5)


def test_distance_outside_route_is_clamped_not_extrapolated(route):
    before = locate(route, -5.0)
    after = locate(route, 15.0)
    assert (before.latitude, before.longitude) == (10.0, 120.0)
    assert (after.latitude, after.longitude) == (10.5, 120.5)


def test_empty_route_or_non_finite_distance_gives_none(route):
    assert locate(_route(), 1.0) is None
    assert locate(route, math.nan) is None
    assert locate(route, math.inf) is None


def test_depth_comes_from_nearest_known_waypoint(route):
    assert locate(route, 5.0).depth_m == 100.0
    assert locate(route, 10.0).depth_m == UNKNOWN_DEPTH


def test_route_rejects_unordered_waypoints():
    with pytest.raises(ValueError):
        _route(
            Waypoint(latitude=0.0, longitude=0.0, cumulative_distance_km=5.0),
            Waypoint(latitude=0.0, longitude=0.0, cumulative_distance_km=5.0),
        )
