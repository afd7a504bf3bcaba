# path: cable-fault-map/app/services/fault_locator.py

from __future__ import annotations

from typing import Optional
import math

from app.models.route_models import UNKNOWN_DEPTH, LocatedPoint, RouteModel, Waypoint


def _depth_of(before: Optional[Waypoint], after: Optional[Waypoint]):
    for wp in (before, after):
        if wp is not None and wp.depth_m != UNKNOWN_DEPTH:
            return wp.depth_m
    return UNKNOWN_DEPTH


def locate(route: RouteModel, distance_km: float) -> Optional[LocatedPoint]:
    """
    Geographic position of a point `distance_km` along the cable.

    Linear interpolation between the bracketing waypoints. A distance on a
    waypoint returns that waypoint exactly; a distance outside the sampled
    extent returns the nearest end point, never an extrapolation.
    """
    if route.is_empty or distance_km is None or not math.isfinite(distance_km):
        return None

    before, after = route.bracket(distance_km)
    depth = _depth_of(before, after)

    if before is None or after is None:
        known = before if before is not None else after
        return LocatedPoint(latitude=known.latitude, longitude=known.longitude, depth_m=depth)

    if before is after:
        return LocatedPoint(latitude=before.latitude, longitude=before.longitude, depth_m=depth)

    ratio = (distance_km - before.cumulative_distance_km) / (
        after.cumulative_distance_km - before.cumulative_distance_km
    )
    lat = before.latitude + ratio * (after.latitude - before.latitude)
    lon = before.longitude + ratio * (after.longitude - before.longitude)
    return LocatedPoint(latitude=lat, longitude=lon, depth_m=depth)
