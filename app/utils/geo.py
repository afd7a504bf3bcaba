# path: cable-fault-map/app/utils/geo.py

from __future__ import annotations

from typing import Dict, Iterable, List, Tuple
import math


EARTH_RADIUS_KM = 6371.0088


def bbox_wgs84(points_latlon: Iterable[Tuple[float, float]]) -> Dict[str, float]:
    points = list(points_latlon)
    lats = [p[0] for p in points]
    lons = [p[1] for p in points]
    return {
        "min_lat": min(lats),
        "min_lon": min(lons),
        "max_lat": max(lats),
        "max_lon": max(lons),
    }


def haversine_km(a_lat: float, a_lon: float, b_lat: float, b_lon: float) -> float:
    # Spherical earth; plenty for summaries. Along-cable distance always comes from the RPL.
    phi1 = math.radians(a_lat)
    phi2 = math.radians(b_lat)
    dphi = math.radians(b_lat - a_lat)
    dlmb = math.radians(b_lon - a_lon)

    s = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(s))


def polyline_length_km(points_latlon: List[Tuple[float, float]]) -> float:
    total = 0.0
    for i in range(1, len(points_latlon)):
        a_lat, a_lon = points_latlon[i - 1]
        b_lat, b_lon = points_latlon[i]
        total += haversine_km(a_lat, a_lon, b_lat, b_lon)
    return total
