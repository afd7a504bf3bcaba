# path: cable-fault-map/app/models/route_models.py

from __future__ import annotations

import bisect
import math
from typing import Any, List, Literal, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


UNKNOWN_DEPTH = "Unknown"

DepthValue = Union[float, Literal["Unknown"]]


class RawWaypointRecord(BaseModel):
    """One row of a Route Position List as served by the cable data service."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    event: Optional[str] = None
    full_latitude: Any = None
    full_longitude: Any = None
    cable_cumulative_total: Any = None
    depth: Any = Field(default=None, alias="Depth")


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class LocatedPoint(GeoPoint):
    depth_m: DepthValue = UNKNOWN_DEPTH


class Waypoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: Optional[str] = None
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    cumulative_distance_km: float
    depth_m: DepthValue = UNKNOWN_DEPTH


class SegmentBounds(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_km: float
    max_km: float
    inclusive: bool = True
    # Landmark names used in operator-facing messages, e.g. "BMH Tuas".
    min_label: Optional[str] = None
    max_label: Optional[str] = None

    @model_validator(mode="after")
    def validate_order(self):
        if not (math.isfinite(self.min_km) and math.isfinite(self.max_km)):
            raise ValueError("Segment bounds must be finite")
        if self.min_km > self.max_km:
            raise ValueError(f"min_km {self.min_km} exceeds max_km {self.max_km}")
        return self

    def contains(self, distance_km: float) -> bool:
        if not math.isfinite(distance_km):
            return False
        if self.inclusive:
            return self.min_km <= distance_km <= self.max_km
        return self.min_km < distance_km < self.max_km


class RouteModel(BaseModel):
    """Sorted, filtered waypoints of one cable segment.

    Built once per successful fetch and replaced wholesale on refetch.
    """

    model_config = ConfigDict(frozen=True)

    segment_key: str
    waypoints: Tuple[Waypoint, ...] = ()
    bounds: Optional[SegmentBounds] = None
    source_hash: Optional[str] = None

    @model_validator(mode="after")
    def validate_ordering(self):
        for i in range(1, len(self.waypoints)):
            if self.waypoints[i].cumulative_distance_km <= self.waypoints[i - 1].cumulative_distance_km:
                raise ValueError("Waypoints must be strictly ascending by cumulative distance")
        return self

    @property
    def is_empty(self) -> bool:
        return not self.waypoints

    def distances(self) -> List[float]:
        return [w.cumulative_distance_km for w in self.waypoints]

    def bracket(self, distance_km: float) -> Tuple[Optional[Waypoint], Optional[Waypoint]]:
        """Return (before, after): last waypoint at or below, first at or above."""
        dists = self.distances()
        lo = bisect.bisect_left(dists, distance_km)
        after = self.waypoints[lo] if lo < len(dists) else None
        if after is not None and after.cumulative_distance_km == distance_km:
            return after, after
        before = self.waypoints[lo - 1] if lo > 0 else None
        return before, after

    def polyline(self) -> List[Tuple[float, float]]:
        return [(w.latitude, w.longitude) for w in self.waypoints]

    def landmarks(self, tokens: Sequence[str]) -> List[Waypoint]:
        return [w for w in self.waypoints if w.label and any(t in w.label for t in tokens)]


class BBoxWGS84(BaseModel):
    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float


class RouteSummary(BaseModel):
    segment_key: str
    name: str
    api_path: str
    waypoint_count: int = Field(ge=0)
    bounds: Optional[SegmentBounds] = None
    length_km: float = Field(ge=0)
    bbox_wgs84: Optional[BBoxWGS84] = None
    polyline: List[Tuple[float, float]]  # (lat, lon)
    landmarks: List[Waypoint]
