# path: cable-fault-map/app/services/route_loader.py

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Union
import math

from pydantic import ValidationError

from app.clients.cable_api import CableApiClient
from app.logging import get_logger
from app.models.fault_models import parse_depth
from app.models.route_models import (
    BBoxWGS84,
    RawWaypointRecord,
    RouteModel,
    RouteSummary,
    SegmentBounds,
    Waypoint,
)
from app.models.segment_models import SegmentConfig
from app.utils.geo import bbox_wgs84, polyline_length_km
from app.utils.hashing import stable_json_sha256

logger = get_logger(__name__)


def _is_zero_sentinel(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip() == "0"
    return isinstance(raw, (int, float)) and not isinstance(raw, bool) and raw == 0


def _finite(raw: Any) -> Optional[float]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _parse_waypoint(row: RawWaypointRecord, reject_zero_sentinel: bool) -> Optional[Waypoint]:
    if reject_zero_sentinel and (_is_zero_sentinel(row.full_latitude) or _is_zero_sentinel(row.full_longitude)):
        return None
    lat = _finite(row.full_latitude)
    lon = _finite(row.full_longitude)
    dist = _finite(row.cable_cumulative_total)
    if lat is None or lon is None or dist is None:
        return None
    try:
        return Waypoint(
            label=row.event or None,
            latitude=lat,
            longitude=lon,
            cumulative_distance_km=dist,
            depth_m=parse_depth(row.depth),
        )
    except ValidationError:
        # Out-of-range coordinates are as unusable as missing ones.
        return None


def build_route(
    segment: SegmentConfig,
    records: Iterable[Union[Dict[str, Any], RawWaypointRecord]],
) -> RouteModel:
    rows = [r if isinstance(r, RawWaypointRecord) else RawWaypointRecord.model_validate(r) for r in records]

    parsed: List[Waypoint] = []
    for row in rows:
        wp = _parse_waypoint(row, segment.reject_zero_sentinel)
        if wp is not None:
            parsed.append(wp)

    # Stable sort keeps the first of several rows at the same distance.
    parsed.sort(key=lambda w: w.cumulative_distance_km)
    deduped: List[Waypoint] = []
    for wp in parsed:
        if deduped and wp.cumulative_distance_km == deduped[-1].cumulative_distance_km:
            continue
        deduped.append(wp)

    dropped = len(rows) - len(deduped)
    if dropped:
        logger.debug("route_rows_dropped segment=%s dropped=%s kept=%s", segment.key, dropped, len(deduped))

    bounds = segment.bounds
    if bounds is None and deduped:
        bounds = SegmentBounds(
            min_km=deduped[0].cumulative_distance_km,
            max_km=deduped[-1].cumulative_distance_km,
            min_label=deduped[0].label,
            max_label=deduped[-1].label,
        )

    raw_hash = stable_json_sha256([r.model_dump(mode="json", by_alias=True) for r in rows])
    return RouteModel(segment_key=segment.key, waypoints=tuple(deduped), bounds=bounds, source_hash=raw_hash)


async def load_route(client: CableApiClient, segment: SegmentConfig) -> RouteModel:
    """Fetch and parse a segment's RPL. Raises NetworkFailure/ServerError from the client."""
    records = await client.fetch_route_records(segment.api_path)
    return build_route(segment, records)


def summarize_route(segment: SegmentConfig, route: Optional[RouteModel]) -> RouteSummary:
    points = route.polyline() if route is not None else []
    bbox = BBoxWGS84(**bbox_wgs84(points)) if points else None
    return RouteSummary(
        segment_key=segment.key,
        name=segment.display_name,
        api_path=segment.api_path,
        waypoint_count=len(points),
        bounds=route.bounds if route is not None else segment.bounds,
        length_km=polyline_length_km(points),
        bbox_wgs84=bbox,
        polyline=points,
        landmarks=route.landmarks(segment.landmark_tokens) if route is not None else [],
    )


class RouteRegistry:
    """Latest RouteModel per segment; a successful refetch replaces the whole model."""

    def __init__(self, client: CableApiClient):
        self.client = client
        self._routes: Dict[str, RouteModel] = {}

    def get(self, segment_key: str) -> Optional[RouteModel]:
        return self._routes.get(segment_key)

    def put(self, route: RouteModel) -> None:
        current = self._routes.get(route.segment_key)
        if current is not None and current.source_hash == route.source_hash:
            return
        self._routes[route.segment_key] = route
        logger.info("route_loaded segment=%s waypoints=%s", route.segment_key, len(route.waypoints))

    async def get_or_load(self, segment: SegmentConfig) -> RouteModel:
        cached = self._routes.get(segment.key)
        if cached is not None and not cached.is_empty:
            return cached
        route = await load_route(self.client, segment)
        if not route.is_empty:
            self.put(route)
        return route

    def clear(self) -> None:
        self._routes.clear()
