# path: cable-fault-map/app/api/routes/segments.py

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_dashboard, to_http_exception
from app.errors import CableMapError, CalculationError
from app.models.fault_models import CutRequest, FaultEvent
from app.models.route_models import LocatedPoint, RouteSummary
from app.models.segment_models import SegmentOut
from app.services.dashboard import Dashboard
from app.services.fault_locator import locate
from app.services.route_loader import summarize_route

router = APIRouter(prefix="/segments", tags=["segments"])


@router.get("", response_model=List[SegmentOut])
async def list_segments(dashboard: Dashboard = Depends(get_dashboard)) -> List[SegmentOut]:
    return [SegmentOut.from_config(s) for s in dashboard.catalog]


@router.get("/{segment_key}/route", response_model=RouteSummary)
async def get_route(segment_key: str, dashboard: Dashboard = Depends(get_dashboard)) -> RouteSummary:
    try:
        segment = dashboard.catalog.get(segment_key)
        route = await dashboard.routes.get_or_load(segment)
    except CableMapError as e:
        raise to_http_exception(e)
    return summarize_route(segment, route)


@router.get("/{segment_key}/locate", response_model=LocatedPoint)
async def locate_distance(
    segment_key: str,
    distance_km: float = Query(...),
    dashboard: Dashboard = Depends(get_dashboard),
) -> LocatedPoint:
    try:
        segment = dashboard.catalog.get(segment_key)
        route = await dashboard.routes.get_or_load(segment)
        point = locate(route, distance_km)
        if point is None:
            raise CalculationError(f"No route data available for {segment.display_name}.")
    except CableMapError as e:
        raise to_http_exception(e)
    return point


@router.post("/{segment_key}/cuts", response_model=FaultEvent, status_code=201)
async def simulate_cut(
    segment_key: str,
    body: CutRequest,
    dashboard: Dashboard = Depends(get_dashboard),
) -> FaultEvent:
    try:
        return await dashboard.simulator.submit(
            segment_key,
            body.distance_km,
            body.fault_type,
            fault_date=body.fault_date,
        )
    except CableMapError as e:
        raise to_http_exception(e)
