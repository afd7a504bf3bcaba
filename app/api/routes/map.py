# path: cable-fault-map/app/api/routes/map.py

from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_dashboard, to_http_exception
from app.errors import CableMapError
from app.services.dashboard import Dashboard, FaultPane

router = APIRouter(prefix="/map", tags=["map"])


class PointerAction(str, Enum):
    HOVER = "hover"
    LEAVE = "leave"
    CLICK = "click"
    POPUP_ENTER = "popup-enter"
    POPUP_LEAVE = "popup-leave"


def _pane(dashboard: Dashboard, segment_key: str) -> FaultPane:
    try:
        return dashboard.pane(segment_key)
    except CableMapError as e:
        raise to_http_exception(e)


@router.get("/panes/{segment_key}")
async def get_pane(segment_key: str, dashboard: Dashboard = Depends(get_dashboard)) -> Dict[str, Any]:
    return _pane(dashboard, segment_key).to_geojson()


@router.post("/panes/{segment_key}/markers/{cut_id}/{action}")
async def marker_pointer(
    segment_key: str,
    cut_id: str,
    action: PointerAction,
    dashboard: Dashboard = Depends(get_dashboard),
) -> Dict[str, Any]:
    pane = _pane(dashboard, segment_key)
    marker = pane.surface.find(cut_id)
    if marker is None:
        raise HTTPException(status_code=404, detail=f"No marker for cut '{cut_id}'")

    surface = pane.surface
    if action is PointerAction.HOVER:
        surface.pointer_enter_marker(marker)
    elif action is PointerAction.LEAVE:
        surface.pointer_leave_marker(marker)
    elif action is PointerAction.CLICK:
        surface.click(marker)
    elif action is PointerAction.POPUP_ENTER:
        surface.pointer_enter_popup(marker)
    else:
        surface.pointer_leave_popup(marker)
    return marker.to_feature()
