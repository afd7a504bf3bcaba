# path: cable-fault-map/app/api/routes/simulation.py

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_dashboard, to_http_exception
from app.errors import CableMapError
from app.services.dashboard import Dashboard

router = APIRouter(prefix="/simulation", tags=["simulation"])


@router.get("/status")
async def simulation_status(dashboard: Dashboard = Depends(get_dashboard)) -> Dict[str, Any]:
    return dashboard.status()


@router.delete("")
async def reset_simulation(dashboard: Dashboard = Depends(get_dashboard)) -> Dict[str, str]:
    try:
        await dashboard.reset_simulation()
    except CableMapError as e:
        raise to_http_exception(e)
    return {"status": "cleared"}


@router.delete("/cuts/{cut_id}")
async def delete_cut(cut_id: str, dashboard: Dashboard = Depends(get_dashboard)) -> Dict[str, str]:
    if not dashboard.config.allow_cut_delete:
        raise HTTPException(status_code=403, detail="Deleting individual cuts is disabled")
    try:
        await dashboard.delete_cut(cut_id)
    except CableMapError as e:
        raise to_http_exception(e)
    return {"status": "deleted", "cut_id": cut_id}
