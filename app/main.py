# path: cable-fault-map/app/main.py

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from app.api.routes.map import router as map_router
from app.api.routes.segments import router as segments_router
from app.api.routes.simulation import router as simulation_router
from app.config import settings
from app.logging import configure_logging
from app.services.dashboard import Dashboard


def create_app(dashboard: Optional[Dashboard] = None, autostart: Optional[bool] = None) -> FastAPI:
    configure_logging()
    start = settings.dashboard_autostart if autostart is None else autostart

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "dashboard", None) is None:
            app.state.dashboard = Dashboard(settings)
        if start:
            app.state.dashboard.start()
        try:
            yield
        finally:
            await app.state.dashboard.aclose()

    app = FastAPI(title="cable-fault-map", lifespan=lifespan)
    app.state.dashboard = dashboard

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(segments_router)
    app.include_router(map_router)
    app.include_router(simulation_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000)
