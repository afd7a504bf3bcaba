# path: cable-fault-map/app/services/fault_simulator.py

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable, Optional, Union

from app.clients.cable_api import CableApiClient
from app.errors import CalculationError
from app.logging import get_logger
from app.models.fault_models import FaultEvent, FaultType
from app.models.route_models import LocatedPoint
from app.services.fault_cache import FaultCache
from app.services.fault_locator import locate
from app.services.fault_validator import require_fault_type, validate
from app.services.marker_reconciler import MapSurface
from app.services.route_loader import RouteRegistry
from app.services.segment_catalog import SegmentCatalog

logger = get_logger(__name__)

CALCULATION_MESSAGE = "Could not calculate cut point. Please check the distance value and try again."

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def make_fault_id(segment_key: str, at: datetime) -> str:
    return f"{segment_key}-{int(at.timestamp() * 1000)}"


class FaultSimulator:
    """
    Turns an operator's cut request into a persisted FaultEvent.

    Validation and location both happen before anything is sent; a request
    that fails either never reaches the cable data service. Other dashboards
    see the new fault on their next poll.
    """

    def __init__(
        self,
        client: CableApiClient,
        catalog: SegmentCatalog,
        routes: RouteRegistry,
        cache: Optional[FaultCache] = None,
        surface_for: Optional[Callable[[str], Optional[MapSurface]]] = None,
        on_created: Optional[Callable[[FaultEvent], None]] = None,
        fly_to_zoom: float = 7.7,
        fly_to_duration: float = 0.5,
        clock: Clock = utc_now,
    ):
        self.client = client
        self.catalog = catalog
        self.routes = routes
        self.cache = cache
        self.surface_for = surface_for
        self.on_created = on_created
        self.fly_to_zoom = fly_to_zoom
        self.fly_to_duration = fly_to_duration
        self.clock = clock

    async def submit(
        self,
        segment_key: str,
        distance_km: Optional[float],
        fault_type: Union[FaultType, str, None],
        fault_date: Optional[date] = None,
    ) -> FaultEvent:
        segment = self.catalog.get(segment_key)

        bounds = segment.bounds
        if bounds is None:
            require_fault_type(fault_type)
            # Bounds come from the RPL itself for segments without configured limits.
            bounds = (await self.routes.get_or_load(segment)).bounds
            if bounds is None:
                raise CalculationError(f"No route data available for {segment.display_name}.")

        parsed_type = validate(distance_km, fault_type, bounds)

        route = await self.routes.get_or_load(segment)
        point = locate(route, distance_km)
        if point is None:
            logger.warning("cut_point_unavailable segment=%s distance_km=%s", segment.key, distance_km)
            raise CalculationError(CALCULATION_MESSAGE)

        event = self._build_event(segment.key, distance_km, parsed_type, point, fault_date)
        await self.client.create_cable_cut(event.to_record())
        logger.info(
            "cut_simulated id=%s segment=%s distance_km=%.3f type=%s",
            event.id,
            segment.key,
            event.distance_km,
            event.fault_type.value,
        )

        if self.cache is not None:
            self.cache.add(event)
        self._fly_to(segment.key, point)
        if self.on_created is not None:
            self.on_created(event)
        return event

    def _build_event(
        self,
        segment_key: str,
        distance_km: float,
        fault_type: FaultType,
        point: LocatedPoint,
        fault_date: Optional[date],
    ) -> FaultEvent:
        now = self.clock()
        return FaultEvent(
            id=make_fault_id(segment_key, now),
            segment_key=segment_key,
            distance_km=float(distance_km),
            fault_type=fault_type,
            simulated_at=now,
            latitude=point.latitude,
            longitude=point.longitude,
            depth_m=point.depth_m,
            fault_date=fault_date,
        )

    def _fly_to(self, segment_key: str, point: LocatedPoint) -> None:
        if self.surface_for is None:
            return
        surface = self.surface_for(segment_key)
        if surface is not None:
            surface.fly_to(point, self.fly_to_zoom, self.fly_to_duration)
