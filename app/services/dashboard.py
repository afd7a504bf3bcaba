# path: cable-fault-map/app/services/dashboard.py

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any, Dict, List, Optional

from app.clients.cable_api import CableApiClient
from app.config import Settings, settings as default_settings
from app.logging import get_logger
from app.models.fault_models import FaultEvent
from app.models.route_models import GeoPoint, RouteModel
from app.models.segment_models import SegmentConfig
from app.services.fault_cache import FaultCache
from app.services.fault_locator import locate
from app.services.fault_simulator import FaultSimulator
from app.services.map_surface import CallLater, InMemoryMapSurface
from app.services.marker_reconciler import MarkerReconciler
from app.services.polling import PollingScheduler, StopPolicy
from app.services.route_loader import RouteRegistry, load_route
from app.services.segment_catalog import SegmentCatalog

logger = get_logger(__name__)

# Polls a locally shown fault may be missing from before it is dropped.
PENDING_GRACE_POLLS = 3


class FaultPane:
    """One segment's map pane: its surface, its reconciler and faults shown ahead of the poll."""

    def __init__(self, segment: SegmentConfig, surface: InMemoryMapSurface, reconciler: MarkerReconciler):
        self.segment = segment
        self.surface = surface
        self.reconciler = reconciler
        self._pending: Dict[str, FaultEvent] = {}
        self._pending_misses: Dict[str, int] = {}
        self._polled: List[FaultEvent] = []

    def _desired(self) -> List[FaultEvent]:
        polled_ids = {e.id for e in self._polled}
        return self._polled + [e for fid, e in self._pending.items() if fid not in polled_ids]

    def apply_poll(self, events: List[FaultEvent]):
        self._polled = list(events)
        polled_ids = {e.id for e in events}
        for fault_id in list(self._pending):
            if fault_id in polled_ids:
                del self._pending[fault_id]
                self._pending_misses.pop(fault_id, None)
                continue
            self._pending_misses[fault_id] = self._pending_misses.get(fault_id, 0) + 1
            if self._pending_misses[fault_id] > PENDING_GRACE_POLLS:
                logger.info("pending_fault_expired pane=%s id=%s", self.segment.key, fault_id)
                del self._pending[fault_id]
                del self._pending_misses[fault_id]
        return self.reconciler.sync(self._desired())

    def show_local(self, event: FaultEvent):
        self._pending[event.id] = event
        self._pending_misses[event.id] = 0
        return self.reconciler.sync(self._desired())

    def forget(self, fault_id: str):
        self._pending.pop(fault_id, None)
        self._pending_misses.pop(fault_id, None)
        self._polled = [e for e in self._polled if e.id != fault_id]
        return self.reconciler.sync(self._desired())

    def refresh(self):
        """Re-run reconciliation, e.g. once a route arrives for faults lacking coordinates."""
        return self.reconciler.sync(self._desired())

    def clear(self) -> None:
        self._pending.clear()
        self._pending_misses.clear()
        self._polled = []
        self.reconciler.clear()

    def to_geojson(self) -> Dict[str, Any]:
        collection = self.surface.to_geojson()
        collection["pane"] = self.segment.key
        collection["view"] = self.surface.view.to_dict()
        return collection


class Dashboard:
    """
    Runtime wiring for every configured segment.

    One poll-forever scheduler fetches all cuts and fans them out to the
    panes by id prefix; one stop-on-first-result scheduler per segment loads
    its route.
    """

    def __init__(
        self,
        config: Settings = default_settings,
        client: Optional[CableApiClient] = None,
        catalog: Optional[SegmentCatalog] = None,
        cache: Optional[FaultCache] = None,
        call_later: Optional[CallLater] = None,
    ):
        self.config = config
        self.client = client or CableApiClient(config.cable_api_base_url, timeout=config.cable_api_timeout)
        self.catalog = catalog or SegmentCatalog.default(config.enabled_segments)
        self.cache = cache or FaultCache(config.fault_cache_path, config.fault_cache_key)
        self.routes = RouteRegistry(self.client)

        self.panes: Dict[str, FaultPane] = {}
        for segment in self.catalog:
            surface = InMemoryMapSurface(segment.key, close_delay=config.popup_close_delay_seconds, call_later=call_later)
            reconciler = MarkerReconciler(
                surface,
                pane_key=segment.key,
                locate_missing=self._locate_missing,
                allow_delete=config.allow_cut_delete,
                zero_is_missing=segment.reject_zero_sentinel,
            )
            self.panes[segment.key] = FaultPane(segment, surface, reconciler)

        self.simulator = FaultSimulator(
            self.client,
            self.catalog,
            self.routes,
            cache=self.cache,
            surface_for=lambda key: self.panes[key].surface if key in self.panes else None,
            on_created=self._show_local,
            fly_to_zoom=config.fly_to_zoom,
            fly_to_duration=config.fly_to_duration_seconds,
        )

        self.fault_poller: PollingScheduler[List[FaultEvent]] = PollingScheduler(
            self.fetch_fault_events,
            self.distribute,
            interval=config.poll_interval_seconds,
            stop_policy=StopPolicy.POLL_FOREVER,
            name="cable-cuts",
        )
        self.route_pollers: Dict[str, PollingScheduler[RouteModel]] = {
            segment.key: PollingScheduler(
                self._route_fetcher(segment),
                self._route_loaded,
                interval=config.poll_interval_seconds,
                stop_policy=StopPolicy.STOP_ON_FIRST_RESULT,
                is_empty=lambda route: route.is_empty,
                name=f"route-{segment.key}",
            )
            for segment in self.catalog
        }

    def _route_fetcher(self, segment: SegmentConfig):
        async def fetch() -> RouteModel:
            return await load_route(self.client, segment)

        return fetch

    def _route_loaded(self, route: RouteModel) -> None:
        if route.is_empty:
            logger.info("route_empty_retrying segment=%s", route.segment_key)
            return
        self.routes.put(route)
        pane = self.panes.get(route.segment_key)
        if pane is not None:
            pane.refresh()

    def _locate_missing(self, event: FaultEvent) -> Optional[GeoPoint]:
        route = self.routes.get(event.segment_key)
        if route is None:
            return None
        return locate(route, event.distance_km)

    def _show_local(self, event: FaultEvent) -> None:
        pane = self.panes.get(event.segment_key)
        if pane is not None:
            pane.show_local(event)

    def pane(self, segment_key: str) -> FaultPane:
        segment = self.catalog.get(segment_key)
        return self.panes[segment.key]

    async def fetch_fault_events(self) -> List[FaultEvent]:
        records = await self.client.fetch_cable_cuts()
        return [FaultEvent.from_record(r) for r in records]

    def distribute(self, events: List[FaultEvent]) -> None:
        grouped: Dict[str, List[FaultEvent]] = defaultdict(list)
        for event in events:
            owner = self.catalog.owner_of(event.id)
            if owner is not None:
                grouped[owner.key].append(event)
        for key, pane in self.panes.items():
            pane.apply_poll(grouped.get(key, []))

    def restore_cached(self) -> int:
        restored = 0
        for event in self.cache.load():
            pane = self.panes.get(event.segment_key)
            if pane is not None:
                pane.show_local(event)
                restored += 1
        if restored:
            logger.info("fault_cache_restored count=%s", restored)
        return restored

    def start(self) -> None:
        self.restore_cached()
        self.fault_poller.start()
        for poller in self.route_pollers.values():
            poller.start()
        logger.info("dashboard_started panes=%s", len(self.panes))

    async def stop(self) -> None:
        pollers = [self.fault_poller, *self.route_pollers.values()]
        await asyncio.gather(*(p.aclose() for p in pollers))
        for pane in self.panes.values():
            pane.clear()
        logger.info("dashboard_stopped")

    async def aclose(self) -> None:
        await self.stop()
        await self.client.aclose()

    async def reset_simulation(self) -> None:
        # A fetch issued before the delete may still answer with the old cuts.
        self.fault_poller.cancel_inflight()
        await self.client.delete_all_cable_cuts()
        self.fault_poller.cancel_inflight()
        self.cache.clear()
        for pane in self.panes.values():
            pane.clear()
        logger.info("simulation_reset")

    async def delete_cut(self, cut_id: str) -> None:
        await self.client.delete_cable_cut(cut_id)
        self.cache.remove(cut_id)
        owner = self.catalog.owner_of(cut_id)
        if owner is not None:
            self.panes[owner.key].forget(cut_id)
        logger.info("cut_deleted id=%s", cut_id)

    def status(self) -> Dict[str, Any]:
        def _poller(p: PollingScheduler) -> Dict[str, Any]:
            return {
                "state": p.state.value,
                "cycles": p.cycles,
                "aborted": p.aborted,
                "last_error": type(p.last_error).__name__ if p.last_error else None,
            }

        return {
            "fault_poller": _poller(self.fault_poller),
            "routes_loaded": sorted(k for k in self.panes if self.routes.get(k) is not None),
            "panes": {k: len(p.reconciler.state) for k, p in self.panes.items()},
        }
