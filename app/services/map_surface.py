# path: cable-fault-map/app/services/map_surface.py

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from app.models.marker_models import MarkerStyle, PopupContent
from app.models.route_models import GeoPoint
from app.services.popup_presenter import render_html

CallLater = Callable[[float, Callable[[], None]], Any]


def _loop_call_later(delay: float, callback: Callable[[], None]) -> Any:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        callback()
        return None
    return loop.call_later(delay, callback)


@dataclass(eq=False)
class RenderedMarker:
    handle_id: int
    fault_id: str
    point: GeoPoint
    style: MarkerStyle
    popup: PopupContent
    popup_open: bool = False
    marker_hovered: bool = False
    popup_hovered: bool = False
    removed: bool = False
    _pending_close: Any = field(default=None, repr=False)

    def to_feature(self) -> Dict[str, Any]:
        return {
            "type": "Feature",
            "id": self.fault_id,
            "geometry": {"type": "Point", "coordinates": [self.point.longitude, self.point.latitude]},
            "properties": {
                "fault_id": self.fault_id,
                "style": self.style.to_dict(),
                "popup": self.popup.to_dict(),
                "popup_html": render_html(self.popup),
                "popup_open": self.popup_open,
            },
        }


@dataclass
class MapView:
    center: Optional[GeoPoint] = None
    zoom: Optional[float] = None
    duration: float = 0.0
    fly_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center": [self.center.latitude, self.center.longitude] if self.center else None,
            "zoom": self.zoom,
            "duration": self.duration,
            "fly_count": self.fly_count,
        }


class InMemoryMapSurface:
    """
    Map pane kept in memory and served to the browser as GeoJSON.

    Popups open on hover or click. Leaving the marker closes the popup only
    after `close_delay` seconds, and only if the pointer has not moved onto
    the popup in the meantime.
    """

    def __init__(self, pane_key: str, close_delay: float = 0.1, call_later: Optional[CallLater] = None):
        self.pane_key = pane_key
        self.close_delay = close_delay
        self._call_later = call_later or _loop_call_later
        self._ids = itertools.count(1)
        self._markers: Dict[int, RenderedMarker] = {}
        self.view = MapView()
        self.created = 0
        self.removed = 0

    # -- MapSurface ---------------------------------------------------------

    def add_marker(self, fault_id: str, point: GeoPoint, style: MarkerStyle, popup: PopupContent) -> RenderedMarker:
        marker = RenderedMarker(handle_id=next(self._ids), fault_id=fault_id, point=point, style=style, popup=popup)
        self._markers[marker.handle_id] = marker
        self.created += 1
        return marker

    def remove_marker(self, handle: RenderedMarker) -> None:
        self._cancel_close(handle)
        if self._markers.pop(handle.handle_id, None) is not None:
            self.removed += 1
        handle.removed = True
        handle.popup_open = False

    def set_popup_content(self, handle: RenderedMarker, popup: PopupContent) -> None:
        handle.popup = popup

    def open_popup(self, handle: RenderedMarker) -> None:
        if not handle.removed:
            handle.popup_open = True

    def close_popup(self, handle: RenderedMarker) -> None:
        self._cancel_close(handle)
        handle.popup_open = False

    def is_popup_open(self, handle: RenderedMarker) -> bool:
        return handle.popup_open and not handle.removed

    def fly_to(self, point: GeoPoint, zoom: float, duration: float) -> None:
        self.view = MapView(center=point, zoom=zoom, duration=duration, fly_count=self.view.fly_count + 1)

    # -- pointer interaction ----------------------------------------------

    def pointer_enter_marker(self, handle: RenderedMarker) -> None:
        self._cancel_close(handle)
        handle.marker_hovered = True
        self.open_popup(handle)

    def pointer_leave_marker(self, handle: RenderedMarker) -> None:
        handle.marker_hovered = False
        self._schedule_close(handle)

    def pointer_enter_popup(self, handle: RenderedMarker) -> None:
        self._cancel_close(handle)
        handle.popup_hovered = True

    def pointer_leave_popup(self, handle: RenderedMarker) -> None:
        handle.popup_hovered = False
        self.close_popup(handle)

    def click(self, handle: RenderedMarker) -> None:
        if handle.popup_open:
            self.close_popup(handle)
        else:
            self.open_popup(handle)

    def _schedule_close(self, handle: RenderedMarker) -> None:
        self._cancel_close(handle)

        def _close_if_idle():
            handle._pending_close = None
            if not handle.marker_hovered and not handle.popup_hovered:
                handle.popup_open = False

        handle._pending_close = self._call_later(self.close_delay, _close_if_idle)

    @staticmethod
    def _cancel_close(handle: RenderedMarker) -> None:
        pending = handle._pending_close
        handle._pending_close = None
        if pending is not None and hasattr(pending, "cancel"):
            pending.cancel()

    # -- queries -------------------------------------------------------------

    def markers(self) -> List[RenderedMarker]:
        return list(self._markers.values())

    def find(self, fault_id: str) -> Optional[RenderedMarker]:
        for marker in self._markers.values():
            if marker.fault_id == fault_id:
                return marker
        return None

    def to_geojson(self) -> Dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": [m.to_feature() for m in self._markers.values()],
        }
