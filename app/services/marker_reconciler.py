# path: cable-fault-map/app/services/marker_reconciler.py

"""
Diff a freshly polled fault list against the markers already on a map pane.

`plan` is pure: it computes the next MarkerState and the effects that get
there. `apply_plan` executes those effects against a MapSurface. Markers whose
signature (position + style) is unchanged are never touched, so repeated polls
cause no flicker and open popups stay open.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, Optional, Protocol

from app.logging import get_logger
from app.models.fault_models import FaultEvent, FaultType
from app.models.marker_models import (
    CreateMarker,
    MarkerEntry,
    MarkerState,
    MarkerStyle,
    PopupContent,
    ReconcilePlan,
    RemoveMarker,
    UpdatePopup,
)
from app.models.route_models import GeoPoint
from app.services.popup_presenter import present
from app.utils.hashing import stable_json_sha256

logger = get_logger(__name__)

FAULT_COLORS: Dict[FaultType, str] = {
    FaultType.SHUNT_FAULT: "#FFA726",
    FaultType.PARTIAL_FIBER_BREAK: "#EF5350",
    FaultType.FIBER_BREAK: "#B71C1C",
    FaultType.FULL_CUT: "#6A1B9A",
}
DEFAULT_COLOR = "red"
MARKER_SIZE = 20

LocateMissing = Callable[[FaultEvent], Optional[GeoPoint]]


class MapSurface(Protocol):
    def add_marker(self, fault_id: str, point: GeoPoint, style: MarkerStyle, popup: PopupContent) -> Any: ...

    def remove_marker(self, handle: Any) -> None: ...

    def set_popup_content(self, handle: Any, popup: PopupContent) -> None: ...

    def open_popup(self, handle: Any) -> None: ...

    def is_popup_open(self, handle: Any) -> bool: ...

    def fly_to(self, point: GeoPoint, zoom: float, duration: float) -> None: ...


def marker_style(fault_type: FaultType, pane_key: str = "") -> MarkerStyle:
    class_name = f"cut-marker-{fault_type.value}"
    if pane_key:
        class_name = f"{class_name}-{pane_key}"
    return MarkerStyle(
        color=FAULT_COLORS.get(fault_type, DEFAULT_COLOR),
        size=MARKER_SIZE,
        class_name=class_name,
    )


def marker_signature(point: GeoPoint, style: MarkerStyle) -> str:
    return stable_json_sha256({"lat": point.latitude, "lon": point.longitude, "style": style.to_dict()})


def position_of(
    event: FaultEvent,
    locate_missing: Optional[LocateMissing] = None,
    zero_is_missing: bool = False,
) -> Optional[GeoPoint]:
    placed = event.has_position
    if placed and zero_is_missing and (event.latitude == 0 or event.longitude == 0):
        placed = False
    if placed:
        return GeoPoint(latitude=event.latitude, longitude=event.longitude)
    if locate_missing is not None:
        return locate_missing(event)
    return None


def plan(
    desired: Iterable[FaultEvent],
    previous: MarkerState,
    pane_key: str = "",
    locate_missing: Optional[LocateMissing] = None,
    allow_delete: bool = False,
    zero_is_missing: bool = False,
) -> ReconcilePlan:
    wanted: Dict[str, FaultEvent] = {}
    for event in desired:
        wanted[event.id] = event

    result = ReconcilePlan()

    for fault_id, entry in previous.items():
        if fault_id not in wanted and entry.placed:
            result.effects.append(RemoveMarker(fault_id, entry.handle))

    for fault_id, event in wanted.items():
        prior = previous.get(fault_id)
        point = position_of(event, locate_missing, zero_is_missing)

        if point is None:
            # Keep whatever is shown until the fault can be placed again.
            result.state[fault_id] = replace(prior) if prior is not None else MarkerEntry()
            continue

        style = marker_style(event.fault_type, pane_key)
        popup = present(event, point, style, allow_delete=allow_delete)
        signature = marker_signature(point, style)

        if prior is None or not prior.placed:
            result.effects.append(CreateMarker(fault_id, point, style, popup, signature))
            result.state[fault_id] = MarkerEntry(signature=signature, popup=popup)
        elif prior.signature == signature:
            if popup != prior.popup:
                result.effects.append(UpdatePopup(fault_id, prior.handle, popup))
            result.state[fault_id] = MarkerEntry(
                handle=prior.handle,
                popup_open=prior.popup_open,
                signature=signature,
                popup=popup,
            )
        else:
            result.effects.append(RemoveMarker(fault_id, prior.handle))
            result.effects.append(
                CreateMarker(fault_id, point, style, popup, signature, open_popup=prior.popup_open)
            )
            result.state[fault_id] = MarkerEntry(popup_open=prior.popup_open, signature=signature, popup=popup)

    return result


def apply_plan(surface: MapSurface, reconcile_plan: ReconcilePlan) -> MarkerState:
    state = {fault_id: replace(entry) for fault_id, entry in reconcile_plan.state.items()}
    for effect in reconcile_plan.effects:
        if isinstance(effect, RemoveMarker):
            surface.remove_marker(effect.handle)
        elif isinstance(effect, CreateMarker):
            handle = surface.add_marker(effect.fault_id, effect.point, effect.style, effect.popup)
            if effect.open_popup:
                surface.open_popup(handle)
            state[effect.fault_id].handle = handle
        elif isinstance(effect, UpdatePopup):
            surface.set_popup_content(effect.handle, effect.popup)
    return state


def reconcile(
    desired: Iterable[FaultEvent],
    previous: MarkerState,
    surface: MapSurface,
    pane_key: str = "",
    locate_missing: Optional[LocateMissing] = None,
    allow_delete: bool = False,
    zero_is_missing: bool = False,
) -> MarkerState:
    return apply_plan(surface, plan(desired, previous, pane_key, locate_missing, allow_delete, zero_is_missing))


class MarkerReconciler:
    """Owns the marker registry of one map pane."""

    def __init__(
        self,
        surface: MapSurface,
        pane_key: str = "",
        locate_missing: Optional[LocateMissing] = None,
        allow_delete: bool = False,
        zero_is_missing: bool = False,
    ):
        self.surface = surface
        self.pane_key = pane_key
        self.locate_missing = locate_missing
        self.allow_delete = allow_delete
        self.zero_is_missing = zero_is_missing
        self.state: MarkerState = {}

    def _previous_with_popup_flags(self) -> MarkerState:
        # Popups open and close through user interaction on the surface.
        return {
            fault_id: replace(entry, popup_open=self.surface.is_popup_open(entry.handle))
            if entry.placed
            else replace(entry)
            for fault_id, entry in self.state.items()
        }

    def sync(self, desired: Iterable[FaultEvent]) -> ReconcilePlan:
        result = plan(
            desired,
            self._previous_with_popup_flags(),
            pane_key=self.pane_key,
            locate_missing=self.locate_missing,
            allow_delete=self.allow_delete,
            zero_is_missing=self.zero_is_missing,
        )
        self.state = apply_plan(self.surface, result)
        if result.effects:
            logger.debug(
                "markers_reconciled pane=%s created=%s removed=%s total=%s",
                self.pane_key,
                result.creates,
                result.removes,
                len(self.state),
            )
        return result

    def clear(self) -> None:
        for entry in self.state.values():
            if entry.placed:
                self.surface.remove_marker(entry.handle)
        self.state = {}

    @property
    def marker_ids(self) -> set:
        return set(self.state)
