# path: cable-fault-map/app/services/popup_presenter.py

from __future__ import annotations

from datetime import date, datetime, timezone
from html import escape
from typing import Optional

from app.models.fault_models import FaultEvent
from app.models.marker_models import MarkerStyle, PopupContent
from app.models.route_models import UNKNOWN_DEPTH, GeoPoint


def format_fault_date(value: Optional[date]) -> str:
    if value is None:
        return "Not specified"
    return f"{value:%B} {value.day}, {value.year}"


def format_simulated(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return f"Simulated: {value:%Y-%m-%d %H:%M:%S} UTC"


def format_depth(depth) -> str:
    if depth == UNKNOWN_DEPTH or depth is None:
        return f"{UNKNOWN_DEPTH} m"
    return f"{float(depth):g} m"


def present(
    event: FaultEvent,
    point: Optional[GeoPoint],
    style: MarkerStyle,
    allow_delete: bool = False,
) -> PopupContent:
    rows = (
        ("Distance", f"{event.distance_km:.3f} km"),
        ("Depth", format_depth(event.depth_m)),
        ("Latitude", f"{point.latitude:.6f}" if point else ""),
        ("Longitude", f"{point.longitude:.6f}" if point else ""),
        ("Fault Date", format_fault_date(event.fault_date)),
    )
    return PopupContent(
        title=event.fault_type.value.upper(),
        accent_color=style.color,
        rows=rows,
        footer=format_simulated(event.simulated_at),
        cut_id=event.id,
        allow_delete=allow_delete,
    )


def render_html(popup: PopupContent) -> str:
    table = "".join(
        f'<tr><td class="label">{escape(label)}:</td><td class="value">{escape(value)}</td></tr>'
        for label, value in popup.rows
    )
    parts = [
        '<div class="cable-cut-popup">',
        f'<div class="title" style="background-color: {escape(popup.accent_color)}">{escape(popup.title)}</div>',
        f"<table>{table}</table>",
    ]
    if popup.footer:
        parts.append(f'<div class="footer">{escape(popup.footer)}</div>')
    if popup.allow_delete and popup.cut_id:
        parts.append(f'<button class="delete-marker-btn" data-cut-id="{escape(popup.cut_id)}">Delete</button>')
    parts.append("</div>")
    return "".join(parts)
