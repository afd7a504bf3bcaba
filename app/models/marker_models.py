# path: cable-fault-map/app/models/marker_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from app.models.route_models import GeoPoint


@dataclass(frozen=True)
class MarkerStyle:
    color: str
    size: int = 20
    border_color: str = "white"
    icon: str = "✕"
    class_name: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "color": self.color,
            "size": self.size,
            "border_color": self.border_color,
            "icon": self.icon,
            "class_name": self.class_name,
        }


@dataclass(frozen=True)
class PopupContent:
    title: str
    accent_color: str
    rows: Tuple[Tuple[str, str], ...]
    footer: Optional[str] = None
    cut_id: Optional[str] = None
    allow_delete: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "accent_color": self.accent_color,
            "rows": [list(r) for r in self.rows],
            "footer": self.footer,
            "cut_id": self.cut_id,
            "allow_delete": self.allow_delete,
        }


@dataclass
class MarkerEntry:
    """One fault's slot in a pane. `handle` is None while the fault cannot be placed."""

    handle: Any = None
    popup_open: bool = False
    signature: Optional[str] = None
    popup: Optional[PopupContent] = None

    @property
    def placed(self) -> bool:
        return self.handle is not None


MarkerState = Dict[str, MarkerEntry]


@dataclass(frozen=True)
class CreateMarker:
    fault_id: str
    point: GeoPoint
    style: MarkerStyle
    popup: PopupContent
    signature: str
    open_popup: bool = False


@dataclass(frozen=True)
class RemoveMarker:
    fault_id: str
    handle: Any


@dataclass(frozen=True)
class UpdatePopup:
    fault_id: str
    handle: Any
    popup: PopupContent


MarkerEffect = Union[CreateMarker, RemoveMarker, UpdatePopup]


@dataclass
class ReconcilePlan:
    """Next state (handles of new markers still unset) plus the effects that produce it."""

    state: MarkerState = field(default_factory=dict)
    effects: List[MarkerEffect] = field(default_factory=list)

    @property
    def creates(self) -> int:
        return sum(1 for e in self.effects if isinstance(e, CreateMarker))

    @property
    def removes(self) -> int:
        return sum(1 for e in self.effects if isinstance(e, RemoveMarker))
