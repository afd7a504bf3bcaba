# path: cable-fault-map/app/services/segment_catalog.py

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from app.errors import UnknownSegment
from app.models.route_models import SegmentBounds
from app.models.segment_models import SegmentConfig


def _seg(
    cable_system: str,
    cable_slug: str,
    key_prefix: str,
    number: int,
    name: str,
    bounds: Optional[SegmentBounds] = None,
    **kwargs,
) -> SegmentConfig:
    return SegmentConfig(
        key=f"{key_prefix}{number}",
        cable_system=cable_system,
        cable_slug=cable_slug,
        segment_number=number,
        name=name,
        bounds=bounds,
        **kwargs,
    )


def _sjc(number: int, name: str, bounds: Optional[SegmentBounds] = None, **kwargs) -> SegmentConfig:
    return _seg("SJC", "sjc", "sjc", number, name, bounds, **kwargs)


def _tgnia(number: int, name: str, bounds: Optional[SegmentBounds] = None, **kwargs) -> SegmentConfig:
    return _seg("TGN-IA", "tgnia", "tgnia", number, name, bounds, **kwargs)


def _seaus(number: int, name: str, bounds: Optional[SegmentBounds] = None, **kwargs) -> SegmentConfig:
    return _seg("SEA-US", "sea-us", "seaus", number, name, bounds, **kwargs)


# Segments without explicit bounds take them from the first/last RPL waypoint.
DEFAULT_SEGMENTS: List[SegmentConfig] = [
    _sjc(
        1,
        "Tuas - Lay Interface",
        SegmentBounds(min_km=5.212, max_km=39.756, min_label="BMH Tuas", max_label="Lay Interface"),
    ),
    _sjc(3, "Lay Interface - Songkhla BU (BU2)"),
    _sjc(4, "Stubbed Cable End - Songkhla BU (BU2)"),
    _sjc(5, "Songkhla BU (BU2) - Telisai BU (BU3)"),
    _sjc(6, "Telisai - Telisai BU (BU3)"),
    _sjc(7, "Telisai BU (BU3) - Nasugbu BU (BU4)"),
    _sjc(8, "Nasugbu - Nasugbu BU (BU4)"),
    _sjc(9, "Nasugbu BU (BU4) - Chung Hom Kok BU (BU5)"),
    _sjc(10, "Chung Hom Kok - Chung Hom Kok (BU5)"),
    _sjc(11, "Shantou BU (BU6) - Chung Hom Kok BU (BU5)"),
    _sjc(12, "Shantou - Shantou BU (BU6)"),
    _sjc(13, "Chikura - Shantou BU (BU6)"),
    _tgnia(1, "Tenah Merah - BU1"),
    _tgnia(
        2,
        "BU1 - BU2",
        SegmentBounds(min_km=0.0, max_km=859.44, min_label="BU1", max_label="BU2"),
    ),
    _tgnia(3, "BU2 - BU3"),
    _tgnia(4, "BU3 - BU4", reject_zero_sentinel=True, landmark_tokens=("S4.RT", "BU")),
    _tgnia(5, "BU4 - BU5"),
    _tgnia(6, "BU5 - BU6"),
    _tgnia(7, "Malaysia Stub (Clump Weight - BU1)"),
    _tgnia(
        8,
        "Vung Tau - BU2",
        SegmentBounds(min_km=0.0, max_km=465.499, min_label="Beach Manhole", max_label="Branching Unit"),
        reject_zero_sentinel=True,
        landmark_tokens=("BMH", "BU", "S8.RT"),
    ),
    _tgnia(
        9,
        "Deep Water Bay - BU3",
        SegmentBounds(min_km=0.0, max_km=725.397, min_label="Beach Manhole", max_label="Branching Unit"),
    ),
    _tgnia(10, "Ballesteros - BU4"),
    _tgnia(11, "China Stub (Clump Weight - BU5)"),
    _tgnia(12, "TGN G2 Stub (BU7 - Clump Weight)"),
    _seaus(1, "Kauditan - BU Davao City"),
    _seaus(
        2,
        "Davao - BU Davao City",
        SegmentBounds(min_km=0.037, max_km=553.462, max_label="BU Davao City"),
        landmark_tokens=("S2R", "City"),
    ),
    _seaus(3, "Piti - BU Davao City"),
    _seaus(4, "Piti - Hawaii BU", landmark_tokens=("BMH", "S4R", "BU")),
    _seaus(5, "Hawaii - Hawaii BU", landmark_tokens=("BMH", "S5R", "BU")),
    _seaus(6, "Hermosa, USA - Hawaii BU"),
]


class SegmentCatalog:
    def __init__(self, segments: Iterable[SegmentConfig]):
        self._segments: Dict[str, SegmentConfig] = {}
        for segment in segments:
            if segment.key in self._segments:
                raise ValueError(f"Duplicate segment key: {segment.key}")
            self._segments[segment.key] = segment

    @classmethod
    def default(cls, enabled: Iterable[str] = ()) -> "SegmentCatalog":
        wanted = set(enabled)
        if not wanted:
            return cls(DEFAULT_SEGMENTS)
        return cls(s for s in DEFAULT_SEGMENTS if s.key in wanted)

    def get(self, key: str) -> SegmentConfig:
        try:
            return self._segments[key]
        except KeyError:
            raise UnknownSegment(f"No cable segment configured for '{key}'") from None

    def owner_of(self, cut_id: str) -> Optional[SegmentConfig]:
        for segment in self._segments.values():
            if segment.owns(cut_id):
                return segment
        return None

    def __iter__(self):
        return iter(self._segments.values())

    def __len__(self) -> int:
        return len(self._segments)

    def __contains__(self, key: object) -> bool:
        return key in self._segments
