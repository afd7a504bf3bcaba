# path: cable-fault-map/app/models/segment_models.py

from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from app.models.route_models import SegmentBounds


class SegmentConfig(BaseModel):
    """Everything that differs between one cable segment and the next."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(pattern=r"^[a-z0-9]+$")  # also the cut id prefix, e.g. "sjc1"
    cable_system: str
    cable_slug: str
    segment_number: int = Field(ge=1)
    name: str
    bounds: Optional[SegmentBounds] = None
    reject_zero_sentinel: bool = False
    landmark_tokens: Tuple[str, ...] = ("BMH", "BU")

    @property
    def api_path(self) -> str:
        return f"/{self.cable_slug}-rpl-s{self.segment_number}"

    @property
    def display_name(self) -> str:
        return f"{self.cable_system} Segment {self.segment_number} | {self.name}"

    def owns(self, cut_id: str) -> bool:
        # Exact prefix: "sjc1" must not claim "sjc10-...".
        return cut_id.startswith(f"{self.key}-")


class SegmentOut(BaseModel):
    key: str
    cable_system: str
    segment_number: int
    name: str
    display_name: str
    api_path: str
    bounds: Optional[SegmentBounds] = None

    @classmethod
    def from_config(cls, segment: SegmentConfig) -> "SegmentOut":
        return cls(
            key=segment.key,
            cable_system=segment.cable_system,
            segment_number=segment.segment_number,
            name=segment.name,
            display_name=segment.display_name,
            api_path=segment.api_path,
            bounds=segment.bounds,
        )
