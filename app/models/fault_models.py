# path: cable-fault-map/app/models/fault_models.py

from __future__ import annotations

import math
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.route_models import UNKNOWN_DEPTH, DepthValue


_DESCRIPTIONS = {
    "Shunt Fault": "Gradual damage from environmental friction. Progressive service degradation.",
    "Partial Fiber Break": "50% damage to cable fibers. Partial service degradation.",
    "Fiber Break": "100% damage to cable. Complete service loss.",
    "Full Cut": "Damage from ship anchor. Service affected along dragged path.",
}

# Checked in order; first keyword hit wins.
_INFERENCE_KEYWORDS = (
    (("fault", "shunt"), "Shunt Fault"),
    (("partial", "degraded"), "Partial Fiber Break"),
    (("break", "cut"), "Fiber Break"),
    (("anchor", "drag"), "Full Cut"),
)


def _squash(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch.isalnum())


class FaultType(str, Enum):
    SHUNT_FAULT = "Shunt Fault"
    PARTIAL_FIBER_BREAK = "Partial Fiber Break"
    FIBER_BREAK = "Fiber Break"
    FULL_CUT = "Full Cut"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self.value]

    @classmethod
    def parse(cls, value: Union[str, "FaultType", None]) -> Optional["FaultType"]:
        """Accept display values ("Full Cut") and member-style names ("FullCut", "FULL_CUT")."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        key = _squash(str(value))
        if not key:
            return None
        for member in cls:
            if key in (_squash(member.value), _squash(member.name)):
                return member
        return None

    @classmethod
    def infer(cls, label: Optional[str]) -> "FaultType":
        parsed = cls.parse(label)
        if parsed is not None:
            return parsed
        lowered = (label or "").lower()
        for keywords, value in _INFERENCE_KEYWORDS:
            if any(k in lowered for k in keywords):
                return cls(value)
        return cls.FIBER_BREAK


def _to_float_or_none(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def parse_depth(value: Any) -> DepthValue:
    parsed = _to_float_or_none(value)
    return UNKNOWN_DEPTH if parsed is None else parsed


def segment_key_from_cut_id(cut_id: str) -> str:
    """"sjc1-1700000000000" -> "sjc1"."""
    head, sep, _ = cut_id.rpartition("-")
    return head if sep else cut_id


class CableCutRecord(BaseModel):
    """Wire form of a cut, as posted to and polled from the cable data service."""

    model_config = ConfigDict(extra="ignore")

    cut_id: str = Field(min_length=1)
    distance: float = 0.0
    cut_type: str = ""
    simulated: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    depth: Union[float, str, None] = None
    fault_date: Optional[str] = None

    @field_validator("distance", mode="before")
    @classmethod
    def coerce_distance(cls, v):
        parsed = _to_float_or_none(v)
        return 0.0 if parsed is None else parsed

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def coerce_coordinate(cls, v):
        return _to_float_or_none(v)

    @field_validator("simulated", "fault_date", mode="before")
    @classmethod
    def coerce_text(cls, v):
        if v is None or v == "":
            return None
        return str(v)


class FaultEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    segment_key: str
    distance_km: float
    fault_type: FaultType
    simulated_at: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    depth_m: DepthValue = UNKNOWN_DEPTH
    fault_date: Optional[date] = None

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def to_record(self) -> CableCutRecord:
        return CableCutRecord(
            cut_id=self.id,
            distance=self.distance_km,
            cut_type=self.fault_type.value,
            simulated=self.simulated_at.isoformat() if self.simulated_at else None,
            latitude=self.latitude,
            longitude=self.longitude,
            depth=self.depth_m,
            fault_date=self.fault_date.isoformat() if self.fault_date else None,
        )

    @classmethod
    def from_record(cls, record: CableCutRecord) -> "FaultEvent":
        return cls(
            id=record.cut_id,
            segment_key=segment_key_from_cut_id(record.cut_id),
            distance_km=record.distance,
            fault_type=FaultType.infer(record.cut_type),
            simulated_at=_parse_datetime(record.simulated),
            latitude=record.latitude,
            longitude=record.longitude,
            depth_m=parse_depth(record.depth),
            fault_date=_parse_date(record.fault_date),
        )


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


class CutRequest(BaseModel):
    # Optional so that missing values surface as field errors rather than a generic 422.
    distance_km: Optional[float] = None
    fault_type: Optional[str] = None
    fault_date: Optional[date] = None
