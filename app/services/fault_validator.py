# path: cable-fault-map/app/services/fault_validator.py

from __future__ import annotations

from typing import Dict, Optional, Union
import math

from app.errors import DistanceOutOfBounds, MissingFaultType
from app.models.fault_models import FaultType
from app.models.route_models import SegmentBounds


def _distance_error(distance_km: Optional[float], bounds: SegmentBounds) -> Optional[str]:
    if distance_km is None:
        return "Distance value is required"
    if not math.isfinite(distance_km):
        return "Distance must be a finite number"
    if bounds.contains(distance_km):
        return None
    if distance_km <= bounds.min_km:
        where = f" ({bounds.min_label})" if bounds.min_label else ""
        return f"Distance out of bounds{where}: minimum is {bounds.min_km:g} km"
    where = bounds.max_label or f"{bounds.max_km:g} km"
    return f"Distance cannot exceed {where} ({bounds.max_km:g} km)"


TYPE_REQUIRED_MESSAGE = "Cut type selection is required"


def require_fault_type(fault_type: Union[FaultType, str, None]) -> FaultType:
    parsed = FaultType.parse(fault_type)
    if parsed is None:
        raise MissingFaultType(TYPE_REQUIRED_MESSAGE, field_errors={"fault_type": TYPE_REQUIRED_MESSAGE})
    return parsed


def field_errors(
    distance_km: Optional[float],
    fault_type: Union[FaultType, str, None],
    bounds: SegmentBounds,
) -> Dict[str, str]:
    """All inline field errors at once, keyed by request field name."""
    errors: Dict[str, str] = {}
    distance_error = _distance_error(distance_km, bounds)
    if distance_error:
        errors["distance_km"] = distance_error
    if FaultType.parse(fault_type) is None:
        errors["fault_type"] = TYPE_REQUIRED_MESSAGE
    return errors


def validate(
    distance_km: Optional[float],
    fault_type: Union[FaultType, str, None],
    bounds: SegmentBounds,
) -> FaultType:
    """Raise DistanceOutOfBounds or MissingFaultType; return the parsed type on success."""
    errors = field_errors(distance_km, fault_type, bounds)
    if "distance_km" in errors:
        raise DistanceOutOfBounds(errors["distance_km"], field_errors=errors)
    if "fault_type" in errors:
        raise MissingFaultType(errors["fault_type"], field_errors=errors)
    return FaultType.parse(fault_type)
