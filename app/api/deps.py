# path: cable-fault-map/app/api/deps.py

from __future__ import annotations

from fastapi import HTTPException, Request

from app.errors import (
    CableMapError,
    CalculationError,
    CutValidationError,
    NetworkFailure,
    PersistenceConflict,
    ServerError,
    UnknownSegment,
)
from app.services.dashboard import Dashboard

_STATUS_BY_ERROR = (
    (UnknownSegment, 404),
    (CutValidationError, 422),
    (CalculationError, 422),
    (PersistenceConflict, 409),
    (ServerError, 502),
    (NetworkFailure, 503),
)


def get_dashboard(request: Request) -> Dashboard:
    return request.app.state.dashboard


def to_http_exception(error: CableMapError) -> HTTPException:
    status_code = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            status_code = code
            break
    return HTTPException(status_code=status_code, detail=error.to_detail())
