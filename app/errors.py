# path: cable-fault-map/app/errors.py

from __future__ import annotations

from typing import Dict, Optional


class CableMapError(Exception):
    """Base error. `title`/`message` are what an operator dialog shows."""

    title = "Error"
    retryable = False

    def __init__(self, message: str, *, title: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title

    def to_detail(self) -> Dict[str, object]:
        return {
            "error": type(self).__name__,
            "title": self.title,
            "message": self.message,
            "retryable": self.retryable,
        }


class NetworkFailure(CableMapError):
    title = "Connection Error"
    retryable = True


class AbortedRequest(CableMapError):
    """A fetch cancelled because it was superseded or its consumer went away."""

    title = "Request Aborted"


class CutValidationError(CableMapError):
    title = "Invalid Cut"

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.field_errors = dict(field_errors or {})

    def to_detail(self) -> Dict[str, object]:
        detail = super().to_detail()
        detail["field_errors"] = self.field_errors
        return detail


class DistanceOutOfBounds(CutValidationError):
    pass


class MissingFaultType(CutValidationError):
    pass


class PersistenceConflict(CableMapError):
    title = "Duplicate Entry"
    retryable = True


class ServerError(CableMapError):
    title = "Server Error"
    retryable = True

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CalculationError(CableMapError):
    title = "Calculation Error"
    retryable = True


class UnknownSegment(CableMapError):
    title = "Unknown Segment"
