# path: cable-fault-map/app/services/fault_cache.py

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Union
import json

from app.logging import get_logger
from app.models.fault_models import FaultEvent

logger = get_logger(__name__)


class FaultCache:
    """
    Local fallback copy of simulated faults, stored under one key in a JSON file.

    Not the source of truth: the cable data service is. The cache only lets a
    restarted dashboard show what this instance simulated before the first
    poll answers.
    """

    def __init__(self, path: Union[str, Path], key: str = "cableCuts"):
        self.path = Path(path)
        self.key = key

    def _read_all(self) -> Dict[str, list]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("fault_cache_unreadable path=%s", self.path, exc_info=True)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, list]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def load(self) -> List[FaultEvent]:
        events = []
        for row in self._read_all().get(self.key, []):
            try:
                events.append(FaultEvent.model_validate(row))
            except ValueError:
                logger.debug("fault_cache_row_skipped row=%s", row)
        return events

    def add(self, event: FaultEvent) -> None:
        data = self._read_all()
        rows = [r for r in data.get(self.key, []) if not (isinstance(r, dict) and r.get("id") == event.id)]
        rows.append(event.model_dump(mode="json"))
        data[self.key] = rows
        self._write_all(data)

    def remove(self, event_id: str) -> None:
        data = self._read_all()
        rows = data.get(self.key, [])
        kept = [r for r in rows if not (isinstance(r, dict) and r.get("id") == event_id)]
        if len(kept) != len(rows):
            data[self.key] = kept
            self._write_all(data)

    def clear(self) -> None:
        data = self._read_all()
        if self.key in data:
            del data[self.key]
            self._write_all(data)
