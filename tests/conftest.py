from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.config import settings
from app.models.fault_models import FaultEvent, FaultType
from app.models.route_models import SegmentBounds
from app.models.segment_models import SegmentConfig
from app.services.dashboard import Dashboard
from app.services.fault_cache import FaultCache
from app.services.segment_catalog import SegmentCatalog


RPL_ROWS = [
    {"event": "BMH Tuas", "full_latitude": 10.0, "full_longitude": 120.0, "cable_cumulative_total": 0, "Depth": 12},
    {"event": "RPL 2", "full_latitude": 10.5, "full_longitude": 120.5, "cable_cumulative_total": 10, "Depth": "Unknown"},
    {"event": "Lay Interface BU", "full_latitude": 12.0, "full_longitude": 122.0, "cable_cumulative_total": 100},
]


class _Timer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeTimers:
    """Stands in for loop.call_later; `fire()` runs everything still scheduled."""

    def __init__(self):
        self.pending = []

    def __call__(self, delay, callback):
        timer = _Timer(delay, callback)
        self.pending.append(timer)
        return timer

    def fire(self):
        due, self.pending = self.pending, []
        for timer in due:
            if not timer.cancelled:
                timer.callback()


@pytest.fixture
def timers():
    return FakeTimers()


@pytest.fixture
def segment():
    return SegmentConfig(
        key="sjc1",
        cable_system="SJC",
        cable_slug="sjc",
        segment_number=1,
        name="Tuas - Lay Interface",
        bounds=SegmentBounds(min_km=0.0, max_km=100.0, min_label="BMH Tuas", max_label="Lay Interface"),
    )


@pytest.fixture
def unbounded_segment():
    return SegmentConfig(key="sjc10", cable_system="SJC", cable_slug="sjc", segment_number=10, name="Chung Hom Kok")


@pytest.fixture
def rpl_rows():
    return [dict(row) for row in RPL_ROWS]


@pytest.fixture
def make_event():
    def _make(fault_id="sjc1-1700000000000", **overrides):
        values = {
            "id": fault_id,
            "segment_key": fault_id.rpartition("-")[0],
            "distance_km": 5.0,
            "fault_type": FaultType.FULL_CUT,
            "latitude": 10.25,
            "longitude": 120.25,
        }
        values.update(overrides)
        return FaultEvent(**values)

    return _make


@pytest.fixture
def cable_client(rpl_rows):
    client = MagicMock()
    client.fetch_route_records = AsyncMock(return_value=rpl_rows)
    client.fetch_cable_cuts = AsyncMock(return_value=[])
    client.create_cable_cut = AsyncMock(return_value={"status": "ok"})
    client.delete_all_cable_cuts = AsyncMock(return_value=None)
    client.delete_cable_cut = AsyncMock(return_value=None)
    client.aclose = AsyncMock(return_value=None)
    return client


@pytest.fixture
def dashboard_config(tmp_path):
    return replace(
        settings,
        fault_cache_path=str(tmp_path / "cable_cuts.json"),
        poll_interval_seconds=0.01,
        allow_cut_delete=False,
    )


@pytest.fixture
def dashboard(dashboard_config, cable_client, segment, unbounded_segment, timers):
    return Dashboard(
        config=dashboard_config,
        client=cable_client,
        catalog=SegmentCatalog([segment, unbounded_segment]),
        cache=FaultCache(dashboard_config.fault_cache_path, dashboard_config.fault_cache_key),
        call_later=timers,
    )
