import asyncio

import pytest

from app.models.fault_models import CableCutRecord
from app.services.dashboard import PENDING_GRACE_POLLS, Dashboard
from app.services.fault_cache import FaultCache
from app.services.segment_catalog import SegmentCatalog


def _ids(pane):
    return {m.fault_id for m in pane.surface.markers()}


def test_distribute_fans_out_by_exact_segment_prefix(dashboard, make_event):
    dashboard.distribute(
        [
            make_event("sjc1-1"),
            make_event("sjc10-2"),
            make_event("atlantis1-3"),
        ]
    )

    assert _ids(dashboard.pane("sjc1")) == {"sjc1-1"}
    assert _ids(dashboard.pane("sjc10")) == {"sjc10-2"}


def test_locally_shown_fault_survives_until_grace_polls_run_out(dashboard, make_event):
    pane = dashboard.pane("sjc1")
    pane.show_local(make_event("sjc1-1"))

    for _ in range(PENDING_GRACE_POLLS):
        dashboard.distribute([])
        assert _ids(pane) == {"sjc1-1"}

    dashboard.distribute([])
    assert _ids(pane) == set()


def test_polled_copy_replaces_local_one_without_flicker(dashboard, make_event):
    pane = dashboard.pane("sjc1")
    event = make_event("sjc1-1")
    pane.show_local(event)

    dashboard.distribute([event])
    dashboard.distribute([event])

    assert _ids(pane) == {"sjc1-1"}
    assert pane.surface.created == 1
    assert pane.surface.removed == 0


@pytest.mark.asyncio
async def test_route_arrival_places_faults_without_coordinates(dashboard, make_event):
    pane = dashboard.pane("sjc1")
    dashboard.distribute([make_event("sjc1-1", latitude=None, longitude=None)])
    assert _ids(pane) == set()

    await dashboard.route_pollers["sjc1"].poll_once()

    marker = pane.surface.find("sjc1-1")
    assert marker.point.latitude == pytest.approx(10.25)


@pytest.mark.asyncio
async def test_simulated_cut_shows_on_its_pane_at_once(dashboard):
    event = await dashboard.simulator.submit("sjc1", 5.0, "Partial Fiber Break")

    pane = dashboard.pane("sjc1")
    assert _ids(pane) == {event.id}
    assert pane.to_geojson()["view"]["zoom"] == dashboard.config.fly_to_zoom


def test_restore_cached(dashboard, make_event):
    dashboard.cache.add(make_event("sjc1-1"))
    dashboard.cache.add(make_event("unknown9-2"))

    assert dashboard.restore_cached() == 1
    assert _ids(dashboard.pane("sjc1")) == {"sjc1-1"}


@pytest.mark.asyncio
async def test_reset_simulation_clears_service_cache_and_panes(dashboard, cable_client, make_event):
    dashboard.cache.add(make_event("sjc1-1"))
    dashboard.distribute([make_event("sjc1-1")])

    await dashboard.reset_simulation()

    cable_client.delete_all_cable_cuts.assert_awaited_once()
    assert dashboard.cache.load() == []
    assert _ids(dashboard.pane("sjc1")) == set()


@pytest.mark.asyncio
async def test_delete_cut_forgets_only_that_fault(dashboard, cable_client, make_event):
    dashboard.distribute([make_event("sjc1-1"), make_event("sjc1-2")])

    await dashboard.delete_cut("sjc1-1")

    cable_client.delete_cable_cut.assert_awaited_once_with("sjc1-1")
    assert _ids(dashboard.pane("sjc1")) == {"sjc1-2"}


@pytest.mark.asyncio
async def test_started_dashboard_polls_cuts_and_routes(dashboard, cable_client):
    cable_client.fetch_cable_cuts.return_value = [
        CableCutRecord(cut_id="sjc10-1", distance=50.0, cut_type="Full Cut"),
    ]

    dashboard.start()
    try:
        for _ in range(200):
            if dashboard.pane("sjc10").surface.find("sjc10-1") is not None:
                break
            await asyncio.sleep(0.01)
    finally:
        await dashboard.aclose()

    status = dashboard.status()
    assert status["fault_poller"]["cycles"] >= 1
    assert "sjc10" in status["routes_loaded"]
    cable_client.aclose.assert_awaited_once()
    assert dashboard.fault_poller.state.value == "stopped"


@pytest.mark.asyncio
async def test_reset_discards_a_poll_issued_before_it(dashboard, cable_client):
    started = asyncio.Event()
    release = asyncio.Event()

    async def slow_fetch():
        started.set()
        await release.wait()
        return [CableCutRecord(cut_id="sjc1-1", distance=5.0, cut_type="Full Cut", latitude=10.25, longitude=120.25)]

    cable_client.fetch_cable_cuts.side_effect = slow_fetch
    dashboard.fault_poller.interval = 5
    dashboard.fault_poller.start()
    try:
        await started.wait()
        await dashboard.reset_simulation()
        release.set()
        await asyncio.sleep(0.02)

        assert _ids(dashboard.pane("sjc1")) == set()
        assert dashboard.fault_poller.aborted >= 1
    finally:
        await dashboard.aclose()


def test_zero_coordinates_use_route_on_sentinel_segments(dashboard_config, cable_client, segment, make_event):
    strict = segment.model_copy(update={"reject_zero_sentinel": True})
    board = Dashboard(
        config=dashboard_config,
        client=cable_client,
        catalog=SegmentCatalog([strict]),
        cache=FaultCache(dashboard_config.fault_cache_path),
    )
    board.distribute([make_event("sjc1-1", latitude=0.0, longitude=0.0)])

    assert _ids(board.pane("sjc1")) == set()
