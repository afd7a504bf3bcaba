import json

import httpx
import pytest

from app.clients.cable_api import (
    DUPLICATE_MESSAGE,
    SERVER_ERROR_MESSAGE,
    CableApiClient,
)
from app.errors import NetworkFailure, PersistenceConflict, ServerError
from app.models.fault_models import CableCutRecord


def _client(handler):
    return CableApiClient("http://cable.test/", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_cable_cuts_skips_unusable_rows():
    def handler(request):
        assert request.url.path == "/fetch-cable-cuts"
        return httpx.Response(
            200,
            json=[
                {"cut_id": "sjc1-1", "distance": 4.2, "cut_type": "Full Cut"},
                {"distance": 1.0},
                "not a row",
            ],
        )

    async with _client(handler) as client:
        records = await client.fetch_cable_cuts()

    assert [r.cut_id for r in records] == ["sjc1-1"]


@pytest.mark.asyncio
async def test_fetch_route_records_returns_dict_rows():
    def handler(request):
        assert request.url.path == "/tgnia-rpl-s8"
        return httpx.Response(200, json=[{"event": "BMH"}, 3])

    async with _client(handler) as client:
        rows = await client.fetch_route_records("/tgnia-rpl-s8")

    assert rows == [{"event": "BMH"}]


@pytest.mark.asyncio
async def test_create_cable_cut_posts_record_json():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"status": "ok"})

    record = CableCutRecord(cut_id="sjc1-1", distance=4.2, cut_type="Full Cut", latitude=1.0, longitude=2.0)
    async with _client(handler) as client:
        result = await client.create_cable_cut(record)

    assert result == {"status": "ok"}
    assert seen["method"] == "POST"
    assert seen["path"] == "/cable-cuts"
    assert seen["body"]["cut_id"] == "sjc1-1"
    assert seen["body"]["cut_type"] == "Full Cut"


@pytest.mark.asyncio
async def test_conflict_maps_to_persistence_conflict():
    async with _client(lambda request: httpx.Response(409)) as client:
        with pytest.raises(PersistenceConflict) as exc:
            await client.create_cable_cut(CableCutRecord(cut_id="sjc1-1"))

    assert exc.value.message == DUPLICATE_MESSAGE
    assert exc.value.title == "Duplicate Entry"


@pytest.mark.asyncio
async def test_server_error_uses_generic_message():
    async with _client(lambda request: httpx.Response(500, json={"detail": "db down"})) as client:
        with pytest.raises(ServerError) as exc:
            await client.fetch_cable_cuts()

    assert exc.value.message == SERVER_ERROR_MESSAGE
    assert exc.value.status_code == 500


@pytest.mark.asyncio
async def test_client_error_keeps_server_message():
    async with _client(lambda request: httpx.Response(400, json={"message": "bad distance"})) as client:
        with pytest.raises(ServerError) as exc:
            await client.delete_all_cable_cuts()

    assert exc.value.message == "bad distance"
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_transport_failure_maps_to_network_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    async with _client(handler) as client:
        with pytest.raises(NetworkFailure) as exc:
            await client.fetch_cable_cuts()

    assert exc.value.retryable


@pytest.mark.asyncio
async def test_malformed_json_is_a_server_error():
    async with _client(lambda request: httpx.Response(200, content=b"<html>")) as client:
        with pytest.raises(ServerError):
            await client.fetch_route_records("/sjc-rpl-s1")


@pytest.mark.asyncio
async def test_delete_single_cut_targets_its_id():
    paths = []

    def handler(request):
        paths.append((request.method, request.url.path))
        return httpx.Response(200, json={"deleted": 1})

    async with _client(handler) as client:
        await client.delete_cable_cut("sjc1-1700000000000")

    assert paths == [("DELETE", "/delete-single-cable-cuts/sjc1-1700000000000")]
