# path: cable-fault-map/app/clients/cable_api.py

"""Async HTTP client for the cable data service (RPLs and cable cuts)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from app.errors import NetworkFailure, PersistenceConflict, ServerError
from app.logging import get_logger
from app.models.fault_models import CableCutRecord

logger = get_logger(__name__)

FETCH_CUTS_PATH = "/fetch-cable-cuts"
CREATE_CUT_PATH = "/cable-cuts"
DELETE_ALL_CUTS_PATH = "/delete-cable-cuts"
DELETE_CUT_PATH = "/delete-single-cable-cuts/{cut_id}"

DUPLICATE_MESSAGE = "A cable cut at this location already exists."
SERVER_ERROR_MESSAGE = "Internal server error. Please try again later or contact support."
CONNECTION_MESSAGE = "Unable to connect to the server. Please check your connection and try again."


class CableApiClient:
    """
    Thin wrapper around httpx.AsyncClient.

    Every failure leaves as one of NetworkFailure, PersistenceConflict or
    ServerError. asyncio.CancelledError is never caught here so callers can
    abort a request by cancelling the task awaiting it.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    def _handle_response(self, response: httpx.Response) -> Any:
        try:
            data = response.json() if response.content else None
        except ValueError:
            data = None

        if response.status_code == 409:
            raise PersistenceConflict(_message_from(data) or DUPLICATE_MESSAGE)

        if response.status_code >= 500:
            logger.warning("cable_api_server_error status=%s body=%s", response.status_code, data)
            raise ServerError(SERVER_ERROR_MESSAGE, status_code=response.status_code)

        if response.status_code >= 400:
            logger.warning("cable_api_error status=%s body=%s", response.status_code, data)
            message = _message_from(data) or f"Server returned status {response.status_code}. Please try again."
            raise ServerError(message, status_code=response.status_code)

        if response.content and data is None:
            raise ServerError(f"Malformed JSON from {response.request.url.path}", status_code=response.status_code)
        return data

    async def _request(self, method: str, path: str, json_data: Any = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json_data)
        except httpx.TransportError as e:
            raise NetworkFailure(f"{CONNECTION_MESSAGE} ({type(e).__name__}: {e})") from e
        return self._handle_response(response)

    async def fetch_route_records(self, path: str) -> List[Dict[str, Any]]:
        data = await self._request("GET", path)
        if not isinstance(data, list):
            return []
        return [row for row in data if isinstance(row, dict)]

    async def fetch_cable_cuts(self) -> List[CableCutRecord]:
        data = await self._request("GET", FETCH_CUTS_PATH)
        if not isinstance(data, list):
            return []
        records = []
        for row in data:
            if not isinstance(row, dict):
                continue
            try:
                records.append(CableCutRecord.model_validate(row))
            except ValidationError:
                logger.debug("cable_cut_record_skipped row=%s", row)
        return records

    async def create_cable_cut(self, record: CableCutRecord) -> Any:
        return await self._request("POST", CREATE_CUT_PATH, json_data=record.model_dump(mode="json"))

    async def delete_all_cable_cuts(self) -> Any:
        return await self._request("DELETE", DELETE_ALL_CUTS_PATH)

    async def delete_cable_cut(self, cut_id: str) -> Any:
        return await self._request("DELETE", DELETE_CUT_PATH.format(cut_id=cut_id))


def _message_from(data: Any) -> Optional[str]:
    if isinstance(data, dict):
        for key in ("message", "detail", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return None
