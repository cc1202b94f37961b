"""Remote Circle/Record Store as seen from the device."""

from __future__ import annotations

import logging
from typing import Protocol
from urllib.parse import quote

import httpx

from safecircle.core.errors import PersistenceError
from safecircle.schemas.sos import SOSRecord

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    async def upsert(self, record: SOSRecord) -> None:
        """Store the record keyed by its id. Raises PersistenceError on failure."""
        ...


class HttpRecordStore:
    """Pushes SOS records to the backend's idempotent PUT endpoint."""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def upsert(self, record: SOSRecord) -> None:
        url = f"/users/{quote(record.user_id, safe='')}/sos/{record.id}"
        try:
            response = await self._http.put(url, json=record.model_dump(mode="json"))
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise PersistenceError(f"SOS {record.id} push failed: {exc}") from exc
        logger.debug("SOS %s pushed (%s)", record.id, response.status_code)
