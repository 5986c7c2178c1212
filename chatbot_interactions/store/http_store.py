"""HTTP client for the hosting platform's record store.

Wraps ``httpx.AsyncClient`` with:
- base URL construction and bearer-token auth
- mapping of transport errors, 401/403 and 5xx responses to
  :class:`StoreUnavailableError`
- idempotent deletes (404 is ignored)
- request timing logs

The client never retries: a failed write surfaces to the caller and the
next submit resynchronises the record.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
from loguru import logger

from ..models.enums import RecordType
from ..models.record import Member, NewRecord, PersistedRecord
from ..utils.error_handler import NoActiveRecordError, StoreUnavailableError
from .base import RecordStore

RECORDS_PATH = "/app-data"
CONTEXT_PATH = "/context"


class HttpRecordStore(RecordStore):
    """Record store reached over HTTP.

    A shared ``httpx.AsyncClient`` may be injected so that one connection
    pool serves every participant session; the token identifies the actor.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._owns_client = client is None
        self._http = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._base_url}{path}"
        started = time.perf_counter()
        try:
            response = await self._http.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Record store {} {} failed: {}", method, url, exc)
            raise StoreUnavailableError(f"Record store unreachable: {exc}") from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug("Record store {} {} -> {} ({:.0f} ms)", method, url, response.status_code, elapsed_ms)

        if response.status_code == 404:
            raise NoActiveRecordError(f"Record store returned 404 for {path}")
        if response.status_code >= 400:
            detail = response.text[:300] if response.text else f"HTTP {response.status_code}"
            raise StoreUnavailableError(
                f"Record store {method} {path} failed: {detail}",
                status_code=response.status_code,
            )
        return response

    async def list_records(self, record_type: RecordType) -> list[PersistedRecord]:
        response = await self._request("GET", RECORDS_PATH, params={"type": record_type.value})
        return [PersistedRecord.model_validate(item) for item in response.json()]

    async def create(self, record: NewRecord) -> PersistedRecord:
        response = await self._request("POST", RECORDS_PATH, json=record.to_payload())
        return PersistedRecord.model_validate(response.json())

    async def update(self, record_id: str, patch: dict[str, Any]) -> PersistedRecord:
        response = await self._request("PATCH", f"{RECORDS_PATH}/{record_id}", json=patch)
        return PersistedRecord.model_validate(response.json())

    async def delete(self, record_id: str) -> None:
        try:
            await self._request("DELETE", f"{RECORDS_PATH}/{record_id}")
        except NoActiveRecordError:
            logger.debug("Record {} already deleted", record_id)

    async def get_members(self) -> list[Member]:
        response = await self._request("GET", CONTEXT_PATH)
        return [Member.model_validate(item) for item in response.json().get("members", [])]

    async def close(self) -> None:
        """Close the connection pool when this store created it."""
        if self._owns_client:
            await self._http.aclose()
