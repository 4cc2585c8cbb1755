"""
Remote table store client.

The board persists to two tables, ``sections`` and ``sounds``, through a
generic row CRUD API. ``RestStore`` talks to a PostgREST endpoint (the
Supabase REST flavour); ``MemoryStore`` keeps the same tables in process and
is used when no store URL is configured.
"""

import itertools
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

import httpx

from soundboard.config import settings

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class RemoteStoreError(Exception):
    """A store call failed: unreachable, missing table, or rejected write."""


class RestStore:
    """PostgREST client over ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/rest/v1",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, table: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, f"/{table}", **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"{method} {table} failed: {type(e).__name__}: {e}") from e
        return response

    @staticmethod
    def _rows(response: httpx.Response, method: str, table: str) -> List[Row]:
        try:
            rows = response.json()
        except ValueError as e:
            raise RemoteStoreError(f"{method} {table} returned a non-JSON body: {e}") from e
        if not isinstance(rows, list):
            raise RemoteStoreError(f"{method} {table} returned {type(rows).__name__}, expected a list of rows")
        return rows

    async def select(
        self,
        table: str,
        columns: str = "*",
        order: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Row]:
        params = {"select": columns}
        if order:
            params["order"] = f"{order}.asc"
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        response = await self._request("GET", table, params=params)
        return self._rows(response, "GET", table)

    async def insert(self, table: str, rows: Union[Row, List[Row]]) -> List[Row]:
        response = await self._request(
            "POST", table, json=rows, headers={"Prefer": "return=representation"}
        )
        return self._rows(response, "POST", table)

    async def update(self, table: str, values: Row, id: str) -> None:
        await self._request("PATCH", table, json=values, params={"id": f"eq.{id}"})

    async def delete(self, table: str, id: str) -> None:
        await self._request("DELETE", table, params={"id": f"eq.{id}"})

    async def aclose(self):
        await self._client.aclose()


class MemoryStore:
    """
    In-process stand-in with the same surface as ``RestStore``.

    Rows get a uuid ``id`` and a strictly increasing ``created_at`` so that
    ordering by creation time is deterministic. Deleting a section cascades
    to its sounds, as the remote schema's foreign key does.
    """

    TABLES = ("sections", "sounds")

    def __init__(self):
        self.tables: Dict[str, List[Row]] = {name: [] for name in self.TABLES}
        self._epoch = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self._ticks = itertools.count()

    def _table(self, table: str) -> List[Row]:
        if table not in self.tables:
            raise RemoteStoreError(f"relation \"{table}\" does not exist")
        return self.tables[table]

    async def select(
        self,
        table: str,
        columns: str = "*",
        order: Optional[str] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[Row]:
        rows = [
            dict(row) for row in self._table(table)
            if all(row.get(k) == v for k, v in (filters or {}).items())
        ]
        if order:
            rows.sort(key=lambda r: (r.get(order) is None, r.get(order)))
        if columns != "*":
            wanted = [c.strip() for c in columns.split(",")]
            rows = [{c: r.get(c) for c in wanted} for r in rows]
        return rows

    async def insert(self, table: str, rows: Union[Row, List[Row]]) -> List[Row]:
        batch = [rows] if isinstance(rows, dict) else rows
        inserted = []
        for row in batch:
            stored = {
                "id": str(uuid.uuid4()),
                "created_at": (self._epoch + timedelta(microseconds=next(self._ticks))).isoformat(timespec="microseconds"),
                **row,
            }
            self._table(table).append(stored)
            inserted.append(dict(stored))
        return inserted

    async def update(self, table: str, values: Row, id: str) -> None:
        for row in self._table(table):
            if row["id"] == id:
                row.update(values)

    async def delete(self, table: str, id: str) -> None:
        self.tables[table] = [r for r in self._table(table) if r["id"] != id]
        if table == "sections":
            self.tables["sounds"] = [r for r in self.tables["sounds"] if r.get("section_id") != id]

    async def aclose(self):
        pass


def create_store():
    """Build the store client from settings."""
    if settings.store_url:
        logger.info("Using remote store at %s", settings.store_url)
        return RestStore(settings.store_url, settings.store_api_key, settings.store_timeout_sec)
    logger.info("No STORE_URL configured, using in-process memory store")
    return MemoryStore()
