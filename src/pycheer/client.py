"""High-level async client for the site's hosted backend."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import aiohttp

from pycheer._api import storage as _storage_api
from pycheer._api import tables as _tables_api
from pycheer._api.tables import Order
from pycheer._client.auth import AuthClient
from pycheer._transport import RestTransport
from pycheer.config import CheerConfig
from pycheer.exceptions import CheerError

_logger = logging.getLogger(__name__)


class StorageClient:
    """Storage namespace of :class:`CheerClient`."""

    def __init__(self, client: CheerClient) -> None:
        self._client = client

    async def list(
        self,
        bucket: str,
        prefix: str = "",
        *,
        limit: int = 100,
        offset: int = 0,
        search: str | None = None,
    ) -> list[dict[str, Any]]:
        transport = self._client._require_transport()
        return await _storage_api.list_objects(
            transport,
            bucket,
            prefix=prefix,
            limit=limit,
            offset=offset,
            search=search,
        )

    def get_public_url(self, bucket: str, path: str) -> str:
        return _storage_api.public_url(self._client.config.base_url, bucket, path)


class CheerClient:
    """Async client for the Supabase project behind the site.

    Usage::

        async with CheerClient(config) as client:
            rows = await client.select("provinces", order=[Order("name")])
    """

    def __init__(
        self,
        config: CheerConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: RestTransport | None = None
        self.auth = AuthClient(self)
        self.storage = StorageClient(self)

    @property
    def config(self) -> CheerConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> CheerClient:
        self._config.validate()
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = RestTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.auth.clear_listeners()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None

    def _require_transport(self) -> RestTransport:
        if self._transport is None:
            raise CheerError("Client not initialized. Use 'async with CheerClient(...) as client:'")
        return self._transport

    async def _ready_transport(self) -> RestTransport:
        """Transport with a non-expired bearer token (refreshing if needed)."""
        await self.auth.get_session()
        return self._require_transport()

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Mapping[str, Any] | None = None,
        order: Sequence[Order] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch rows of *table*; ordering is done by the backend."""
        transport = await self._ready_transport()
        rows = await _tables_api.select_rows(
            transport,
            table,
            columns=columns,
            filters=filters,
            order=order,
            limit=limit,
        )
        _logger.debug("select %s -> %d rows", table, len(rows))
        return rows

    async def select_single(
        self,
        table: str,
        *,
        columns: str = "*",
        filters: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        transport = await self._ready_transport()
        return await _tables_api.select_single(transport, table, columns=columns, filters=filters)

    async def insert(self, table: str, row: Mapping[str, Any]) -> dict[str, Any]:
        transport = await self._ready_transport()
        return await _tables_api.insert_row(transport, table, row)

    async def update(
        self,
        table: str,
        values: Mapping[str, Any],
        *,
        match: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        transport = await self._ready_transport()
        return await _tables_api.update_rows(transport, table, values, match=match)

    async def delete(self, table: str, *, match: Mapping[str, Any]) -> None:
        transport = await self._ready_transport()
        await _tables_api.delete_rows(transport, table, match=match)
