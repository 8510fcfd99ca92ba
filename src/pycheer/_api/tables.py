"""PostgREST table operations: ``/rest/v1/{table}``.

Filters are equality matches (``column=eq.value``), the only kind the site
uses; ``None`` maps to ``is.null`` and booleans to ``true``/``false``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pycheer._transport import Transport
from pycheer.exceptions import CheerApiError

_SINGLE_OBJECT = "application/vnd.pgrst.object+json"
_RETURN_REPRESENTATION = "return=representation"


@dataclass(frozen=True, slots=True)
class Order:
    """One ``order`` clause, e.g. ``Order("sort_order")``."""

    column: str
    ascending: bool = True

    def to_param(self) -> str:
        return f"{self.column}.{'asc' if self.ascending else 'desc'}"


def table_path(table: str) -> str:
    return f"/rest/v1/{table}"


def _filter_value(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{'true' if value else 'false'}"
    return f"eq.{value}"


def build_query(
    *,
    columns: str | None = None,
    filters: Mapping[str, Any] | None = None,
    order: Sequence[Order] | None = None,
    limit: int | None = None,
) -> list[tuple[str, str]]:
    """Build PostgREST query parameters."""
    params: list[tuple[str, str]] = []
    if columns:
        params.append(("select", columns))
    for column, value in (filters or {}).items():
        params.append((column, _filter_value(value)))
    if order:
        params.append(("order", ",".join(o.to_param() for o in order)))
    if limit is not None:
        params.append(("limit", str(int(limit))))
    return params


def _as_rows(payload: Any, endpoint: str) -> list[dict[str, Any]]:
    if payload is None:
        return []
    if isinstance(payload, dict):
        return [payload]
    if not isinstance(payload, list):
        raise CheerApiError(f"{endpoint} returned unexpected payload: {type(payload).__name__}", endpoint=endpoint)
    return [row for row in payload if isinstance(row, dict)]


async def select_rows(
    transport: Transport,
    table: str,
    *,
    columns: str = "*",
    filters: Mapping[str, Any] | None = None,
    order: Sequence[Order] | None = None,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """Return rows of *table* in the order the backend sends them."""
    endpoint = table_path(table)
    payload = await transport.request(
        "GET",
        endpoint,
        params=build_query(columns=columns, filters=filters, order=order, limit=limit),
    )
    return _as_rows(payload, endpoint)


async def select_single(
    transport: Transport,
    table: str,
    *,
    columns: str = "*",
    filters: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return exactly one row.

    PostgREST answers a zero-row match with code ``PGRST116``, surfaced as
    :class:`CheerApiError` with that ``code``.
    """
    endpoint = table_path(table)
    payload = await transport.request(
        "GET",
        endpoint,
        params=build_query(columns=columns, filters=filters),
        headers={"accept": _SINGLE_OBJECT},
    )
    if not isinstance(payload, dict):
        raise CheerApiError(f"{endpoint} did not return a single object", endpoint=endpoint)
    return payload


async def insert_row(transport: Transport, table: str, row: Mapping[str, Any]) -> dict[str, Any]:
    endpoint = table_path(table)
    payload = await transport.request(
        "POST",
        endpoint,
        params=[("select", "*")],
        json_body=[dict(row)],
        headers={"prefer": _RETURN_REPRESENTATION},
    )
    rows = _as_rows(payload, endpoint)
    if not rows:
        raise CheerApiError(f"{endpoint} insert returned no row", endpoint=endpoint)
    return rows[0]


async def update_rows(
    transport: Transport,
    table: str,
    values: Mapping[str, Any],
    *,
    match: Mapping[str, Any],
) -> list[dict[str, Any]]:
    if not match:
        raise ValueError("update requires at least one match column")
    endpoint = table_path(table)
    params = build_query(columns="*", filters=match)
    payload = await transport.request(
        "PATCH",
        endpoint,
        params=params,
        json_body=dict(values),
        headers={"prefer": _RETURN_REPRESENTATION},
    )
    return _as_rows(payload, endpoint)


async def delete_rows(transport: Transport, table: str, *, match: Mapping[str, Any]) -> None:
    if not match:
        raise ValueError("delete requires at least one match column")
    await transport.request("DELETE", table_path(table), params=build_query(filters=match))
