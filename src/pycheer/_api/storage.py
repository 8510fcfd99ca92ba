"""Storage endpoints: ``/storage/v1/object/*``."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from pycheer._transport import Transport


async def list_objects(
    transport: Transport,
    bucket: str,
    *,
    prefix: str = "",
    limit: int = 100,
    offset: int = 0,
    search: str | None = None,
) -> list[dict[str, Any]]:
    """List objects directly under *prefix*, sorted by name."""
    body: dict[str, Any] = {
        "prefix": prefix,
        "limit": limit,
        "offset": offset,
        "sortBy": {"column": "name", "order": "asc"},
    }
    if search:
        body["search"] = search
    payload = await transport.request("POST", f"/storage/v1/object/list/{bucket}", json_body=body)
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


def public_url(base_url: str, bucket: str, path: str) -> str:
    """Public URL for an object in a public bucket (no request made)."""
    clean = path.strip().lstrip("/")
    return f"{base_url.rstrip('/')}/storage/v1/object/public/{bucket}/{quote(clean)}"
