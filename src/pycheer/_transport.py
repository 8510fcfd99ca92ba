"""HTTP transport for the Supabase REST surfaces (PostgREST, GoTrue, storage)."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import aiohttp

from pycheer._constants import USER_AGENT
from pycheer._redact import redact_headers, redact_payload
from pycheer.config import CheerConfig
from pycheer.exceptions import CheerApiError, CheerTransportError

_logger = logging.getLogger(__name__)

QueryParams = Sequence[tuple[str, str]]


class Transport(Protocol):
    """Structural transport interface used by the endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (:class:`RestTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: QueryParams | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        ...


def _error_message(payload: Any, fallback: str) -> tuple[str, str]:
    """Pull ``(message, code)`` out of a PostgREST/GoTrue/storage error body."""
    if not isinstance(payload, dict):
        return fallback, ""
    message = ""
    for key in ("message", "msg", "error_description", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            message = value.strip()
            break
    code_value = payload.get("code", payload.get("error_code", ""))
    code = "" if code_value is None else str(code_value)
    return message or fallback, code


class RestTransport:
    """JSON-over-HTTP transport bound to one Supabase project.

    ``access_token`` is the bearer token for the signed-in user; the anon key
    is used when no user is signed in.
    """

    def __init__(self, config: CheerConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._access_token: str | None = None

    @property
    def access_token(self) -> str | None:
        return self._access_token

    def set_access_token(self, token: str | None) -> None:
        self._access_token = token

    def _base_headers(self) -> dict[str, str]:
        bearer = self._access_token or self._config.supabase_key
        headers = {
            "apikey": self._config.supabase_key,
            "authorization": f"Bearer {bearer}",
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        schema = self._config.schema
        if schema and schema != "public":
            headers["accept-profile"] = schema
            headers["content-profile"] = schema
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: QueryParams | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body (``None`` if empty).

        Raises :class:`CheerApiError` for HTTP error statuses carrying an error
        body and :class:`CheerTransportError` for network failures, timeouts
        and undecodable responses.
        """
        merged = self._base_headers()
        if headers:
            merged.update({k.lower(): v for k, v in headers.items()})
        if json_body is not None:
            merged["content-type"] = "application/json"

        url = f"{self._config.base_url}{path}"
        _logger.debug(
            "%s %s params=%s headers=%s body=%s",
            method,
            path,
            list(params or []),
            redact_headers(merged),
            redact_payload(json_body),
        )

        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)
        try:
            async with self._http.request(
                method,
                url,
                params=list(params) if params else None,
                data=json.dumps(json_body) if json_body is not None else None,
                headers=merged,
                timeout=timeout,
            ) as resp:
                text = await resp.text()
                status = resp.status
        except aiohttp.ClientError as exc:
            raise CheerTransportError(f"Request to {path} failed: {exc}", endpoint=path) from exc
        except asyncio.TimeoutError as exc:
            raise CheerTransportError(f"Request to {path} timed out", endpoint=path) from exc

        payload: Any = None
        if text.strip():
            try:
                payload = json.loads(text)
            except json.JSONDecodeError as exc:
                if status >= 400:
                    raise CheerApiError(
                        f"HTTP {status} from {path}: {text[:200]}",
                        endpoint=path,
                        status_code=status,
                    ) from exc
                raise CheerTransportError(
                    f"Invalid JSON from {path}: {text[:200]}",
                    status_code=status,
                    endpoint=path,
                ) from exc

        _logger.debug("%s %s -> %d", method, path, status)
        if status >= 400:
            message, code = _error_message(payload, f"HTTP {status} from {path}")
            raise CheerApiError(message, code=code, endpoint=path, status_code=status)

        return payload
