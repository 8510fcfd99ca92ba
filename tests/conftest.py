from __future__ import annotations

import asyncio
import copy
import inspect
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from pycheer.client import CheerClient
from pycheer.config import CheerConfig
from pycheer.exceptions import CheerTransportError
from pycheer.session import AuthSession


@dataclass
class Call:
    method: str
    path: str
    params: dict[str, str]
    json_body: Any = None
    headers: dict[str, str] = field(default_factory=dict)


class FakeTransport:
    """In-memory stand-in for :class:`pycheer._transport.RestTransport`.

    Routes are keyed by ``(method, path)``. A route value may be a payload, an
    exception instance (raised), a callable receiving the :class:`Call` (its
    result is used, awaited when awaitable), or a list consumed one response
    per request.
    """

    def __init__(self) -> None:
        self.calls: list[Call] = []
        self.routes: dict[tuple[str, str], Any] = {}
        self.access_token: str | None = None

    def set_access_token(self, token: str | None) -> None:
        self.access_token = token

    def route(self, method: str, path: str, response: Any) -> None:
        self.routes[(method, path)] = response

    def calls_to(self, method: str, path: str) -> list[Call]:
        return [c for c in self.calls if c.method == method and c.path == path]

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json_body: Any = None,
        headers: Any = None,
    ) -> Any:
        call = Call(method, path, dict(params or []), copy.deepcopy(json_body), dict(headers or {}))
        self.calls.append(call)
        key = (method, path)
        if key not in self.routes:
            raise CheerTransportError(f"no route for {method} {path}", endpoint=path)
        response = self.routes[key]
        if isinstance(response, list) and response and isinstance(response[0], _Queued):
            response = response.pop(0).value
        if callable(response) and not isinstance(response, type):
            response = response(call)
        if inspect.isawaitable(response):
            response = await response
        if isinstance(response, BaseException):
            raise response
        return copy.deepcopy(response)


@dataclass
class _Queued:
    value: Any


def queued(*responses: Any) -> list[_Queued]:
    """Route value answering successive requests with *responses* in order."""
    return [_Queued(r) for r in responses]


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class Gate:
    """Future a route can wait on, released explicitly by the test."""

    def __init__(self) -> None:
        self._future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

    def release(self, value: Any) -> None:
        self._future.set_result(value)

    def __call__(self, _call: Call) -> asyncio.Future[Any]:
        return self._future


def make_session(user_id: str = "user-1", email: str = "coach@example.com", **kwargs: Any) -> AuthSession:
    payload: dict[str, Any] = {
        "access_token": f"access-{user_id}",
        "refresh_token": f"refresh-{user_id}",
        "user": {"id": user_id, "email": email},
    }
    payload.update(kwargs)
    return AuthSession.model_validate(payload)


@pytest.fixture
def config() -> CheerConfig:
    return CheerConfig(
        supabase_url="https://project.supabase.co/",
        supabase_key="anon-key",
        admin_emails=("admin@example.com",),
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(config: CheerConfig, transport: FakeTransport) -> CheerClient:
    client = CheerClient(config)
    client._transport = transport  # type: ignore[assignment]
    return client


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
