from __future__ import annotations

import asyncio
import logging
from typing import Any

import pytest
from conftest import FakeClock, FakeTransport, Gate

from pycheer.client import CheerClient
from pycheer.exceptions import CheerApiError, CheerConfigError, CheerError
from pycheer.ingestion.rows import parse_rows
from pycheer.models import CheerRecord
from pycheer.resources import build_store
from pycheer.state.events import ActionPhase, SliceStatus
from pycheer.state.slice import create_resource_slice
from pycheer.state.store import Store


class City(CheerRecord):
    name: str = ""


async def _fetch_cities(ctx: Any, _arg: Any) -> list[City]:
    rows = await ctx.client.select("cities")
    return parse_rows(City, rows, resource="cities")


def _city_store(client: CheerClient, clock: FakeClock) -> tuple[Store, Any]:
    cities = create_resource_slice("cities", _fetch_cities)
    return Store([cities], client=client, clock=clock), cities


@pytest.mark.asyncio
async def test_fetch_success_end_state(client: CheerClient, transport: FakeTransport, clock: FakeClock) -> None:
    transport.route("GET", "/rest/v1/cities", [{"id": "1", "name": "Jakarta"}])
    store, cities = _city_store(client, clock)

    task = store.dispatch(cities.fetch_all())
    assert store.select("cities").status == SliceStatus.LOADING

    final = await task
    state = store.select("cities")
    assert final.meta.phase == ActionPhase.FULFILLED
    assert [(c.id, c.name) for c in state.items] == [("1", "Jakarta")]
    assert state.status == SliceStatus.SUCCEEDED
    assert state.error is None
    assert state.fetched_at == clock.current


@pytest.mark.asyncio
async def test_fetch_failure_end_state(client: CheerClient, transport: FakeTransport, clock: FakeClock) -> None:
    transport.route("GET", "/rest/v1/cities", CheerApiError("network down", endpoint="/rest/v1/cities"))
    store, cities = _city_store(client, clock)

    final = await store.dispatch(cities.fetch_all())

    state = store.select("cities")
    assert final.meta.phase == ActionPhase.REJECTED
    assert state.items == ()
    assert state.status == SliceStatus.FAILED
    assert state.error == "network down"


@pytest.mark.asyncio
async def test_blank_error_message_falls_back_to_default(
    client: CheerClient, transport: FakeTransport, clock: FakeClock
) -> None:
    transport.route("GET", "/rest/v1/cities", RuntimeError())
    store, cities = _city_store(client, clock)

    await store.dispatch(cities.fetch_all())

    assert store.select("cities").error == "Failed to fetch cities"


@pytest.mark.asyncio
async def test_invalid_row_is_reported_as_failure(
    client: CheerClient, transport: FakeTransport, clock: FakeClock
) -> None:
    transport.route("GET", "/rest/v1/cities", [{"id": "1", "name": "Jakarta"}, {"name": "no id"}])
    store, cities = _city_store(client, clock)

    await store.dispatch(cities.fetch_all())

    state = store.select("cities")
    assert state.status == SliceStatus.FAILED
    assert "cities" in (state.error or "")


@pytest.mark.asyncio
async def test_overlapping_fetches_newest_request_wins(
    client: CheerClient, transport: FakeTransport, clock: FakeClock
) -> None:
    first = Gate()
    second = Gate()
    calls = iter([first, second])
    transport.route("GET", "/rest/v1/cities", lambda call: next(calls)(call))
    store, cities = _city_store(client, clock)

    task_1 = store.dispatch(cities.fetch_all())
    task_2 = store.dispatch(cities.fetch_all())
    await asyncio.sleep(0)

    second.release([{"id": "2", "name": "Bandung"}])
    await task_2
    assert store.select("cities").status == SliceStatus.SUCCEEDED

    first.release([{"id": "1", "name": "Jakarta"}])
    await task_1

    state = store.select("cities")
    assert [c.name for c in state.items] == ["Bandung"]
    assert state.status == SliceStatus.SUCCEEDED


@pytest.mark.asyncio
async def test_pending_is_applied_before_backend_is_called(
    client: CheerClient, transport: FakeTransport, clock: FakeClock
) -> None:
    seen: list[SliceStatus] = []
    store, cities = _city_store(client, clock)

    def _respond(_call: Any) -> list[dict[str, str]]:
        seen.append(store.select("cities").status)
        return []

    transport.route("GET", "/rest/v1/cities", _respond)
    await store.dispatch(cities.fetch_all())

    assert seen == [SliceStatus.LOADING]


def test_duplicate_slice_names_rejected() -> None:
    async def _noop(_ctx: Any, _arg: Any) -> list[Any]:
        return []

    with pytest.raises(CheerConfigError):
        Store([create_resource_slice("news", _noop), create_resource_slice("news", _noop)])


def test_thunk_dispatch_without_running_loop_raises() -> None:
    async def _noop(_ctx: Any, _arg: Any) -> list[Any]:
        return []

    news = create_resource_slice("news", _noop)
    store = Store([news])
    with pytest.raises(CheerError):
        store.dispatch(news.fetch_all())
    assert store.select("news").status == SliceStatus.IDLE


@pytest.mark.asyncio
async def test_store_without_client_rejects_thunks() -> None:
    async def _noop(_ctx: Any, _arg: Any) -> list[Any]:
        return []

    news = create_resource_slice("news", _noop)
    store = Store([news])
    await store.dispatch(news.fetch_all())

    state = store.select("news")
    assert state.status == SliceStatus.FAILED
    assert state.error == "Store has no backend client"


def test_subscribe_and_unsubscribe() -> None:
    async def _noop(_ctx: Any, _arg: Any) -> list[Any]:
        return []

    news = create_resource_slice("news", _noop)
    store = Store([news])
    notified: list[int] = []
    unsubscribe = store.subscribe(lambda: notified.append(1))

    store.dispatch(news.set_selected("x"))
    assert notified == [1]

    unsubscribe()
    unsubscribe()
    store.dispatch(news.set_selected("y"))
    assert notified == [1]
    assert store.listener_count == 0


def test_listener_errors_are_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    async def _noop(_ctx: Any, _arg: Any) -> list[Any]:
        return []

    news = create_resource_slice("news", _noop)
    store = Store([news])
    after: list[str] = []

    def _broken() -> None:
        raise RuntimeError("listener bug")

    store.subscribe(_broken)
    store.subscribe(lambda: after.append("ran"))

    with caplog.at_level(logging.ERROR, logger="pycheer.state.store"):
        store.dispatch(news.set_selected("x"))

    assert after == ["ran"]
    assert "Store listener failed" in caplog.text


def test_get_state_is_a_snapshot() -> None:
    async def _noop(_ctx: Any, _arg: Any) -> list[Any]:
        return []

    news = create_resource_slice("news", _noop)
    store = Store([news])
    snapshot = store.get_state()
    store.dispatch(news.set_selected("x"))

    assert snapshot["news"].selected is None
    assert store.get_state()["news"].selected == "x"


def test_unknown_slice_raises() -> None:
    store = Store([])
    with pytest.raises(CheerError):
        store.select("nope")


@pytest.mark.asyncio
async def test_build_store_wires_every_slice(client: CheerClient, clock: FakeClock) -> None:
    store = build_store(client, clock=clock)
    assert set(store.slice_names) == {
        "auth",
        "competitions",
        "divisions",
        "news",
        "provinces",
        "judges",
        "license_courses",
        "public_images",
        "coaches",
    }
    assert store.resources.resource("provinces") is store.resources.provinces


@pytest.mark.asyncio
async def test_drain_waits_for_all_thunks(client: CheerClient, transport: FakeTransport, clock: FakeClock) -> None:
    transport.route("GET", "/rest/v1/competitions", [{"id": 1, "name": "Kejurnas"}])
    transport.route("GET", "/rest/v1/news", [])
    store = build_store(client, clock=clock)

    store.dispatch(store.resources.competitions.fetch_all())
    store.dispatch(store.resources.news.fetch_all())
    await store.drain()

    assert store.pending_tasks == 0
    assert store.select("competitions").status == SliceStatus.SUCCEEDED
    assert store.select("news").status == SliceStatus.SUCCEEDED


@pytest.mark.asyncio
async def test_settled_action_timestamps_come_from_store_clock(
    client: CheerClient, transport: FakeTransport, clock: FakeClock
) -> None:
    transport.route("GET", "/rest/v1/cities", [])
    store, cities = _city_store(client, clock)
    clock.advance(days=400)

    final = await store.dispatch(cities.fetch_all())

    assert set(final.model_dump()) == {"type", "payload", "error", "meta"}
    assert final.meta.completed_at == clock.current
    assert store.select("cities").fetched_at == clock.current
