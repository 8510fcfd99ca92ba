from __future__ import annotations

from datetime import UTC, datetime

import pytest
from conftest import FakeClock, FakeTransport, Gate, make_session, queued

from pycheer._api.tables import Order, build_query
from pycheer.client import CheerClient
from pycheer.exceptions import CheerTransportError
from pycheer.resources import CourseQuery, build_store, is_image_name
from pycheer.state.events import SliceStatus
from pycheer.state.slice import RecordUpdate


def test_build_query_encodes_filters_and_order() -> None:
    params = build_query(
        columns="id,name",
        filters={"is_active": True, "organization": "ICU", "deleted_at": None},
        order=[Order("sort_order"), Order("name", ascending=False)],
        limit=5,
    )
    assert params == [
        ("select", "id,name"),
        ("is_active", "eq.true"),
        ("organization", "eq.ICU"),
        ("deleted_at", "is.null"),
        ("order", "sort_order.asc,name.desc"),
        ("limit", "5"),
    ]


@pytest.mark.parametrize(
    ("name", "expected"),
    [("banner.JPG", True), ("a.webp", True), ("logo.png", True), ("notes.pdf", False), (".emptyFolderPlaceholder", False)],
)
def test_image_extension_filter(name: str, expected: bool) -> None:
    assert is_image_name(name) is expected


@pytest.mark.asyncio
async def test_coaches_query(client: CheerClient, transport: FakeTransport, clock: FakeClock) -> None:
    transport.route("GET", "/rest/v1/coaches", [{"id": "c1", "name": "Dewi"}])
    store = build_store(client, clock=clock)

    await store.dispatch(store.resources.coaches.fetch_all())

    (call,) = transport.calls
    assert call.params == {"select": "*", "is_active": "eq.true", "order": "sort_order.asc,name.asc"}


@pytest.mark.asyncio
async def test_license_course_query_filters(client: CheerClient, transport: FakeTransport, clock: FakeClock) -> None:
    transport.route("GET", "/rest/v1/license_courses", [])
    store = build_store(client, clock=clock)
    courses = store.resources.license_courses

    await store.dispatch(courses.fetch_all())
    await store.dispatch(courses.fetch_all(CourseQuery(active_only=False, course_type="judge", organization="ICU")))

    default_call, filtered_call = transport.calls
    assert default_call.params == {"select": "*", "is_active": "eq.true", "order": "sort_order.asc,course_name.asc"}
    assert filtered_call.params == {
        "select": "*",
        "course_type": "eq.judge",
        "organization": "eq.ICU",
        "order": "sort_order.asc,course_name.asc",
    }


@pytest.mark.asyncio
async def test_public_images_listing(client: CheerClient, transport: FakeTransport, clock: FakeClock) -> None:
    transport.route(
        "POST",
        "/storage/v1/object/list/uploads",
        [
            {"name": ".emptyFolderPlaceholder"},
            {"name": "hero.jpg"},
            {"name": "team photo.PNG"},
            {"name": "rules.pdf"},
        ],
    )
    store = build_store(client, clock=clock)

    await store.dispatch(store.resources.public_images.fetch_all())

    images = store.select("public_images").items
    assert [(i.name, i.url) for i in images] == [
        ("hero.jpg", "https://project.supabase.co/storage/v1/object/public/uploads/public/hero.jpg"),
        ("team photo.PNG", "https://project.supabase.co/storage/v1/object/public/uploads/public/team%20photo.PNG"),
    ]
    (call,) = transport.calls
    assert call.json_body["prefix"] == "public"
    assert call.json_body["limit"] == 100


@pytest.mark.asyncio
async def test_fetch_error_keeps_previous_items(client: CheerClient, transport: FakeTransport, clock: FakeClock) -> None:
    transport.route(
        "GET",
        "/rest/v1/news",
        queued([{"id": "n1", "title": "Kejurnas"}], CheerTransportError("Request to /rest/v1/news timed out")),
    )
    store = build_store(client, clock=clock)
    news = store.resources.news

    await store.dispatch(news.fetch_all())
    await store.dispatch(news.fetch_all())

    state = store.select("news")
    assert state.status == SliceStatus.FAILED
    assert state.error == "Request to /rest/v1/news timed out"
    assert [n.title for n in state.items] == ["Kejurnas"]


# ----------------------------------------------------------------------
# Judge mutations
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_judge_requires_user(client: CheerClient, transport: FakeTransport, clock: FakeClock) -> None:
    store = build_store(client, clock=clock)
    judges = store.resources.judges
    assert judges.create is not None

    await store.dispatch(judges.create({"name": "Ayu"}))

    state = store.select("judges")
    assert state.status == SliceStatus.FAILED
    assert state.error == "User not authenticated"
    assert transport.calls == []


@pytest.mark.asyncio
async def test_create_and_update_judge_stamp_user(
    client: CheerClient, transport: FakeTransport, clock: FakeClock
) -> None:
    await client.auth.set_session(make_session("admin-1", "admin@example.com"))
    transport.route("GET", "/auth/v1/user", {"id": "admin-1", "email": "admin@example.com"})
    transport.route("POST", "/rest/v1/judges", lambda call: [{"id": "j9", **call.json_body[0]}])
    transport.route(
        "PATCH",
        "/rest/v1/judges",
        lambda call: [{"id": "j9", "name": "Ayu", "created_by": "admin-1", **call.json_body}],
    )
    store = build_store(client, clock=clock)
    judges = store.resources.judges
    assert judges.create is not None and judges.update is not None

    await store.dispatch(judges.create({"name": "Ayu", "sort_order": 1}))
    await store.dispatch(judges.update(RecordUpdate(id="j9", changes={"title": "Head Judge"})))

    (insert,) = transport.calls_to("POST", "/rest/v1/judges")
    assert insert.json_body == [{"name": "Ayu", "sort_order": 1, "created_by": "admin-1", "updated_by": "admin-1"}]
    (patch,) = transport.calls_to("PATCH", "/rest/v1/judges")
    assert patch.params["id"] == "eq.j9"
    assert patch.json_body == {"title": "Head Judge", "updated_by": "admin-1"}

    (judge,) = store.select("judges").items
    assert judge.title == "Head Judge"
    assert judge.created_by == "admin-1"
    assert store.select("judges").status == SliceStatus.SUCCEEDED


@pytest.mark.asyncio
async def test_delete_judge_removes_row(client: CheerClient, transport: FakeTransport, clock: FakeClock) -> None:
    transport.route("GET", "/rest/v1/judges", [{"id": "j1", "name": "Ayu"}, {"id": "j2", "name": "Budi"}])
    transport.route("DELETE", "/rest/v1/judges", None)
    store = build_store(client, clock=clock)
    judges = store.resources.judges
    assert judges.delete is not None

    await store.dispatch(judges.fetch_all())
    await store.dispatch(judges.delete("j1"))

    assert [j.id for j in store.select("judges").items] == ["j2"]
    (call,) = transport.calls_to("DELETE", "/rest/v1/judges")
    assert call.params == {"id": "eq.j1"}


@pytest.mark.asyncio
async def test_fetch_judge_by_id_sets_selected(client: CheerClient, transport: FakeTransport, clock: FakeClock) -> None:
    transport.route("GET", "/rest/v1/judges", {"id": "j1", "name": "Ayu"})
    store = build_store(client, clock=clock)
    judges = store.resources.judges
    assert judges.fetch_one is not None

    await store.dispatch(judges.fetch_one("j1"))

    selected = store.select("judges").selected
    assert selected is not None and selected.name == "Ayu"


# ----------------------------------------------------------------------
# License course mutations
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_license_course_mutations(client: CheerClient, transport: FakeTransport, clock: FakeClock) -> None:
    clock.current = datetime(2026, 4, 1, 8, 30, tzinfo=UTC)
    transport.route(
        "GET",
        "/rest/v1/license_courses",
        [
            {"id": "1", "course_name": "Coach L1", "course_type": "coach", "sort_order": 1},
            {"id": "3", "course_name": "Coach L3", "course_type": "coach", "sort_order": 3},
        ],
    )
    transport.route("POST", "/rest/v1/license_courses", lambda call: [{"id": "2", **call.json_body[0]}])
    transport.route(
        "PATCH",
        "/rest/v1/license_courses",
        lambda call: [{"id": "3", "course_name": "Coach L3", "course_type": "coach", **call.json_body}],
    )
    store = build_store(client, clock=clock)
    courses = store.resources.license_courses
    assert courses.create is not None and courses.update is not None and courses.delete is not None

    await store.dispatch(courses.fetch_all())
    await store.dispatch(courses.create({"course_name": "Coach L2", "course_type": "coach", "sort_order": 2}))
    assert [c.id for c in store.select("license_courses").items] == ["1", "2", "3"]

    (insert,) = transport.calls_to("POST", "/rest/v1/license_courses")
    assert insert.json_body == [
        {
            "course_name": "Coach L2",
            "course_type": "coach",
            "sort_order": 2,
            "level": None,
            "module": None,
            "description": None,
            "is_active": True,
        }
    ]

    await store.dispatch(courses.update(RecordUpdate(id="3", changes={"sort_order": 0})))
    assert [c.id for c in store.select("license_courses").items] == ["3", "1", "2"]
    patch_values = transport.calls_to("PATCH", "/rest/v1/license_courses")[0].json_body
    assert patch_values["updated_at"] == "2026-04-01T08:30:00+00:00"

    await store.dispatch(courses.delete("1"))
    assert [c.id for c in store.select("license_courses").items] == ["3", "2"]
    soft_delete = transport.calls_to("PATCH", "/rest/v1/license_courses")[1]
    assert soft_delete.json_body == {"is_active": False}
    assert soft_delete.params["id"] == "eq.1"
    assert transport.calls_to("DELETE", "/rest/v1/license_courses") == []


@pytest.mark.asyncio
async def test_detail_fetch_settling_first_keeps_list_result(
    client: CheerClient, transport: FakeTransport, clock: FakeClock
) -> None:
    gate = Gate()
    transport.route("GET", "/rest/v1/judges", queued(gate, {"id": "j1", "name": "Ayu"}))
    store = build_store(client, clock=clock)
    judges = store.resources.judges
    assert judges.fetch_one is not None

    listing = store.dispatch(judges.fetch_all())
    await store.dispatch(judges.fetch_one("j1"))
    assert store.select("judges").status == SliceStatus.LOADING

    gate.release([{"id": "j1", "name": "Ayu"}, {"id": "j2", "name": "Budi"}])
    await listing

    state = store.select("judges")
    assert state.status == SliceStatus.SUCCEEDED
    assert [j.id for j in state.items] == ["j1", "j2"]
    assert state.selected is not None and state.selected.id == "j1"
