"""Entity slices of the site and the store that wires them together.

Each fetcher issues one backend query (filtering and ordering happen on the
backend) and validates the rows into records. Backend failures are re-raised
as :class:`pycheer.exceptions.FetchError` carrying the backend message.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from pycheer._api.tables import Order
from pycheer._constants import (
    IMAGE_EXTENSIONS,
    TABLE_COACHES,
    TABLE_COMPETITIONS,
    TABLE_DIVISIONS,
    TABLE_JUDGES,
    TABLE_LICENSE_COURSES,
    TABLE_NEWS,
    TABLE_PROVINCES,
)
from pycheer.client import CheerClient
from pycheer.config import CheerConfig
from pycheer.exceptions import CheerApiError, CheerTransportError, FetchError
from pycheer.ingestion.rows import parse_row, parse_rows
from pycheer.models import (
    Coach,
    Competition,
    CourseType,
    Division,
    Judge,
    LicenseCourse,
    NewsItem,
    Province,
    PublicImage,
)
from pycheer.models._base import CheerBaseModel
from pycheer.state.auth import AuthSlice
from pycheer.state.events import SliceName
from pycheer.state.slice import RecordUpdate, ResourceMutations, ResourceSlice, create_resource_slice
from pycheer.state.store import Store, utcnow
from pycheer.state.thunks import PayloadCreator, ThunkContext

_logger = logging.getLogger(__name__)


@contextlib.contextmanager
def _backend_errors(resource: str, what: str) -> Iterator[None]:
    try:
        yield
    except (CheerTransportError, CheerApiError) as exc:
        raise FetchError(str(exc) or f"Failed to {what}", resource=resource) from exc


def _max_age(seconds: float) -> timedelta | None:
    return timedelta(seconds=seconds) if seconds > 0 else None


def _table_fetcher(
    name: str,
    table: str,
    model: type[CheerBaseModel],
    *,
    columns: str = "*",
    filters: Mapping[str, Any] | None = None,
    order: tuple[Order, ...] = (),
) -> PayloadCreator:
    label = name.replace("_", " ")

    async def fetch(ctx: ThunkContext, _arg: Any) -> list[Any]:
        with _backend_errors(name, f"fetch {label}"):
            rows = await ctx.client.select(table, columns=columns, filters=filters, order=order or None)
        return parse_rows(model, rows, resource=name)

    fetch.__name__ = f"fetch_{name}"
    return fetch


# ----------------------------------------------------------------------
# Judges
# ----------------------------------------------------------------------


async def fetch_judges(ctx: ThunkContext, include_inactive: Any) -> list[Judge]:
    """Active judges by ``sort_order``; pass ``True`` to include inactive ones."""
    filters = None if include_inactive else {"is_active": True}
    with _backend_errors(TABLE_JUDGES, "fetch judges"):
        rows = await ctx.client.select(TABLE_JUDGES, filters=filters, order=[Order("sort_order")])
    return parse_rows(Judge, rows, resource=TABLE_JUDGES)


async def _current_user_id(ctx: ThunkContext) -> str:
    with _backend_errors(TABLE_JUDGES, "read current user"):
        user = await ctx.client.auth.get_user()
    if user is None:
        raise FetchError("User not authenticated", resource=TABLE_JUDGES)
    return user.id


async def fetch_judge(ctx: ThunkContext, judge_id: Any) -> Judge:
    with _backend_errors(TABLE_JUDGES, "fetch judge"):
        row = await ctx.client.select_single(TABLE_JUDGES, filters={"id": judge_id})
    return parse_row(Judge, row, resource=TABLE_JUDGES)


async def create_judge(ctx: ThunkContext, data: Mapping[str, Any]) -> Judge:
    user_id = await _current_user_id(ctx)
    row = {**data, "created_by": user_id, "updated_by": user_id}
    with _backend_errors(TABLE_JUDGES, "create judge"):
        created = await ctx.client.insert(TABLE_JUDGES, row)
    _logger.info("Created judge %s", created.get("id"))
    return parse_row(Judge, created, resource=TABLE_JUDGES)


async def update_judge(ctx: ThunkContext, update: RecordUpdate) -> Judge:
    user_id = await _current_user_id(ctx)
    values = {**update.changes, "updated_by": user_id}
    with _backend_errors(TABLE_JUDGES, "update judge"):
        rows = await ctx.client.update(TABLE_JUDGES, values, match={"id": update.id})
    if not rows:
        raise FetchError(f"Failed to update judge: no judge with id {update.id}", resource=TABLE_JUDGES)
    return parse_row(Judge, rows[0], resource=TABLE_JUDGES)


async def delete_judge(ctx: ThunkContext, judge_id: Any) -> str:
    with _backend_errors(TABLE_JUDGES, "delete judge"):
        await ctx.client.delete(TABLE_JUDGES, match={"id": judge_id})
    return str(judge_id)


# ----------------------------------------------------------------------
# License courses
# ----------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CourseQuery:
    """Argument of the license-courses fetch."""

    active_only: bool = True
    course_type: CourseType | str | None = None
    organization: str | None = None


async def fetch_license_courses(ctx: ThunkContext, query: CourseQuery | None) -> list[LicenseCourse]:
    query = query or CourseQuery()
    filters: dict[str, Any] = {}
    if query.active_only:
        filters["is_active"] = True
    if query.course_type:
        filters["course_type"] = str(query.course_type)
    if query.organization:
        filters["organization"] = query.organization
    with _backend_errors(TABLE_LICENSE_COURSES, "fetch license courses"):
        rows = await ctx.client.select(
            TABLE_LICENSE_COURSES,
            filters=filters or None,
            order=[Order("sort_order"), Order("course_name")],
        )
    return parse_rows(LicenseCourse, rows, resource=TABLE_LICENSE_COURSES)


_NULLABLE_COURSE_COLUMNS = ("level", "module", "description")


def _course_values(data: Mapping[str, Any]) -> dict[str, Any]:
    values = dict(data)
    for column in _NULLABLE_COURSE_COLUMNS:
        values.setdefault(column, None)
    return values


async def create_license_course(ctx: ThunkContext, data: Mapping[str, Any]) -> LicenseCourse:
    row = _course_values(data)
    row["is_active"] = True
    row["sort_order"] = row.get("sort_order") or 0
    with _backend_errors(TABLE_LICENSE_COURSES, "create license course"):
        created = await ctx.client.insert(TABLE_LICENSE_COURSES, row)
    return parse_row(LicenseCourse, created, resource=TABLE_LICENSE_COURSES)


async def update_license_course(ctx: ThunkContext, update: RecordUpdate) -> LicenseCourse:
    values = _course_values(update.changes)
    values["updated_at"] = ctx.now().astimezone(UTC).isoformat()
    with _backend_errors(TABLE_LICENSE_COURSES, "update license course"):
        rows = await ctx.client.update(TABLE_LICENSE_COURSES, values, match={"id": update.id})
    if not rows:
        raise FetchError(
            f"Failed to update license course: no course with id {update.id}",
            resource=TABLE_LICENSE_COURSES,
        )
    return parse_row(LicenseCourse, rows[0], resource=TABLE_LICENSE_COURSES)


async def delete_license_course(ctx: ThunkContext, course_id: Any) -> str:
    """Soft delete: the row stays, flagged inactive."""
    with _backend_errors(TABLE_LICENSE_COURSES, "delete license course"):
        await ctx.client.update(TABLE_LICENSE_COURSES, {"is_active": False}, match={"id": course_id})
    return str(course_id)


# ----------------------------------------------------------------------
# Public images
# ----------------------------------------------------------------------


def is_image_name(name: str) -> bool:
    return name.lower().endswith(IMAGE_EXTENSIONS)


async def fetch_public_images(ctx: ThunkContext, _arg: Any) -> list[PublicImage]:
    config = ctx.config
    prefix = config.public_images_prefix.strip("/")
    with _backend_errors(SliceName.PUBLIC_IMAGES, "fetch public images"):
        objects = await ctx.client.storage.list(
            config.storage_bucket,
            prefix,
            limit=config.public_images_limit,
        )
    images: list[PublicImage] = []
    for obj in objects:
        name = str(obj.get("name") or "")
        if not is_image_name(name):
            continue
        path = f"{prefix}/{name}" if prefix else name
        images.append(PublicImage(name=name, url=ctx.client.storage.get_public_url(config.storage_bucket, path)))
    return images


# ----------------------------------------------------------------------
# Wiring
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class SiteResources:
    """Every slice of the site, addressable by attribute."""

    auth: AuthSlice
    competitions: ResourceSlice[Competition]
    divisions: ResourceSlice[Division]
    news: ResourceSlice[NewsItem]
    provinces: ResourceSlice[Province]
    judges: ResourceSlice[Judge]
    license_courses: ResourceSlice[LicenseCourse]
    public_images: ResourceSlice[PublicImage]
    coaches: ResourceSlice[Coach]
    entity_slices: tuple[ResourceSlice[Any], ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "entity_slices",
            (
                self.competitions,
                self.divisions,
                self.news,
                self.provinces,
                self.judges,
                self.license_courses,
                self.public_images,
                self.coaches,
            ),
        )

    def all_slices(self) -> tuple[Any, ...]:
        return (self.auth, *self.entity_slices)

    def resource(self, name: str) -> ResourceSlice[Any]:
        for resource in self.entity_slices:
            if resource.name == name:
                return resource
        raise KeyError(name)


def build_resources(config: CheerConfig) -> SiteResources:
    return SiteResources(
        auth=AuthSlice(),
        competitions=create_resource_slice(
            SliceName.COMPETITIONS,
            _table_fetcher(SliceName.COMPETITIONS, TABLE_COMPETITIONS, Competition),
        ),
        divisions=create_resource_slice(
            SliceName.DIVISIONS,
            _table_fetcher(SliceName.DIVISIONS, TABLE_DIVISIONS, Division),
        ),
        news=create_resource_slice(
            SliceName.NEWS,
            _table_fetcher(SliceName.NEWS, TABLE_NEWS, NewsItem),
        ),
        provinces=create_resource_slice(
            SliceName.PROVINCES,
            _table_fetcher(
                SliceName.PROVINCES,
                TABLE_PROVINCES,
                Province,
                columns="id_province,name",
                order=(Order("name"),),
            ),
            max_age=_max_age(config.provinces_max_age),
        ),
        judges=create_resource_slice(
            SliceName.JUDGES,
            fetch_judges,
            mutations=ResourceMutations(
                fetch_one=fetch_judge,
                create=create_judge,
                update=update_judge,
                delete=delete_judge,
            ),
        ),
        license_courses=create_resource_slice(
            SliceName.LICENSE_COURSES,
            fetch_license_courses,
            sort_key=lambda course: (course.sort_order, course.course_name),
            mutations=ResourceMutations(
                create=create_license_course,
                update=update_license_course,
                delete=delete_license_course,
            ),
        ),
        public_images=create_resource_slice(SliceName.PUBLIC_IMAGES, fetch_public_images),
        coaches=create_resource_slice(
            SliceName.COACHES,
            _table_fetcher(
                SliceName.COACHES,
                TABLE_COACHES,
                Coach,
                filters={"is_active": True},
                order=(Order("sort_order"), Order("name")),
            ),
            max_age=_max_age(config.coaches_max_age),
        ),
    )


class SiteStore(Store):
    """Store pre-wired with every slice; ``resources`` exposes their actions."""

    def __init__(
        self,
        resources: SiteResources,
        *,
        client: CheerClient | None = None,
        config: CheerConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(resources.all_slices(), client=client, config=config, clock=clock)
        self.resources = resources


def build_store(
    client: CheerClient,
    config: CheerConfig | None = None,
    *,
    clock: Callable[[], datetime] = utcnow,
) -> SiteStore:
    """Store with the auth slice and every entity slice, bound to *client*."""
    config = config or client.config
    return SiteStore(build_resources(config), client=client, config=config, clock=clock)
