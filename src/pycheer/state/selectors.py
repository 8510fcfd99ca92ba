"""Pure read helpers over a store snapshot.

Every selector takes the mapping returned by ``Store.get_state()`` and never
mutates it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from pycheer.models.license_course import CourseType, LicenseCourse
from pycheer.models.province import Province
from pycheer.models.staff import Judge
from pycheer.state.auth import AuthState
from pycheer.state.events import SliceName, SliceStatus
from pycheer.state.policy import needs_refresh as _needs_refresh
from pycheer.state.slice import SliceState

State = Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class Option:
    """Value/label pair for select inputs."""

    value: str
    label: str


def _slice(state: State, name: str) -> SliceState[Any]:
    return state[str(name)]


def select_items(state: State, name: str) -> tuple[Any, ...]:
    return _slice(state, name).items


def select_status(state: State, name: str) -> SliceStatus:
    return _slice(state, name).status


def select_loading(state: State, name: str) -> bool:
    return _slice(state, name).status == SliceStatus.LOADING


def select_error(state: State, name: str) -> str | None:
    return _slice(state, name).error


def select_selected(state: State, name: str) -> Any:
    return _slice(state, name).selected


def needs_refresh(state: State, name: str, now: datetime, max_age: timedelta | None = None) -> bool:
    """Whether the slice should be (re)fetched now; see :func:`pycheer.state.policy.needs_refresh`."""
    slice_state = _slice(state, name)
    return _needs_refresh(slice_state.status, slice_state.fetched_at, now, max_age)


def select_by_id(state: State, name: str, record_id: Any) -> Any | None:
    wanted = str(record_id)
    for item in _slice(state, name).items:
        if item.record_id == wanted:
            return item
    return None


# ----------------------------------------------------------------------
# Provinces
# ----------------------------------------------------------------------


def province_name_by_id(state: State, province_id: Any) -> str:
    """Province name, or the id itself when it is not (yet) loaded."""
    province: Province | None = select_by_id(state, SliceName.PROVINCES, province_id)
    if province is None or not province.name:
        return str(province_id)
    return province.name


def province_options(state: State) -> list[Option]:
    return [Option(value=p.id_province, label=p.name) for p in select_items(state, SliceName.PROVINCES)]


# ----------------------------------------------------------------------
# Judges
# ----------------------------------------------------------------------


def active_judges(state: State) -> list[Judge]:
    return [j for j in select_items(state, SliceName.JUDGES) if j.is_active]


def featured_judges(state: State) -> list[Judge]:
    return [j for j in active_judges(state) if j.is_featured]


# ----------------------------------------------------------------------
# License courses
# ----------------------------------------------------------------------


def license_courses_by_type(state: State, course_type: CourseType | str) -> list[LicenseCourse]:
    wanted = CourseType(course_type)
    return [c for c in select_items(state, SliceName.LICENSE_COURSES) if c.course_type == wanted]


def license_courses_by_organization(state: State, organization: str) -> list[LicenseCourse]:
    wanted = organization.strip().casefold()
    return [
        c
        for c in select_items(state, SliceName.LICENSE_COURSES)
        if c.organization and c.organization.strip().casefold() == wanted
    ]


def coach_courses(state: State) -> list[LicenseCourse]:
    return license_courses_by_type(state, CourseType.COACH)


def judge_courses(state: State) -> list[LicenseCourse]:
    return license_courses_by_type(state, CourseType.JUDGE)


def rules_courses(state: State) -> list[LicenseCourse]:
    return license_courses_by_type(state, CourseType.RULES)


# ----------------------------------------------------------------------
# Auth
# ----------------------------------------------------------------------


def select_auth(state: State) -> AuthState:
    return state[str(SliceName.AUTH)]


def is_hydrated(state: State) -> bool:
    return select_auth(state).hydrated


def is_authenticated(state: State) -> bool:
    return select_auth(state).user is not None


def is_admin(state: State) -> bool:
    profile = select_auth(state).profile
    return profile is not None and profile.is_admin
