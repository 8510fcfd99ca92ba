"""License course record (education pages)."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from pycheer.ingestion.normalize import safe_bool, safe_int
from pycheer.models._base import CheerEnum, CheerRecord, CheerTimestamp


class CourseType(CheerEnum):
    COACH = "coach"
    JUDGE = "judge"
    RULES = "rules"
    UNKNOWN = "unknown"


class LicenseCourse(CheerRecord):
    """A coaching/judging/rules license course.

    ``organization`` is the issuing body (``"ICA"`` or ``"ICU"``).
    """

    course_name: str = ""
    course_type: CourseType = CourseType.UNKNOWN
    level: str | None = None
    organization: str = ""
    module: str | None = None
    description: str | None = None
    is_active: bool = True
    sort_order: int = 0
    created_at: CheerTimestamp = None
    updated_at: CheerTimestamp = None

    @field_validator("sort_order", mode="before")
    @classmethod
    def _coerce_sort(cls, value: Any) -> int:
        return safe_int(value) or 0

    @field_validator("is_active", mode="before")
    @classmethod
    def _coerce_active(cls, value: Any) -> bool:
        return safe_bool(value, default=True)
