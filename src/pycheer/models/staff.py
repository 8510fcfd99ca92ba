"""Judge and coach records.

Both tables share the public "staff card" columns; the subclasses add their
own counters.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pycheer.ingestion.normalize import safe_bool, safe_float, safe_int, str_list
from pycheer.models._base import CheerRecord, CheerTimestamp


class StaffMember(CheerRecord):
    name: str = ""
    title: str = ""
    specialization: str = ""
    experience: str = ""
    bio: str = ""
    location: str = ""
    email: str = ""
    phone: str = ""
    image_url: str = ""
    philosophy: str = ""
    certifications: list[str] = Field(default_factory=list)
    achievements: list[str] = Field(default_factory=list)
    specialties: list[str] = Field(default_factory=list)
    years_experience: int = 0
    is_active: bool = True
    is_featured: bool = False
    sort_order: int = 0
    created_at: CheerTimestamp = None
    updated_at: CheerTimestamp = None

    @field_validator("certifications", "achievements", "specialties", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> list[str]:
        return str_list(value)

    @field_validator("years_experience", "sort_order", mode="before")
    @classmethod
    def _coerce_counts(cls, value: Any) -> int:
        return safe_int(value) or 0

    @field_validator("is_active", mode="before")
    @classmethod
    def _coerce_active(cls, value: Any) -> bool:
        return safe_bool(value, default=True)

    @field_validator("is_featured", mode="before")
    @classmethod
    def _coerce_featured(cls, value: Any) -> bool:
        return safe_bool(value)


class Judge(StaffMember):
    """A judge profile shown on the about pages."""

    competitions_judged: int = 0
    certification_level: str = ""
    created_by: str | None = None
    updated_by: str | None = None

    @field_validator("competitions_judged", mode="before")
    @classmethod
    def _coerce_judged(cls, value: Any) -> int:
        return safe_int(value) or 0


class Coach(StaffMember):
    """A coach profile shown on the about pages."""

    teams_coached: int = 0
    champions_produced: int = 0
    success_rate: float = 0.0

    @field_validator("teams_coached", "champions_produced", mode="before")
    @classmethod
    def _coerce_coach_counts(cls, value: Any) -> int:
        return safe_int(value) or 0

    @field_validator("success_rate", mode="before")
    @classmethod
    def _coerce_rate(cls, value: Any) -> float:
        return safe_float(value) or 0.0
