"""Competition and division records."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from pycheer.ingestion.normalize import safe_bool, safe_int
from pycheer.models._base import CheerRecord, CheerTimestamp


class Division(CheerRecord):
    """A competition division (age group + skill level)."""

    name: str = ""
    age_group: str = ""
    skill_level: str = ""
    queue: int | None = None
    """Display order used by the admin tables."""

    @field_validator("queue", mode="before")
    @classmethod
    def _coerce_queue(cls, value: Any) -> int | None:
        return safe_int(value)


class Competition(CheerRecord):
    """A championship listed on the site."""

    name: str = ""
    slug: str = ""
    description: str = ""
    date: str = ""
    """Event date as stored (free text or ISO date)."""
    location: str = ""
    registration_open: bool = Field(
        default=False,
        validation_alias=AliasChoices("registration_open", "registrationOpen"),
    )
    registration_deadline: str = Field(
        default="",
        validation_alias=AliasChoices("registration_deadline", "registrationDeadline"),
    )
    created_at: CheerTimestamp = Field(default=None, validation_alias=AliasChoices("created_at", "createdAt"))

    @field_validator("registration_open", mode="before")
    @classmethod
    def _coerce_open(cls, value: Any) -> bool:
        return safe_bool(value)
