"""Base model and enum for backend records.

Every record inherits from :class:`CheerBaseModel` which provides:

* frozen instances, so records behave as value copies of backend rows.
* A ``model_validator(mode="before")`` that drops placeholder values
  (``""``, ``"null"``, ``"undefined"``, ``"{}"``) so the field default
  is used.
* A ``raw`` dict that captures the original row.
* ``record_id``, resolved through the ``_ID_FIELD`` class variable.

Enums inherit from :class:`CheerEnum` which adds an ``UNKNOWN`` member and a
``_missing_`` hook returning it for unmapped values.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator

from pycheer.ingestion.normalize import is_placeholder


def parse_timestamp(value: Any) -> datetime | None:
    """Convert an ISO-8601 string or epoch number to an aware UTC datetime.

    Returns ``None`` for empty or unparsable values instead of raising; a bad
    audit column must not reject an otherwise valid row.
    """
    if value is None or is_placeholder(value):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        ts = float(value)
        if ts > 1e11:
            ts /= 1000.0
        return datetime.fromtimestamp(ts, tz=UTC)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


CheerTimestamp = Annotated[datetime | None, BeforeValidator(parse_timestamp)]
"""Annotated type that coerces backend timestamps to UTC datetimes."""


class CheerEnum(enum.StrEnum):
    """Base for text enums stored in backend columns.

    Every subclass **must** define ``UNKNOWN``.
    """

    @classmethod
    def _missing_(cls, value: object) -> CheerEnum:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        unknown: CheerEnum = cls.UNKNOWN  # type: ignore[attr-defined]
        return unknown


class CheerBaseModel(BaseModel):
    """Base for backend records."""

    _ID_FIELD: ClassVar[str] = "id"

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, repr=False)
    """Original backend row."""

    @property
    def record_id(self) -> str:
        return str(getattr(self, self._ID_FIELD))

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Drop placeholder values and stash the raw row."""
        if not isinstance(values, dict):
            return values
        cleaned = {key: value for key, value in values.items() if value is not None and not is_placeholder(value)}
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned


class CheerRecord(CheerBaseModel):
    """Record keyed by a text ``id`` column (uuid or integer in the database)."""

    id: str

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> str:
        if isinstance(value, bool):
            raise ValueError("id must be a string or integer")
        text = str(value).strip()
        if not text:
            raise ValueError("id must be non-empty")
        return text
