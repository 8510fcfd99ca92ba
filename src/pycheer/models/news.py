"""News record."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from pycheer.ingestion.normalize import str_list
from pycheer.models._base import CheerRecord, CheerTimestamp


class NewsItem(CheerRecord):
    """A news article. ``images`` holds storage paths or absolute URLs."""

    title: str = ""
    slug: str = ""
    content: str = ""
    date: str = ""
    category: str = ""
    images: list[str] = Field(default_factory=list)
    created_at: CheerTimestamp = None

    @field_validator("images", mode="before")
    @classmethod
    def _coerce_images(cls, value: Any) -> list[str]:
        return str_list(value)
