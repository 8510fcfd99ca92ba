"""Province record."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import field_validator

from pycheer.models._base import CheerBaseModel


class Province(CheerBaseModel):
    """An Indonesian province, keyed by its ``id_province`` code."""

    _ID_FIELD: ClassVar[str] = "id_province"

    id_province: str
    name: str = ""

    @field_validator("id_province", mode="before")
    @classmethod
    def _code_to_str(cls, value: Any) -> str:
        text = str(value).strip()
        if not text:
            raise ValueError("id_province must be non-empty")
        return text
