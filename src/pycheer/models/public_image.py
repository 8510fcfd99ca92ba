"""Public image record (storage objects listed from the uploads bucket)."""

from __future__ import annotations

from typing import ClassVar

from pycheer.models._base import CheerBaseModel


class PublicImage(CheerBaseModel):
    _ID_FIELD: ClassVar[str] = "name"

    name: str
    url: str
