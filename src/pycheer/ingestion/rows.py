"""Row boundary: raw backend rows to typed records."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, TypeVar

import pydantic

from pycheer.exceptions import ValidationError
from pycheer.models._base import CheerBaseModel

_logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=CheerBaseModel)


def parse_row(model: type[RecordT], row: Any, *, resource: str = "") -> RecordT:
    """Validate one row; raises :class:`pycheer.exceptions.ValidationError`."""
    if not isinstance(row, dict):
        raise ValidationError(
            f"Invalid {resource or model.__name__} row: expected an object, got {type(row).__name__}",
            resource=resource,
            row=row,
        )
    try:
        return model.model_validate(row)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ())) or "row"
        message = first.get("msg", "invalid value")
        raise ValidationError(
            f"Invalid {resource or model.__name__} row ({location}: {message})",
            resource=resource,
            row=row,
        ) from exc


def parse_rows(model: type[RecordT], rows: Iterable[Any] | None, *, resource: str = "") -> list[RecordT]:
    """Validate every row, keeping backend order. One bad row fails the batch."""
    records = [parse_row(model, row, resource=resource) for row in rows or ()]
    _logger.debug("Parsed %d %s rows", len(records), resource or model.__name__)
    return records
