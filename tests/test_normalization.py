from __future__ import annotations

import pytest

from pycheer.exceptions import ValidationError
from pycheer.ingestion.normalize import is_placeholder, safe_bool, safe_float, safe_int, safe_str, str_list
from pycheer.ingestion.rows import parse_rows
from pycheer.models import Division


@pytest.mark.parametrize("value", ["", " ", "null", "undefined", "{}"])
def test_placeholders(value: str) -> None:
    assert is_placeholder(value)


def test_numbers() -> None:
    assert safe_float("1.5") == 1.5
    assert safe_float("nan") is None
    assert safe_float(True) is None
    assert safe_int("7.9") == 7
    assert safe_int("null") is None


def test_strings_and_bools() -> None:
    assert safe_str("undefined") is None
    assert safe_str(12) == "12"
    assert safe_bool("Yes") is True
    assert safe_bool("0") is False
    assert safe_bool("maybe", default=True) is True
    assert safe_bool(None) is False


def test_str_list_variants() -> None:
    assert str_list(None) == []
    assert str_list("single") == ["single"]
    assert str_list('["a", null, "b"]') == ["a", "b"]
    assert str_list("[not json") == ["[not json"]
    assert str_list([1, "", "x"]) == ["1", "x"]


def test_parse_rows_keeps_backend_order() -> None:
    divisions = parse_rows(Division, [{"id": "2", "name": "B"}, {"id": "1", "name": "A"}], resource="divisions")
    assert [d.id for d in divisions] == ["2", "1"]


def test_parse_rows_rejects_non_objects() -> None:
    with pytest.raises(ValidationError) as exc_info:
        parse_rows(Division, [["not", "a", "row"]], resource="divisions")
    assert exc_info.value.resource == "divisions"
    assert exc_info.value.row == ["not", "a", "row"]


def test_parse_rows_reports_field_error() -> None:
    with pytest.raises(ValidationError, match=r"Invalid divisions row \(id: "):
        parse_rows(Division, [{"name": "no id"}], resource="divisions")
