# Athena Records
# File: tests/test_coercion.py
# Version: v1

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

import pytest

from athena_records.coercion import ColumnType, coerce_value, to_json_value
from athena_records.errors import TypeCoercionError


# ---------------------------------------------------------------------------
# boolean
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("raw", ["true", "True", "TRUE", "t", "1"])
def test_boolean_true_literals(raw: str) -> None:
    assert coerce_value(raw, "boolean") is True


@pytest.mark.parametrize("raw", ["false", "False", "FALSE", "f", "0"])
def test_boolean_false_literals(raw: str) -> None:
    assert coerce_value(raw, "boolean") is False


def test_boolean_rejects_other_text() -> None:
    with pytest.raises(TypeCoercionError) as excinfo:
        coerce_value("some-invalid-value", "boolean")

    assert excinfo.value.reason == "invalid syntax"
    assert "parsing" in str(excinfo.value)
    assert "invalid syntax" in str(excinfo.value)


def test_boolean_null_on_value_field_is_an_error() -> None:
    with pytest.raises(TypeCoercionError) as excinfo:
        coerce_value(None, "boolean")
    assert excinfo.value.reason == "invalid syntax"


# ---------------------------------------------------------------------------
# varchar
# ---------------------------------------------------------------------------


def test_varchar_passthrough() -> None:
    assert coerce_value("test data", "varchar") == "test data"
    assert coerce_value("test data", "varchar", nullable=True) == "test data"


def test_varchar_null_becomes_empty_string() -> None:
    assert coerce_value(None, "varchar") == ""
    assert coerce_value(None, "varchar", nullable=True) == ""
    assert coerce_value("", "varchar", nullable=True) == ""


# ---------------------------------------------------------------------------
# integer / bigint
# ---------------------------------------------------------------------------


def test_integer_valid() -> None:
    assert coerce_value("-2147483648", "integer") == -2147483648
    assert coerce_value("+42", "integer") == 42


@pytest.mark.parametrize("raw", ["-----2147483648", "", " 5", "1_000", "4.2", "0x10"])
def test_integer_invalid_syntax(raw: str) -> None:
    with pytest.raises(TypeCoercionError) as excinfo:
        coerce_value(raw, "integer")
    assert excinfo.value.reason == "invalid syntax"


def test_bigint_valid_at_int64_bounds() -> None:
    assert coerce_value("9223372036854775807", "bigint") == 9223372036854775807
    assert coerce_value("-9223372036854775808", "bigint") == -9223372036854775808


def test_bigint_invalid_syntax() -> None:
    with pytest.raises(TypeCoercionError) as excinfo:
        coerce_value("9223372_NOT_VALID_036854775807", "bigint")
    assert excinfo.value.reason == "invalid syntax"


@pytest.mark.parametrize("type_tag", ["integer", "bigint"])
@pytest.mark.parametrize("raw", ["9223372036854775807123213122", "9223372036854775808", "-9223372036854775809"])
def test_numeric_overflow_is_out_of_range(type_tag: str, raw: str) -> None:
    with pytest.raises(TypeCoercionError) as excinfo:
        coerce_value(raw, type_tag)

    assert excinfo.value.reason == "out of range"
    assert "out of range" in str(excinfo.value).lower()
    assert excinfo.value.type_tag == type_tag


# ---------------------------------------------------------------------------
# array
# ---------------------------------------------------------------------------


def test_array_empty() -> None:
    result = coerce_value("[]", "array")
    assert result == []
    assert result is not None


def test_array_single_item() -> None:
    assert coerce_value("[data1]", "array") == ["data1"]


def test_array_two_items() -> None:
    assert coerce_value("[data1, data2]", "array") == ["data1", "data2"]


def test_array_split_is_literal() -> None:
    # Only ", " separates items; no trimming or unescaping otherwise.
    assert coerce_value("[a,b, c ]", "array") == ["a,b", "c "]


def test_array_null_on_value_field_is_empty() -> None:
    assert coerce_value(None, "array") == []


# ---------------------------------------------------------------------------
# timestamp / date
# ---------------------------------------------------------------------------


def test_timestamp_without_fraction() -> None:
    result = coerce_value("2012-10-31 08:11:22", "timestamp")
    assert result == datetime(2012, 10, 31, 8, 11, 22, tzinfo=timezone.utc)


def test_timestamp_zero_millis() -> None:
    result = coerce_value("2012-10-31 08:11:22.000", "timestamp")
    assert result == datetime(2012, 10, 31, 8, 11, 22, tzinfo=timezone.utc)
    assert result.tzinfo is timezone.utc


def test_timestamp_with_millis() -> None:
    result = coerce_value("2012-10-31 08:11:22.512", "timestamp")
    assert result == datetime(2012, 10, 31, 8, 11, 22, 512000, tzinfo=timezone.utc)


def test_timestamp_out_of_range_seconds() -> None:
    with pytest.raises(TypeCoercionError) as excinfo:
        coerce_value("2012-10-31 08:00:61.000", "timestamp")
    assert excinfo.value.reason == "out of range"


@pytest.mark.parametrize(
    "raw",
    ["2012-10-31T08:11:22", "2012-10-31 08:11:22.51", "2012-10-31", "yesterday", ""],
)
def test_timestamp_invalid_syntax(raw: str) -> None:
    with pytest.raises(TypeCoercionError) as excinfo:
        coerce_value(raw, "timestamp")
    assert excinfo.value.reason == "invalid syntax"


def test_date_valid() -> None:
    assert coerce_value("2021-12-31", "date") == date(2021, 12, 31)


def test_date_rejects_timestamp_text() -> None:
    with pytest.raises(TypeCoercionError) as excinfo:
        coerce_value("2012-10-31 08:11:22.000", "date")
    assert excinfo.value.reason == "invalid syntax"


def test_date_out_of_range() -> None:
    with pytest.raises(TypeCoercionError) as excinfo:
        coerce_value("2021-02-30", "date")
    assert excinfo.value.reason == "out of range"


# ---------------------------------------------------------------------------
# nullability, unsupported types, helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("type_tag", ["boolean", "integer", "bigint", "array", "timestamp", "date", "decimal"])
def test_null_on_nullable_field_is_none(type_tag: str) -> None:
    assert coerce_value(None, type_tag, nullable=True) is None


def test_empty_string_is_not_null() -> None:
    # Present-but-empty cells are parsed, not short-circuited.
    with pytest.raises(TypeCoercionError):
        coerce_value("", "integer", nullable=True)


def test_unsupported_type_passes_through_with_warning(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="athena_records.coercion")

    assert coerce_value("12.50", "decimal") == "12.50"
    assert coerce_value(None, "decimal") == ""
    assert any("decimal" in rec.getMessage() for rec in caplog.records)


def test_column_type_parse() -> None:
    assert ColumnType.parse("bigint") is ColumnType.BIGINT
    assert ColumnType.parse("map") is None


def test_coercion_round_trip() -> None:
    samples = [
        ("boolean", "true", True),
        ("integer", "42", 42),
        ("bigint", "-9000000000", -9000000000),
        ("varchar", "hello", "hello"),
        ("array", "[a, b]", ["a", "b"]),
        ("timestamp", "2012-10-31 08:11:22.512", datetime(2012, 10, 31, 8, 11, 22, 512000, tzinfo=timezone.utc)),
        ("date", "2021-12-31", date(2021, 12, 31)),
    ]
    for type_tag, raw, expected in samples:
        assert coerce_value(raw, type_tag) == expected


def test_to_json_value() -> None:
    ts = datetime(2012, 10, 31, 8, 11, 22, 512000, tzinfo=timezone.utc)
    assert to_json_value(ts) == "2012-10-31T08:11:22.512000+00:00"
    assert to_json_value(date(2021, 12, 31)) == "2021-12-31"
    assert to_json_value(["a"]) == ["a"]
    assert to_json_value(None) is None


def test_error_carries_column_name() -> None:
    with pytest.raises(TypeCoercionError) as excinfo:
        coerce_value("x", "integer")

    named = excinfo.value.with_column("my_id_col")
    assert named.column_name == "my_id_col"
    assert named.reason == "invalid syntax"
    assert "my_id_col" in str(named)
