# Athena Records
# File: coercion.py
# Version: v1

"""Conversion of Athena's string-encoded cells into Python values.

Athena returns every cell as ``VarCharValue`` text, whatever the column type.
Supported type tags (see the Athena data types reference):

- ``boolean``   -> bool
- ``varchar``   -> str
- ``integer``   -> int (signed 64-bit range)
- ``bigint``    -> int (signed 64-bit range)
- ``array``     -> list[str], from the ``[a, b, c]`` literal form
- ``timestamp`` -> timezone-aware UTC datetime, millisecond precision
- ``date``      -> datetime.date

Anything else is passed through as a string and logged once per call.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .errors import INVALID_SYNTAX, OUT_OF_RANGE, TypeCoercionError

logger = logging.getLogger(__name__)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_INT_RE = re.compile(r"[+-]?[0-9]+")
_DATE_RE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")
_TIMESTAMP_RE = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2}) "
    r"([0-9]{2}):([0-9]{2}):([0-9]{2})(?:\.([0-9]{3}))?"
)

_TRUE_LITERALS = {"1", "t", "true"}
_FALSE_LITERALS = {"0", "f", "false"}

ARRAY_DELIMITER = ", "


class ColumnType(str, Enum):
    """Athena column types this package knows how to convert."""

    BOOLEAN = "boolean"
    VARCHAR = "varchar"
    INTEGER = "integer"
    BIGINT = "bigint"
    ARRAY = "array"
    TIMESTAMP = "timestamp"
    DATE = "date"

    @classmethod
    def parse(cls, type_tag: str) -> Optional["ColumnType"]:
        """Return the matching member, or None for an unsupported tag."""
        try:
            return cls(type_tag)
        except ValueError:
            return None


def _parse_boolean(data: str) -> bool:
    lowered = data.lower()
    if lowered in _TRUE_LITERALS:
        return True
    if lowered in _FALSE_LITERALS:
        return False
    raise TypeCoercionError(data, ColumnType.BOOLEAN.value, INVALID_SYNTAX)


def _parse_int64(data: str, type_tag: str) -> int:
    if not _INT_RE.fullmatch(data):
        raise TypeCoercionError(data, type_tag, INVALID_SYNTAX)
    value = int(data)
    if value < INT64_MIN or value > INT64_MAX:
        raise TypeCoercionError(data, type_tag, OUT_OF_RANGE)
    return value


def _parse_integer(data: str) -> int:
    return _parse_int64(data, ColumnType.INTEGER.value)


def _parse_bigint(data: str) -> int:
    return _parse_int64(data, ColumnType.BIGINT.value)


def _parse_array(data: str) -> List[str]:
    inner = data.strip("[]")
    if not inner:
        return []
    return inner.split(ARRAY_DELIMITER)


def _parse_timestamp(data: str) -> datetime:
    match = _TIMESTAMP_RE.fullmatch(data)
    if match is None:
        raise TypeCoercionError(data, ColumnType.TIMESTAMP.value, INVALID_SYNTAX)

    year, month, day, hour, minute, second, millis = match.groups()
    try:
        return datetime(
            int(year),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second),
            int(millis or 0) * 1000,
            tzinfo=timezone.utc,
        )
    except ValueError as exc:
        raise TypeCoercionError(data, ColumnType.TIMESTAMP.value, OUT_OF_RANGE) from exc


def _parse_date(data: str) -> date:
    match = _DATE_RE.fullmatch(data)
    if match is None:
        raise TypeCoercionError(data, ColumnType.DATE.value, INVALID_SYNTAX)

    year, month, day = match.groups()
    try:
        return date(int(year), int(month), int(day))
    except ValueError as exc:
        raise TypeCoercionError(data, ColumnType.DATE.value, OUT_OF_RANGE) from exc


_CONVERTERS: Dict[ColumnType, Callable[[str], Any]] = {
    ColumnType.BOOLEAN: _parse_boolean,
    ColumnType.VARCHAR: str,
    ColumnType.INTEGER: _parse_integer,
    ColumnType.BIGINT: _parse_bigint,
    ColumnType.ARRAY: _parse_array,
    ColumnType.TIMESTAMP: _parse_timestamp,
    ColumnType.DATE: _parse_date,
}


def coerce_value(raw: Optional[str], type_tag: str, nullable: bool = False) -> Any:
    """Convert one raw cell to the Python value for ``type_tag``.

    ``raw`` is None when Athena omitted ``VarCharValue`` for the cell, which
    is how SQL NULL arrives. For nullable destinations this yields None for
    every type except ``varchar``; otherwise the cell is treated as an empty
    string, so e.g. a NULL integer on a non-nullable field is an error while
    a NULL varchar is always ``""``.

    Raises TypeCoercionError for invalid syntax or out-of-range values.
    """
    column_type = ColumnType.parse(type_tag)

    if raw is None and nullable and column_type is not ColumnType.VARCHAR:
        return None

    data = "" if raw is None else raw

    if column_type is None:
        logger.warning(
            "Athena data type not supported: '%s', defaulting to string", type_tag
        )
        return data

    return _CONVERTERS[column_type](data)


def to_json_value(value: Any) -> Any:
    """Render a coerced value as something JSON can carry."""
    if isinstance(value, date):
        return value.isoformat()
    return value
