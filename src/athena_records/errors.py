# Athena Records
# File: errors.py
# Version: v1

"""Typed exceptions raised by the mapping engine and the Athena client.

Hierarchy::

    AthenaRecordsError
    +-- SchemaDefinitionError          (destination record type is unusable)
    |   +-- InvalidDestinationShapeError
    |   +-- EmptyRecordError
    |   +-- MissingBindingError
    |   +-- DuplicateBindingError
    +-- SchemaMismatchError            (a result page does not fit the record)
    |   +-- EmptyResultSchemaError
    |   +-- MissingColumnNameError
    |   +-- MissingColumnTypeError
    |   +-- DuplicateColumnNameError
    |   +-- SchemaCountMismatchError
    |   +-- SchemaColumnNotFoundError
    |   +-- RowShapeError
    +-- TypeCoercionError              (a cell could not be converted)
    +-- QueryExecutionError            (query finished in a non-success state)

    AthenaServiceError (RuntimeError)  (HTTP / transport / credentials)

Every exception keeps the offending values as attributes so callers never
have to parse messages.
"""

from __future__ import annotations

from typing import Any, Optional


class AthenaRecordsError(Exception):
    """Base class for all errors raised by this package."""


# ---------------------------------------------------------------------------
# Destination schema errors (raised at mapper construction)
# ---------------------------------------------------------------------------


class SchemaDefinitionError(AthenaRecordsError):
    """The destination record type cannot be bound to result columns."""


class InvalidDestinationShapeError(SchemaDefinitionError):
    def __init__(self, message: str, destination: Any = None) -> None:
        super().__init__(message)
        self.destination = destination


class EmptyRecordError(SchemaDefinitionError):
    def __init__(self, record_type: type) -> None:
        super().__init__(
            "at least one field should be defined for record type: "
            f"{record_type.__qualname__}"
        )
        self.record_type = record_type


class MissingBindingError(SchemaDefinitionError):
    def __init__(self, record_type: type, field_name: str) -> None:
        super().__init__(
            f"missing column name binding for field '{field_name}' "
            f"of {record_type.__qualname__}"
        )
        self.record_type = record_type
        self.field_name = field_name


class DuplicateBindingError(SchemaDefinitionError):
    def __init__(self, record_type: type, column_name: str, field_names: tuple[str, str]) -> None:
        super().__init__(
            f"duplicate column name binding '{column_name}' on fields "
            f"'{field_names[0]}' and '{field_names[1]}' of {record_type.__qualname__}"
        )
        self.record_type = record_type
        self.column_name = column_name
        self.field_names = field_names


# ---------------------------------------------------------------------------
# Result page errors (raised per page)
# ---------------------------------------------------------------------------


class SchemaMismatchError(AthenaRecordsError):
    """A result page's metadata or rows do not fit the bound record type."""


class EmptyResultSchemaError(SchemaMismatchError):
    def __init__(self) -> None:
        super().__init__("at least one column should be returned by the result set")


class MissingColumnNameError(SchemaMismatchError):
    def __init__(self, index: int) -> None:
        super().__init__(f"column name from result set is empty, index: {index}")
        self.index = index


class MissingColumnTypeError(SchemaMismatchError):
    def __init__(self, index: int, column_name: str) -> None:
        super().__init__(
            f"column type from result set is empty, index: {index}, name: {column_name}"
        )
        self.index = index
        self.column_name = column_name


class DuplicateColumnNameError(SchemaMismatchError):
    def __init__(self, index: int, column_name: str) -> None:
        super().__init__(
            f"duplicate column name from result set, index: {index}, name: {column_name}"
        )
        self.index = index
        self.column_name = column_name


class SchemaCountMismatchError(SchemaMismatchError):
    def __init__(self, record_count: int, result_count: int) -> None:
        super().__init__(
            "mismatched schema definition and result set columns count, "
            f"record columns: {record_count}, result set columns: {result_count}"
        )
        self.record_count = record_count
        self.result_count = result_count


class SchemaColumnNotFoundError(SchemaMismatchError):
    def __init__(self, column_name: str) -> None:
        super().__init__(
            f"column '{column_name}' is defined in record schema but not found in result set"
        )
        self.column_name = column_name


class RowShapeError(SchemaMismatchError):
    def __init__(self, row_index: int, expected: int, actual: int) -> None:
        super().__init__(
            f"row {row_index} has {actual} cells but the result set declares {expected} columns"
        )
        self.row_index = row_index
        self.expected = expected
        self.actual = actual


# ---------------------------------------------------------------------------
# Cell conversion
# ---------------------------------------------------------------------------


INVALID_SYNTAX = "invalid syntax"
OUT_OF_RANGE = "out of range"


class TypeCoercionError(AthenaRecordsError):
    """A raw cell value could not be converted to its column type.

    ``reason`` is either ``"invalid syntax"`` or ``"out of range"``.
    ``column_name`` is filled in by the mapper when the failing cell is known.
    """

    def __init__(
        self,
        value: Optional[str],
        type_tag: str,
        reason: str,
        column_name: Optional[str] = None,
    ) -> None:
        self.value = value
        self.type_tag = type_tag
        self.reason = reason
        self.column_name = column_name
        super().__init__(self._render())

    def _render(self) -> str:
        msg = f"parsing {self.value!r} as {self.type_tag}: {self.reason}"
        if self.column_name:
            msg = f"column '{self.column_name}': {msg}"
        return msg

    def with_column(self, column_name: str) -> "TypeCoercionError":
        return TypeCoercionError(self.value, self.type_tag, self.reason, column_name)


# ---------------------------------------------------------------------------
# Query lifecycle
# ---------------------------------------------------------------------------


class QueryExecutionError(AthenaRecordsError):
    """The query reached a terminal state other than SUCCEEDED."""

    def __init__(self, execution_id: str, state: str, reason: Optional[str] = None) -> None:
        msg = f"query execution {execution_id} failed with status: {state}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)
        self.execution_id = execution_id
        self.state = state
        self.reason = reason


class AthenaServiceError(RuntimeError):
    """The Athena HTTP API could not be reached or rejected a request."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
