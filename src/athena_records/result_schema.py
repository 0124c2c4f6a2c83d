# Athena Records
# File: result_schema.py
# Version: v1

"""Result set metadata -> column schema, and reconciliation with a record."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator

from .errors import (
    DuplicateColumnNameError,
    EmptyResultSchemaError,
    MissingColumnNameError,
    MissingColumnTypeError,
    SchemaColumnNotFoundError,
    SchemaCountMismatchError,
)
from .models import ColumnInfo
from .record_schema import RecordSchema


@dataclass(frozen=True)
class ResultColumn:
    """A result set column and its position in every row of the page."""

    name: str
    type_tag: str
    index: int


@dataclass(frozen=True)
class ResultSchema:
    """Column name -> ResultColumn for one result page."""

    columns: Dict[str, ResultColumn]

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self) -> Iterator[ResultColumn]:
        return iter(self.columns.values())

    def __contains__(self, name: object) -> bool:
        return name in self.columns

    def __getitem__(self, name: str) -> ResultColumn:
        return self.columns[name]


def resolve_result_schema(columns: Iterable[ColumnInfo]) -> ResultSchema:
    """Index result set metadata by column name.

    The positional index of each column is kept as reported so rows can be
    read by position later.
    """
    schema: Dict[str, ResultColumn] = {}
    for index, info in enumerate(columns):
        if not info.name:
            raise MissingColumnNameError(index)
        if not info.type:
            raise MissingColumnTypeError(index, info.name)
        if info.name in schema:
            raise DuplicateColumnNameError(index, info.name)

        schema[info.name] = ResultColumn(name=info.name, type_tag=info.type, index=index)

    if not schema:
        raise EmptyResultSchemaError()

    return ResultSchema(columns=schema)


def reconcile_schemas(record_schema: RecordSchema, result_schema: ResultSchema) -> None:
    """Check that every bound column is present and the counts agree.

    Columns are matched by name, so any ordering of the result columns is
    accepted.
    """
    if len(record_schema) != len(result_schema):
        raise SchemaCountMismatchError(len(record_schema), len(result_schema))

    for binding in record_schema:
        if binding.column_name not in result_schema:
            raise SchemaColumnNotFoundError(binding.column_name)
