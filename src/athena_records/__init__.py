# Athena Records
# File: __init__.py
# Version: v1

"""Map Amazon Athena query results onto typed dataclass records."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from .client import AthenaClient
from .coercion import ColumnType, coerce_value
from .config import AthenaConfig
from .errors import (
    AthenaRecordsError,
    AthenaServiceError,
    DuplicateBindingError,
    DuplicateColumnNameError,
    EmptyRecordError,
    EmptyResultSchemaError,
    InvalidDestinationShapeError,
    MissingBindingError,
    MissingColumnNameError,
    MissingColumnTypeError,
    QueryExecutionError,
    RowShapeError,
    SchemaColumnNotFoundError,
    SchemaCountMismatchError,
    SchemaDefinitionError,
    SchemaMismatchError,
    TypeCoercionError,
)
from .mapper import RecordMapper, convert_result_page, map_pages, map_rows
from .models import ColumnInfo, QueryExecutionStatus, ResultPage
from .record_schema import RecordSchema, column, resolve_record_schema
from .result_schema import ResultSchema, reconcile_schemas, resolve_result_schema
from .sinks import END_OF_RESULTS, ListSink, QueueSink, RecordSink, iter_queue

__all__ = [
    "__version__",
    "AthenaClient",
    "AthenaConfig",
    "AthenaRecordsError",
    "AthenaServiceError",
    "ColumnInfo",
    "ColumnType",
    "DuplicateBindingError",
    "DuplicateColumnNameError",
    "EmptyRecordError",
    "EmptyResultSchemaError",
    "END_OF_RESULTS",
    "InvalidDestinationShapeError",
    "ListSink",
    "MissingBindingError",
    "MissingColumnNameError",
    "MissingColumnTypeError",
    "QueryExecutionError",
    "QueryExecutionStatus",
    "QueueSink",
    "RecordMapper",
    "RecordSchema",
    "RecordSink",
    "ResultPage",
    "ResultSchema",
    "RowShapeError",
    "SchemaColumnNotFoundError",
    "SchemaCountMismatchError",
    "SchemaDefinitionError",
    "SchemaMismatchError",
    "TypeCoercionError",
    "coerce_value",
    "column",
    "convert_result_page",
    "iter_queue",
    "map_pages",
    "map_rows",
    "reconcile_schemas",
    "resolve_record_schema",
    "resolve_result_schema",
]


def _resolve_version() -> str:
    """Resolve installed distribution version.

    Falls back to a reasonable default when running from source without an
    installed distribution.
    """
    try:
        return version("athena-records")
    except PackageNotFoundError:
        return "0.1.0"


__version__ = _resolve_version()
