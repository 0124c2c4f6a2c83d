# Athena Records
# File: mapper.py
# Version: v1

"""Mapping engine: result pages in, typed records out.

Usage::

    records: list[Computer] = []
    mapper = RecordMapper(Computer, records)
    for page in pages:
        mapper.append_page(page)

or, streaming into a bounded queue consumed by another thread::

    out: queue.Queue = queue.Queue(maxsize=100)
    mapper = RecordMapper(Computer, out)
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Generic, List, Sequence, Type, TypeVar

from .coercion import coerce_value
from .errors import InvalidDestinationShapeError, RowShapeError, TypeCoercionError
from .models import ResultPage, Row
from .record_schema import RecordSchema, resolve_record_schema
from .result_schema import ResultSchema, reconcile_schemas, resolve_result_schema
from .sinks import RecordSink, make_sink

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RecordMapper(Generic[T]):
    """Converts result pages into ``record_type`` instances.

    The destination is either a ``list`` (records are appended) or a
    ``queue.Queue`` (records are put, blocking while the queue is full). A
    custom :class:`RecordSink` is accepted too. The destination schema is
    resolved once here; the result schema is resolved and reconciled again
    for every page.

    ``append_page`` may be called from several threads; calls on one mapper
    are serialized so records of different pages never interleave.
    """

    def __init__(self, record_type: Type[T], destination: Any) -> None:
        sink = make_sink(destination)
        if sink is None:
            raise InvalidDestinationShapeError(
                "invalid destination: expected a list, a queue.Queue or a RecordSink, "
                f"got {type(destination).__name__}",
                destination=destination,
            )

        self._sink: RecordSink = sink
        self._schema: RecordSchema = resolve_record_schema(record_type)
        self._lock = threading.Lock()

        logger.debug(
            "Initialised mapper for %s (%s sink, %d columns)",
            record_type.__qualname__,
            sink.kind,
            len(self._schema),
        )

    @property
    def record_type(self) -> Type[T]:
        return self._schema.record_type

    @property
    def schema(self) -> RecordSchema:
        return self._schema

    @property
    def sink(self) -> RecordSink:
        return self._sink

    def append_page(self, page: ResultPage) -> int:
        """Convert every row of ``page`` and deliver the records.

        The page is converted completely before anything is delivered, so a
        failing row leaves the destination untouched. The header row that
        Athena echoes on the first page must already be stripped.

        Returns the number of records delivered.
        """
        with self._lock:
            result_schema = resolve_result_schema(page.columns)
            reconcile_schemas(self._schema, result_schema)

            records = [
                self._convert_row(row_index, row, result_schema)
                for row_index, row in enumerate(page.rows)
            ]
            self._sink.extend(records)

        logger.debug(
            "Appended %d %s records", len(records), self._schema.record_type.__qualname__
        )
        return len(records)

    def close(self) -> None:
        """Close the sink (queue sinks receive END_OF_RESULTS)."""
        with self._lock:
            self._sink.close()

    def _convert_row(self, row_index: int, row: Row, result_schema: ResultSchema) -> T:
        if len(row) < len(result_schema):
            raise RowShapeError(row_index, len(result_schema), len(row))

        values = {}
        for binding in self._schema:
            result_column = result_schema[binding.column_name]
            try:
                values[binding.field_name] = coerce_value(
                    row[result_column.index],
                    result_column.type_tag,
                    nullable=binding.nullable,
                )
            except TypeCoercionError as exc:
                raise exc.with_column(binding.column_name) from exc

        return self._schema.record_type(**values)


def convert_result_page(record_type: Type[T], destination: Any, page: ResultPage) -> int:
    """Convert a single page into ``destination`` without keeping a mapper."""
    return RecordMapper(record_type, destination).append_page(page)


def map_rows(record_type: Type[T], page: ResultPage) -> List[T]:
    """Return the records of a single page as a new list."""
    records: List[T] = []
    convert_result_page(record_type, records, page)
    return records


def map_pages(record_type: Type[T], pages: Sequence[ResultPage]) -> List[T]:
    """Convert several in-memory pages, in order, into one list."""
    records: List[T] = []
    mapper = RecordMapper(record_type, records)
    for page in pages:
        mapper.append_page(page)
    return records
