# Athena Records
# File: tests/test_mapper.py
# Version: v1

from __future__ import annotations

import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional

import pytest

from athena_records.errors import (
    InvalidDestinationShapeError,
    MissingColumnNameError,
    MissingColumnTypeError,
    RowShapeError,
    SchemaColumnNotFoundError,
    SchemaCountMismatchError,
    TypeCoercionError,
)
from athena_records.mapper import RecordMapper, convert_result_page, map_pages, map_rows
from athena_records.models import ColumnInfo, ResultPage
from athena_records.record_schema import column
from athena_records.sinks import END_OF_RESULTS, ListSink, QueueSink, iter_queue


@dataclass
class ValidModel:
    id: int = column("my_id_col")
    name: str = column("name_col")


@dataclass
class NullableModel:
    id: Optional[int] = column("my_id_col")
    name: Optional[str] = column("name_col")


@dataclass
class Computer:
    id: int = column("id")
    name: str = column("name")
    source_computers_count: int = column("source_computers_count")
    source_computer_ids: List[str] = column("source_computer_ids", default_factory=list)
    last_seen: Optional[datetime] = column("last_seen")
    first_seen: Optional[date] = column("first_seen")
    is_active: bool = column("is_active", default=False)


def _metadata(*pairs):
    return [ColumnInfo(name=name, type=type_tag) for name, type_tag in pairs]


def _page(rows, columns=None) -> ResultPage:
    if columns is None:
        columns = _metadata(("my_id_col", "integer"), ("name_col", "varchar"))
    return ResultPage(columns=columns, rows=rows)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_mapper_with_list_destination() -> None:
    dest: List[ValidModel] = []
    mapper = RecordMapper(ValidModel, dest)

    assert mapper.record_type is ValidModel
    assert isinstance(mapper.sink, ListSink)
    assert len(mapper.schema) == 2


def test_mapper_with_queue_destination() -> None:
    mapper = RecordMapper(ValidModel, queue.Queue())
    assert isinstance(mapper.sink, QueueSink)


@pytest.mark.parametrize("destination", [{}, (), None, "records", 3, set()])
def test_invalid_destination(destination) -> None:
    with pytest.raises(InvalidDestinationShapeError):
        RecordMapper(ValidModel, destination)


def test_invalid_record_type() -> None:
    with pytest.raises(InvalidDestinationShapeError):
        RecordMapper(ValidModel(), [])


# ---------------------------------------------------------------------------
# append_page
# ---------------------------------------------------------------------------


def test_append_page_without_rows() -> None:
    dest: List[ValidModel] = []
    assert RecordMapper(ValidModel, dest).append_page(_page([])) == 0
    assert dest == []


def test_append_page_maps_by_name_not_position() -> None:
    dest: List[ValidModel] = []
    mapper = RecordMapper(ValidModel, dest)

    columns = _metadata(("name_col", "varchar"), ("my_id_col", "integer"))
    rows = [[f"name {i}", str(i)] for i in range(100)]

    assert mapper.append_page(_page(rows, columns)) == 100
    assert len(dest) == 100
    for index, record in enumerate(dest):
        assert isinstance(record, ValidModel)
        assert record.id == index
        assert record.name == f"name {index}"


def test_append_pages_accumulate_in_order() -> None:
    dest: List[ValidModel] = [ValidModel(id=-1, name="existing")]
    mapper = RecordMapper(ValidModel, dest)

    mapper.append_page(_page([["0", "a"], ["1", "b"]]))
    mapper.append_page(_page([["2", "c"]]))

    assert [r.id for r in dest] == [-1, 0, 1, 2]


def test_null_cell_on_nullable_field() -> None:
    dest: List[NullableModel] = []
    RecordMapper(NullableModel, dest).append_page(_page([[None, "x"], ["7", None]]))

    assert dest[0].id is None
    assert dest[0].name == "x"
    assert dest[1].id == 7
    assert dest[1].name == ""


def test_null_cell_on_value_field_fails() -> None:
    with pytest.raises(TypeCoercionError) as excinfo:
        RecordMapper(ValidModel, []).append_page(_page([[None, "x"]]))

    assert excinfo.value.column_name == "my_id_col"


def test_invalid_cell_commits_nothing_from_the_page() -> None:
    dest: List[ValidModel] = []
    mapper = RecordMapper(ValidModel, dest)

    with pytest.raises(TypeCoercionError) as excinfo:
        mapper.append_page(_page([["1", "ok"], ["invalid_int_value", "name_value"]]))

    assert "invalid syntax" in str(excinfo.value)
    assert dest == []


def test_mapper_is_usable_after_a_failed_page() -> None:
    dest: List[ValidModel] = []
    mapper = RecordMapper(ValidModel, dest)

    with pytest.raises(TypeCoercionError):
        mapper.append_page(_page([["nope", "x"]]))

    mapper.append_page(_page([["5", "y"]]))
    assert dest == [ValidModel(id=5, name="y")]


def test_missing_column_type_in_metadata() -> None:
    columns = [ColumnInfo(name="my_id_col", type="integer"), ColumnInfo(name="name_col", type=None)]
    with pytest.raises(MissingColumnTypeError) as excinfo:
        RecordMapper(ValidModel, []).append_page(_page([], columns))
    assert excinfo.value.index == 1


def test_missing_column_name_in_metadata() -> None:
    columns = [ColumnInfo(name=None, type="integer"), ColumnInfo(name="name_col", type="varchar")]
    with pytest.raises(MissingColumnNameError):
        RecordMapper(ValidModel, []).append_page(_page([], columns))


def test_extra_result_column_is_a_count_mismatch() -> None:
    columns = _metadata(("my_id_col", "integer"), ("name_col", "varchar"), ("extra", "varchar"))
    with pytest.raises(SchemaCountMismatchError) as excinfo:
        RecordMapper(ValidModel, []).append_page(_page([["1", "a", "b"]], columns))

    assert (excinfo.value.record_count, excinfo.value.result_count) == (2, 3)


def test_renamed_result_column() -> None:
    columns = _metadata(("something_else", "integer"), ("name_col", "varchar"))
    with pytest.raises(SchemaColumnNotFoundError):
        RecordMapper(ValidModel, []).append_page(_page([], columns))


def test_short_row() -> None:
    with pytest.raises(RowShapeError) as excinfo:
        RecordMapper(ValidModel, []).append_page(_page([["1", "a"], ["2"]]))

    assert excinfo.value.row_index == 1
    assert excinfo.value.expected == 2
    assert excinfo.value.actual == 1


def test_all_supported_types() -> None:
    columns = _metadata(
        ("id", "integer"),
        ("name", "varchar"),
        ("source_computers_count", "bigint"),
        ("source_computer_ids", "array"),
        ("last_seen", "timestamp"),
        ("first_seen", "date"),
        ("is_active", "boolean"),
    )
    rows = [
        ["1", "build-01", "9000000000", "[ext-1, ext-2]", "2012-10-31 08:11:22.512", "2021-12-31", "true"],
        ["2", "build-02", "0", "[]", None, None, "False"],
    ]

    records = map_rows(Computer, ResultPage(columns=columns, rows=rows))

    assert records[0] == Computer(
        id=1,
        name="build-01",
        source_computers_count=9000000000,
        source_computer_ids=["ext-1", "ext-2"],
        last_seen=datetime(2012, 10, 31, 8, 11, 22, 512000, tzinfo=timezone.utc),
        first_seen=date(2021, 12, 31),
        is_active=True,
    )
    assert records[1].source_computer_ids == []
    assert records[1].last_seen is None
    assert records[1].first_seen is None
    assert records[1].is_active is False


# ---------------------------------------------------------------------------
# Queue destination
# ---------------------------------------------------------------------------


def test_queue_destination_receives_records_and_end_marker() -> None:
    out: queue.Queue = queue.Queue()
    mapper = RecordMapper(ValidModel, out)

    mapper.append_page(_page([["1", "a"], ["2", "b"]]))
    mapper.close()

    assert out.get_nowait() == ValidModel(id=1, name="a")
    assert out.get_nowait() == ValidModel(id=2, name="b")
    assert out.get_nowait() is END_OF_RESULTS


def test_failed_page_sends_nothing_to_queue() -> None:
    out: queue.Queue = queue.Queue()
    mapper = RecordMapper(ValidModel, out)

    with pytest.raises(TypeCoercionError):
        mapper.append_page(_page([["1", "a"], ["bad", "b"]]))

    assert out.empty()


def test_bounded_queue_blocks_until_consumed() -> None:
    out: queue.Queue = queue.Queue(maxsize=1)
    mapper = RecordMapper(ValidModel, out)

    def produce() -> None:
        mapper.append_page(_page([[str(i), f"n{i}"] for i in range(5)]))
        mapper.close()

    producer = threading.Thread(target=produce)
    producer.start()

    received = list(iter_queue(out, timeout=5))
    producer.join(timeout=5)

    assert not producer.is_alive()
    assert [r.id for r in received] == [0, 1, 2, 3, 4]


def test_close_is_idempotent() -> None:
    out: queue.Queue = queue.Queue()
    mapper = RecordMapper(ValidModel, out)
    mapper.close()
    mapper.close()

    assert out.qsize() == 1


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


def test_concurrent_pages_do_not_interleave() -> None:
    dest: List[ValidModel] = []
    mapper = RecordMapper(ValidModel, dest)
    page_size = 50
    pages = [
        _page([[str(p * 1000 + i), f"page {p}"] for i in range(page_size)])
        for p in range(8)
    ]

    with ThreadPoolExecutor(max_workers=8) as pool:
        counts = list(pool.map(mapper.append_page, pages))

    assert counts == [page_size] * 8
    assert len(dest) == 8 * page_size

    # Each page lands as one contiguous block, rows in their original order.
    for start in range(0, len(dest), page_size):
        block = dest[start : start + page_size]
        assert len({r.name for r in block}) == 1
        ids = [r.id for r in block]
        assert ids == sorted(ids)
        assert ids[-1] - ids[0] == page_size - 1


# ---------------------------------------------------------------------------
# One-shot helpers
# ---------------------------------------------------------------------------


def test_convert_result_page() -> None:
    dest: List[ValidModel] = []
    assert convert_result_page(ValidModel, dest, _page([["3", "c"]])) == 1
    assert dest == [ValidModel(id=3, name="c")]


def test_map_pages() -> None:
    records = map_pages(ValidModel, [_page([["1", "a"]]), _page([["2", "b"]])])
    assert [r.id for r in records] == [1, 2]
