# Athena Records
# File: mock.py
# Version: v1

"""In-process stand-in for AthenaClient.

Activated when ATHENA_MOCK_MODE is truthy, and used by the test-suite. It
answers the four raw API calls from canned tables and behaves like the
real service where it matters to the mapper:

- the first page starts with a header row echoing the column names;
- pages hold at most ``config.max_page_size`` rows, header included;
- executions can stay RUNNING for a few polls, or end FAILED / CANCELLED.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .client import AthenaClient
from .config import AthenaConfig
from .errors import AthenaServiceError
from .models import (
    STATE_CANCELLED,
    STATE_FAILED,
    STATE_QUEUED,
    STATE_RUNNING,
    STATE_SUCCEEDED,
    ColumnInfo,
    QueryExecutionStatus,
    ResultPage,
    Row,
)


@dataclass
class MockTable:
    """Canned result of one SQL statement."""

    columns: List[Tuple[str, str]]
    rows: List[Row] = field(default_factory=list)
    state: str = STATE_SUCCEEDED
    reason: Optional[str] = None

    # Number of GetQueryExecution polls answered with QUEUED/RUNNING first.
    pending_polls: int = 0


@dataclass
class _MockExecution:
    table: MockTable
    polls: int = 0
    stopped: bool = False


def default_tables() -> Dict[str, MockTable]:
    return {
        "SELECT * FROM computers": MockTable(
            columns=[
                ("id", "integer"),
                ("name", "varchar"),
                ("source_computers_count", "bigint"),
                ("source_computer_ids", "array"),
                ("last_seen", "timestamp"),
                ("first_seen", "date"),
                ("is_active", "boolean"),
            ],
            rows=[
                ["1", "build-01", "2", "[ext-1, ext-2]", "2012-10-31 08:11:22.512", "2021-12-31", "true"],
                ["2", "build-02", "1", "[ext-3]", "2012-10-31 09:00:00.000", "2021-12-30", "false"],
                ["3", "laptop-7", "0", "[]", None, None, "true"],
            ],
        ),
    }


class MockAthenaClient(AthenaClient):
    """AthenaClient whose raw API calls are served from memory."""

    def __init__(
        self,
        config: Optional[AthenaConfig] = None,
        tables: Optional[Dict[str, MockTable]] = None,
    ) -> None:
        super().__init__(config=config or AthenaConfig.from_env())
        self.tables = default_tables() if tables is None else tables
        self.executions: Dict[str, _MockExecution] = {}
        self.started: List[str] = []
        self.stopped: List[str] = []
        self.page_requests: List[Tuple[str, Optional[str]]] = []
        self._ids = itertools.count(1)

    def add_table(self, sql: str, table: MockTable) -> None:
        self.tables[sql.strip()] = table

    async def ping(self) -> bool:
        return True

    def _execution(self, execution_id: str) -> _MockExecution:
        execution = self.executions.get(execution_id)
        if execution is None:
            raise AthenaServiceError(
                f"Athena GetQueryExecution failed (HTTP 400). "
                f"Response snippet: QueryExecution {execution_id} was not found",
                status_code=400,
            )
        return execution

    async def start_query_execution(self, sql: str) -> str:
        execution_id = f"mock-{next(self._ids)}"
        table = self.tables.get(sql.strip())
        if table is None:
            table = MockTable(
                columns=[],
                state=STATE_FAILED,
                reason=f"Table or statement not known to mock mode: {sql.strip()[:100]}",
            )
        self.executions[execution_id] = _MockExecution(table=table)
        self.started.append(sql)
        return execution_id

    async def get_query_execution(self, execution_id: str) -> QueryExecutionStatus:
        execution = self._execution(execution_id)
        if execution.stopped:
            return QueryExecutionStatus(execution_id, STATE_CANCELLED, "Query was cancelled")

        execution.polls += 1
        if execution.polls <= execution.table.pending_polls:
            state = STATE_QUEUED if execution.polls == 1 else STATE_RUNNING
            return QueryExecutionStatus(execution_id, state)

        return QueryExecutionStatus(execution_id, execution.table.state, execution.table.reason)

    async def get_query_results_page(
        self,
        execution_id: str,
        next_token: Optional[str] = None,
    ) -> ResultPage:
        execution = self._execution(execution_id)
        self.page_requests.append((execution_id, next_token))

        table = execution.table
        header: Row = [name for name, _ in table.columns]
        all_rows: Sequence[Row] = [header, *table.rows]

        offset = int(next_token) if next_token else 0
        end = offset + self.config.max_page_size
        rows = [list(r) for r in all_rows[offset:end]]

        return ResultPage(
            columns=[ColumnInfo(name=name, type=type_tag) for name, type_tag in table.columns],
            rows=rows,
            next_token=str(end) if end < len(all_rows) else None,
        )

    async def stop_query_execution(self, execution_id: str) -> None:
        self._execution(execution_id).stopped = True
        self.stopped.append(execution_id)
