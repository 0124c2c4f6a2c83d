# Athena Records
# File: models.py
# Version: v1

"""Wire-level models for Athena query executions and result pages."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

# Query execution states reported by GetQueryExecution.
STATE_QUEUED = "QUEUED"
STATE_RUNNING = "RUNNING"
STATE_SUCCEEDED = "SUCCEEDED"
STATE_FAILED = "FAILED"
STATE_CANCELLED = "CANCELLED"

PENDING_STATES = frozenset({STATE_QUEUED, STATE_RUNNING})

Row = List[Optional[str]]


@dataclass(frozen=True)
class ColumnInfo:
    """One entry of ``ResultSetMetadata.ColumnInfo``.

    Name and type are optional because that is how the service payload is
    typed; the result schema resolver rejects missing values.
    """

    name: Optional[str]
    type: Optional[str]
    nullable: Optional[str] = None
    label: Optional[str] = None

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "ColumnInfo":
        return cls(
            name=item.get("Name"),
            type=item.get("Type"),
            nullable=item.get("Nullable"),
            label=item.get("Label"),
        )


@dataclass
class ResultPage:
    """One page of GetQueryResults output."""

    columns: List[ColumnInfo]
    rows: List[Row]
    next_token: Optional[str] = None

    # Raw JSON payload from the API, for debugging / advanced use.
    raw: Optional[Dict[str, Any]] = field(default=None, repr=False)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ResultPage":
        result_set = data.get("ResultSet") or {}
        metadata = result_set.get("ResultSetMetadata") or {}

        columns = [
            ColumnInfo.from_api(item)
            for item in metadata.get("ColumnInfo") or []
            if isinstance(item, dict)
        ]

        rows: List[Row] = []
        for raw_row in result_set.get("Rows") or []:
            if not isinstance(raw_row, dict):
                continue
            cells = raw_row.get("Data") or []
            # A datum without VarCharValue is a SQL NULL.
            rows.append([cell.get("VarCharValue") for cell in cells])

        return cls(
            columns=columns,
            rows=rows,
            next_token=data.get("NextToken"),
            raw=data,
        )

    def without_header(self) -> "ResultPage":
        """Return a copy with the first row (echoed column names) dropped."""
        return replace(self, rows=self.rows[1:])


@dataclass
class QueryExecutionStatus:
    """State of a query execution as reported by GetQueryExecution."""

    execution_id: str
    state: str
    reason: Optional[str] = None

    # Extra metadata, e.g. data scanned and engine timings.
    statistics: Optional[Dict[str, Any]] = None

    @property
    def is_pending(self) -> bool:
        return self.state in PENDING_STATES

    @property
    def succeeded(self) -> bool:
        return self.state == STATE_SUCCEEDED

    @classmethod
    def from_api(cls, execution_id: str, data: Dict[str, Any]) -> "QueryExecutionStatus":
        execution = data.get("QueryExecution") or {}
        status = execution.get("Status") or {}
        return cls(
            execution_id=execution.get("QueryExecutionId") or execution_id,
            state=str(status.get("State") or ""),
            reason=status.get("StateChangeReason"),
            statistics=execution.get("Statistics"),
        )
