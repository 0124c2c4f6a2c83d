# Athena Records
# File: client.py
# Version: v1
"""Async client for the Amazon Athena JSON API.

Implements the query lifecycle that feeds the mapping engine:

- start_query_execution() via StartQueryExecution
- get_query_execution() / wait_for_query() via GetQueryExecution
- get_query_results_page() via GetQueryResults (one page per call)
- stop_query_execution() via StopQueryExecution

and, on top of those:

- iter_query_pages() for raw pages (header row already stripped)
- get_query_results() into a list of records
- get_query_results_into_queue() streaming records into a queue.Queue
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Dict, List, Optional, Type, TypeVar

import httpx
from httpx import HTTPStatusError, RequestError

from .auth import SigV4Auth
from .config import AthenaConfig
from .errors import AthenaServiceError, InvalidDestinationShapeError, QueryExecutionError
from .mapper import RecordMapper
from .models import QueryExecutionStatus, ResultPage
from .sinks import QueueSink, make_sink

logger = logging.getLogger(__name__)

T = TypeVar("T")

JSON_CONTENT_TYPE = "application/x-amz-json-1.1"
TARGET_PREFIX = "AmazonAthena"


@dataclass
class AthenaClient:
    """Wrapper around the Athena query execution APIs."""

    config: AthenaConfig
    auth: Optional[httpx.Auth] = None

    # Injected by tests (httpx.MockTransport); None means real network.
    transport: Optional[httpx.AsyncBaseTransport] = None

    def __post_init__(self) -> None:
        if self.auth is None:
            self.auth = SigV4Auth(self.config)

    # ------------------------------------------------------------------
    # Basic health
    # ------------------------------------------------------------------

    async def ping(self) -> bool:
        """Lightweight health check.

        Only checks that a region (or explicit endpoint) and a workgroup are
        configured; no request is sent.
        """
        return bool((self.config.region or self.config.endpoint_url) and self.config.workgroup)

    # ------------------------------------------------------------------
    # Raw API calls
    # ------------------------------------------------------------------

    async def _call(self, action: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.config.region and not self.config.endpoint_url:
            raise AthenaServiceError(
                "ATHENA_REGION is not set. "
                f"Please configure it before calling {action}."
            )

        url = f"{self.config.base_url}/"
        headers = {
            "Content-Type": JSON_CONTENT_TYPE,
            "X-Amz-Target": f"{TARGET_PREFIX}.{action}",
            "Accept": "application/json",
        }
        body = json.dumps(payload).encode("utf-8")

        async with httpx.AsyncClient(
            timeout=self.config.http_timeout_seconds,
            verify=self.config.verify_tls,
            auth=self.auth,
            transport=self.transport,
        ) as http_client:
            try:
                response = await http_client.post(url, content=body, headers=headers)
            except RequestError as exc:
                raise AthenaServiceError(
                    f"Error calling Athena {action} at '{url}': {exc}"
                ) from exc

            try:
                response.raise_for_status()
            except HTTPStatusError as exc:
                status = response.status_code
                body_preview = response.text[:500]
                raise AthenaServiceError(
                    f"Athena {action} failed (HTTP {status}). "
                    f"Response snippet: {body_preview}",
                    status_code=status,
                ) from exc

        data = response.json()
        if not isinstance(data, dict):
            raise AthenaServiceError(
                f"Unexpected response from Athena {action}: "
                f"expected JSON object, got {type(data).__name__}."
            )
        return data

    async def start_query_execution(self, sql: str) -> str:
        """Submit ``sql`` and return the query execution id."""
        context: Dict[str, Any] = {"Catalog": self.config.catalog}
        if self.config.database:
            context["Database"] = self.config.database

        payload: Dict[str, Any] = {
            "QueryString": sql,
            "WorkGroup": self.config.workgroup,
            "QueryExecutionContext": context,
            "ClientRequestToken": str(uuid.uuid4()),
        }
        if self.config.output_location:
            payload["ResultConfiguration"] = {"OutputLocation": self.config.output_location}

        data = await self._call("StartQueryExecution", payload)
        execution_id = data.get("QueryExecutionId")
        if not execution_id:
            raise AthenaServiceError(
                "StartQueryExecution response did not contain 'QueryExecutionId'"
            )

        logger.info("Started query execution %s", execution_id)
        return str(execution_id)

    async def get_query_execution(self, execution_id: str) -> QueryExecutionStatus:
        data = await self._call("GetQueryExecution", {"QueryExecutionId": execution_id})
        return QueryExecutionStatus.from_api(execution_id, data)

    async def get_query_results_page(
        self,
        execution_id: str,
        next_token: Optional[str] = None,
    ) -> ResultPage:
        """Fetch one page of results, at most ``config.max_page_size`` rows."""
        payload: Dict[str, Any] = {
            "QueryExecutionId": execution_id,
            "MaxResults": self.config.max_page_size,
        }
        if next_token:
            payload["NextToken"] = next_token

        data = await self._call("GetQueryResults", payload)
        return ResultPage.from_api(data)

    async def stop_query_execution(self, execution_id: str) -> None:
        await self._call("StopQueryExecution", {"QueryExecutionId": execution_id})
        logger.info("Requested stop of query execution %s", execution_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def wait_for_query(self, execution_id: str) -> QueryExecutionStatus:
        """Poll until the execution leaves QUEUED / RUNNING."""
        while True:
            status = await self.get_query_execution(execution_id)
            if not status.is_pending:
                logger.info(
                    "Stopped awaiting query results for %s, state: %s",
                    execution_id,
                    status.state,
                )
                return status

            logger.debug(
                "Still awaiting query results for %s, state: %s, wait: %.2fs",
                execution_id,
                status.state,
                self.config.poll_interval_seconds,
            )
            await asyncio.sleep(self.config.poll_interval_seconds)

    async def _iter_pages(self, execution_id: str) -> AsyncIterator[ResultPage]:
        status = await self.wait_for_query(execution_id)
        if not status.succeeded:
            raise QueryExecutionError(execution_id, status.state, status.reason)

        next_token: Optional[str] = None
        page_number = 1
        while True:
            page = await self.get_query_results_page(execution_id, next_token)

            # The first row of the first page echoes the column names.
            if page_number == 1 and page.rows:
                page = page.without_header()

            yield page

            next_token = page.next_token
            if not next_token:
                logger.info("Finished fetching results for %s (%d pages)", execution_id, page_number)
                return

            page_number += 1
            logger.debug("Fetching page %d of %s", page_number, execution_id)

    async def iter_query_pages(self, sql: str) -> AsyncIterator[ResultPage]:
        """Run ``sql`` and yield its result pages in order.

        Raises QueryExecutionError if the query does not succeed.
        """
        execution_id = await self.start_query_execution(sql)
        async for page in self._iter_pages(execution_id):
            yield page

    async def _stop_after_cancel(self, execution_id: str) -> None:
        try:
            await self.stop_query_execution(execution_id)
        except AthenaServiceError as exc:
            logger.warning("Could not stop query execution %s: %s", execution_id, exc)

    async def _execute(self, sql: str, mapper: RecordMapper[Any]) -> int:
        execution_id: Optional[str] = None
        total = 0
        try:
            execution_id = await self.start_query_execution(sql)
            async for page in self._iter_pages(execution_id):
                # Queue sinks block on put; keep that off the event loop.
                total += await asyncio.to_thread(mapper.append_page, page)
        except (asyncio.CancelledError, asyncio.TimeoutError):
            if execution_id is not None:
                await self._stop_after_cancel(execution_id)
            raise
        return total

    async def _with_timeout(self, awaitable: Awaitable[int]) -> int:
        if self.config.query_timeout_seconds > 0:
            return await asyncio.wait_for(awaitable, timeout=self.config.query_timeout_seconds)
        return await awaitable

    async def get_query_results(
        self,
        sql: str,
        record_type: Type[T],
        dest: Optional[List[T]] = None,
    ) -> List[T]:
        """Run ``sql`` and return every row converted to ``record_type``.

        The record type is validated before the query is submitted. Records
        are appended to ``dest`` when given, else to a new list.
        """
        records: List[T] = [] if dest is None else dest
        mapper = RecordMapper(record_type, records)
        await self._with_timeout(self._execute(sql, mapper))
        return records

    async def get_query_results_into_queue(
        self,
        sql: str,
        record_type: Type[T],
        dest_queue: Any,
    ) -> int:
        """Run ``sql`` and put each converted record onto ``dest_queue``.

        The queue always receives END_OF_RESULTS once this returns or raises,
        so consumers using :func:`athena_records.sinks.iter_queue` finish.
        Returns the number of records delivered.
        """
        sink = make_sink(dest_queue)
        if not isinstance(sink, QueueSink):
            raise InvalidDestinationShapeError(
                f"invalid destination: expected a queue.Queue, got {type(dest_queue).__name__}",
                destination=dest_queue,
            )

        mapper: Optional[RecordMapper[T]] = None
        try:
            mapper = RecordMapper(record_type, sink)
            return await self._with_timeout(self._execute(sql, mapper))
        finally:
            await asyncio.to_thread(mapper.close if mapper is not None else sink.close)
