# Athena Records
# File: sinks.py
# Version: v1

"""Destinations that converted records are delivered to.

Two kinds are supported:

- ``ListSink`` appends to a caller-owned list (buffered mode).
- ``QueueSink`` puts onto a caller-owned ``queue.Queue`` (streaming mode).
  ``put`` blocks while a bounded queue is full, so a slow consumer throttles
  the producer. ``close()`` enqueues ``END_OF_RESULTS``; consumers can use
  :func:`iter_queue` to drain until that marker.
"""

from __future__ import annotations

import queue
from typing import Any, Iterator, List, Optional, Sequence


class _EndOfResults:
    def __repr__(self) -> str:
        return "END_OF_RESULTS"


END_OF_RESULTS: Any = _EndOfResults()


class RecordSink:
    """Base class for record destinations."""

    kind: str = "sink"

    def extend(self, records: Sequence[Any]) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Signal that no more records will be delivered."""


class ListSink(RecordSink):
    kind = "list"

    def __init__(self, target: List[Any]) -> None:
        self.target = target

    def extend(self, records: Sequence[Any]) -> None:
        self.target.extend(records)


class QueueSink(RecordSink):
    kind = "queue"

    def __init__(self, target: "queue.Queue[Any]", put_timeout: Optional[float] = None) -> None:
        self.target = target
        self.put_timeout = put_timeout
        self._closed = False

    def extend(self, records: Sequence[Any]) -> None:
        for record in records:
            self.target.put(record, timeout=self.put_timeout)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.target.put(END_OF_RESULTS, timeout=self.put_timeout)

    @property
    def closed(self) -> bool:
        return self._closed


def make_sink(destination: Any) -> Optional[RecordSink]:
    """Wrap a destination in the matching sink, or return None if unsupported."""
    if isinstance(destination, RecordSink):
        return destination
    if isinstance(destination, list):
        return ListSink(destination)
    if isinstance(destination, queue.Queue):
        return QueueSink(destination)
    return None


def iter_queue(source: "queue.Queue[Any]", timeout: Optional[float] = None) -> Iterator[Any]:
    """Yield records from ``source`` until END_OF_RESULTS is received."""
    while True:
        item = source.get(timeout=timeout)
        if item is END_OF_RESULTS:
            return
        yield item
