"""
Bounded, closable FIFO channel for handing work between pipeline threads.

Producers block while the channel is full (backpressure, never drops);
consumers block while it is empty. Closing lets consumers drain what is
left and then stop; aborting also discards the pending items.

    for batch in batches:        # ends once closed and drained
        ...
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised by put() on a closed channel, and by get() once closed and drained."""


class BoundedChannel(Generic[T]):
    """Thread-safe bounded FIFO guarded by one lock and two conditions."""

    def __init__(self, maxsize: int) -> None:
        if maxsize < 1:
            raise ValueError(f"maxsize must be positive, got {maxsize}")
        self._maxsize = maxsize
        self._items: deque[T] = deque()
        self._closed = False
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)

    @property
    def maxsize(self) -> int:
        return self._maxsize

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def qsize(self) -> int:
        with self._lock:
            return len(self._items)

    def put(self, item: T, timeout: float | None = None) -> None:
        """
        Append an item, blocking while the channel is full.

        Raises ChannelClosed if the channel is (or becomes) closed, and
        TimeoutError if `timeout` elapses first.
        """
        with self._not_full:
            if not self._not_full.wait_for(
                lambda: self._closed or len(self._items) < self._maxsize, timeout
            ):
                raise TimeoutError("channel stayed full")
            if self._closed:
                raise ChannelClosed("put on closed channel")
            self._items.append(item)
            self._not_empty.notify()

    def get(self, timeout: float | None = None) -> T:
        """
        Remove and return the oldest item, blocking while the channel is empty.

        Raises ChannelClosed once the channel is closed and drained, and
        TimeoutError if `timeout` elapses first.
        """
        with self._not_empty:
            if not self._not_empty.wait_for(lambda: self._closed or self._items, timeout):
                raise TimeoutError("channel stayed empty")
            if not self._items:
                raise ChannelClosed("channel closed and drained")
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def close(self) -> None:
        """Refuse further puts; consumers drain the remaining items."""
        with self._lock:
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

    def abort(self) -> int:
        """Close and discard pending items. Returns how many were discarded."""
        with self._lock:
            self._closed = True
            dropped = len(self._items)
            self._items.clear()
            self._not_empty.notify_all()
            self._not_full.notify_all()
            return dropped

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except ChannelClosed:
                return
