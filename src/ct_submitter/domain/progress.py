"""
Progress accounting shared by the submission workers.

ProgressState is the only state mutated by more than one thread. Every
mutation and every read happens under a single lock, so a snapshot is always
internally consistent.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Point-in-time copy of the progress counters."""

    last_submitted_id: int
    submitted_count: int
    new_count: int


class ProgressState:
    """
    Thread-safe submission counters.

    `last_submitted_id` is max-merged because workers finish out of order:
    a slow submission for an early chain must not move progress backwards.
    """

    def __init__(self, last_submitted_id: int = 0) -> None:
        self._lock = threading.Lock()
        self._last_submitted_id = last_submitted_id
        self._submitted_count = 0
        self._new_count = 0

    def record_submission(self, sequence_id: int, is_new: bool = False) -> None:
        """Account for one successful submission."""
        with self._lock:
            if sequence_id > self._last_submitted_id:
                self._last_submitted_id = sequence_id
            self._submitted_count += 1
            if is_new:
                self._new_count += 1

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(
                last_submitted_id=self._last_submitted_id,
                submitted_count=self._submitted_count,
                new_count=self._new_count,
            )

    @property
    def last_submitted_id(self) -> int:
        with self._lock:
            return self._last_submitted_id

    @property
    def submitted_count(self) -> int:
        with self._lock:
            return self._submitted_count
