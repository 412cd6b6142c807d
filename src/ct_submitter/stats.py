"""
Stats reporter — periodic, read-only snapshot of pipeline progress.

Infrastructure layer — uses APScheduler (3.x) BackgroundScheduler with an
IntervalTrigger, so ticks run on the scheduler's own thread and never hold
up the pipeline. Each tick reads the progress counters and the depth of
both channels, derives the submission rate since the previous tick, and
logs one `stats.snapshot` event.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ct_submitter.channel import BoundedChannel
from ct_submitter.domain.progress import ProgressState

log = structlog.get_logger()

DEFAULT_INTERVAL_SECONDS = 15.0


@dataclass(frozen=True, slots=True)
class StatsSnapshot:
    pending_batches: int
    pending_chains: int
    pending_submissions: int
    submitted: int
    new: int
    rate_per_second: float
    last_submitted_id: int


class StatsReporter:
    """Observes counters and channel depths on a fixed interval."""

    def __init__(
        self,
        progress: ProgressState,
        batches: BoundedChannel[Any],
        submissions: BoundedChannel[Any],
        page_size: int,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._progress = progress
        self._batches = batches
        self._submissions = submissions
        self._page_size = page_size
        self._interval_seconds = interval_seconds
        self._monotonic = monotonic
        self._tick_lock = threading.Lock()
        self._last_count = 0
        self._last_tick = monotonic()
        self._scheduler: BackgroundScheduler | None = None

    def tick(self) -> StatsSnapshot:
        """Take and log one snapshot. Rate is the submitted delta over elapsed seconds."""
        with self._tick_lock:
            now = self._monotonic()
            progress = self._progress.snapshot()
            elapsed = now - self._last_tick
            delta = progress.submitted_count - self._last_count
            rate = delta / elapsed if elapsed > 0 else 0.0
            self._last_count = progress.submitted_count
            self._last_tick = now

        pending_batches = self._batches.qsize()
        snapshot = StatsSnapshot(
            pending_batches=pending_batches,
            pending_chains=pending_batches * self._page_size,
            pending_submissions=self._submissions.qsize(),
            submitted=progress.submitted_count,
            new=progress.new_count,
            rate_per_second=round(rate, 2),
            last_submitted_id=progress.last_submitted_id,
        )
        log.info(
            "stats.snapshot",
            pending_batches=snapshot.pending_batches,
            pending_chains=snapshot.pending_chains,
            pending_submissions=snapshot.pending_submissions,
            completed_submissions=snapshot.submitted,
            new_submissions=snapshot.new,
            rate_per_second=snapshot.rate_per_second,
            last_submitted_chain_id=snapshot.last_submitted_id,
        )
        return snapshot

    def start(self) -> None:
        """Start ticking every interval on a background thread."""
        if self._scheduler is not None:
            return
        scheduler = BackgroundScheduler(daemon=True)
        scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=self._interval_seconds),
            id="ct_submitter_stats",
            name="Submission stats",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        with self._tick_lock:
            self._last_tick = self._monotonic()
            self._last_count = self._progress.submitted_count
        scheduler.start()
        self._scheduler = scheduler
        log.debug("stats.started", interval_seconds=self._interval_seconds)

    def shutdown(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        log.debug("stats.stopped")
