"""
Worker pool — N threads draining the submission channel through a sink.

Per chain: one submit attempt. A failure is logged and dropped (no retry,
no requeue, no counter touched); a success is recorded in ProgressState.
An exception escaping the sink is treated as a failure of that chain only.
Workers exit once the channel is closed and drained, or aborted.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import UTC, datetime

import structlog
from railway import ErrorCode

from ct_submitter.channel import BoundedChannel
from ct_submitter.domain.models import AssembledChain
from ct_submitter.domain.ports import SubmissionSink
from ct_submitter.domain.progress import ProgressState

log = structlog.get_logger()

DEFAULT_WORKERS = 5


class WorkerPool:
    """Fixed-size pool of submitter threads sharing one sink and one ProgressState."""

    def __init__(
        self,
        sink: SubmissionSink,
        submissions: BoundedChannel[AssembledChain],
        progress: ProgressState,
        workers: int = DEFAULT_WORKERS,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be positive, got {workers}")
        self._sink = sink
        self._submissions = submissions
        self._progress = progress
        self._workers = workers
        self._clock = clock
        self._threads: list[threading.Thread] = []

    @property
    def size(self) -> int:
        return self._workers

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("worker pool already started")
        for idx in range(self._workers):
            t = threading.Thread(target=self._work, name=f"submitter-{idx}", daemon=True)
            self._threads.append(t)
            t.start()
        log.info("workers.started", workers=self._workers)

    def join(self) -> None:
        """Block until every worker has observed channel closure and returned."""
        for t in self._threads:
            t.join()
        log.info("workers.finished")

    def _work(self) -> None:
        for chain in self._submissions:
            try:
                self.submit_one(chain)
            except Exception as e:
                log.warning(
                    "worker.submission_failed",
                    sequence_id=chain.sequence_id,
                    code=ErrorCode.TECHNICAL_ERROR.value,
                    error=str(e),
                )

    def submit_one(self, chain: AssembledChain) -> bool:
        """Attempt one submission; returns True if it was recorded as submitted."""
        result = self._sink.submit(chain)
        if result.is_failure():
            failure = result.error()
            log.debug(
                "worker.submission_failed",
                sequence_id=chain.sequence_id,
                code=failure.code.value,
                error=failure.message,
            )
            return False

        outcome = result.value()
        self._progress.record_submission(
            chain.sequence_id,
            is_new=outcome.is_recent(self._clock()),
        )
        return True
