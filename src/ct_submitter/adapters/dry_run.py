"""
Dry-run adapter — a SubmissionSink that never touches the network.

Each submit sleeps for a fixed delay to emulate log latency under load and
then reports success with a timestamp taken from the local clock, so dry-run
submissions always count as new.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime

from railway.result import Result

from ct_submitter.domain.models import AssembledChain, SubmissionOutcome

DEFAULT_DELAY_SECONDS = 0.5
DRY_RUN_LOG_ID = "dry-run"


class DryRunSink:
    """Implements the SubmissionSink port with simulated latency."""

    def __init__(
        self,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._delay_seconds = delay_seconds
        self._sleep = sleep
        self._clock = clock

    def submit(self, chain: AssembledChain) -> Result[SubmissionOutcome]:
        if self._delay_seconds > 0:
            self._sleep(self._delay_seconds)
        timestamp = int(self._clock().timestamp() * 1000)
        return Result.success(SubmissionOutcome(timestamp=timestamp, log_id=DRY_RUN_LOG_ID))

    def close(self) -> None:
        """Nothing to release; present so both sinks close the same way."""
