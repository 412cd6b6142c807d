"""
Unit tests for domain models and progress accounting.

Verifies frozen dataclass behavior, derived properties, the "recent"
classification of log timestamps, and ProgressState's max-merge under
concurrent writers.
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta

import pytest

from ct_submitter.domain.models import AssembledChain, ChainIdentity, SubmissionOutcome
from ct_submitter.domain.progress import ProgressState

NOW = datetime(2026, 10, 17, 12, 0, 0, tzinfo=UTC)


def _ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class TestAssembledChain:
    """Verify AssembledChain value object behavior."""

    def test_exposes_sequence_id_and_leaf(self) -> None:
        """
        GIVEN an AssembledChain with certs (X, Y)
        WHEN its properties are read
        THEN the leaf X comes first and sequence_id comes from the identity.
        """
        chain = AssembledChain(
            identity=ChainIdentity(fingerprint=b"fp", sequence_id=7),
            certs=(b"X", b"Y"),
        )
        assert chain.certs[0] == b"X"
        assert chain.sequence_id == 7

    def test_frozen_prevents_mutation(self) -> None:
        """
        GIVEN a frozen ChainIdentity
        WHEN attempting to modify a field
        THEN FrozenInstanceError is raised.
        """
        identity = ChainIdentity(fingerprint=b"fp", sequence_id=1)
        with pytest.raises(AttributeError):
            identity.sequence_id = 2  # type: ignore[misc]

    def test_repr_hides_raw_bytes(self) -> None:
        chain = AssembledChain(
            identity=ChainIdentity(fingerprint=b"secret-fp", sequence_id=3),
            certs=(b"DER-BYTES",),
        )
        assert "DER-BYTES" not in repr(chain)
        assert "secret-fp" not in repr(chain)


class TestSubmissionOutcomeRecency:
    """A submission is new when the log timestamp (ms) is within the last hour."""

    def test_timestamp_within_hour_is_recent(self) -> None:
        outcome = SubmissionOutcome(timestamp=_ms(NOW - timedelta(minutes=5)))
        assert outcome.is_recent(NOW)

    def test_timestamp_older_than_hour_is_not_recent(self) -> None:
        outcome = SubmissionOutcome(timestamp=_ms(NOW - timedelta(hours=2)))
        assert not outcome.is_recent(NOW)

    def test_exact_boundary_is_not_recent(self) -> None:
        outcome = SubmissionOutcome(timestamp=_ms(NOW - timedelta(hours=1)))
        assert not outcome.is_recent(NOW)

    def test_timestamp_in_wrong_unit_does_not_raise(self) -> None:
        """
        GIVEN a timestamp in microseconds (far past any representable date as ms)
        WHEN recency is checked
        THEN it compares as integers instead of raising.
        """
        outcome = SubmissionOutcome(timestamp=_ms(NOW) * 1000)
        assert outcome.is_recent(NOW)


class TestProgressState:
    """Verify ProgressState counters and max-merge semantics."""

    def test_starts_empty(self) -> None:
        snapshot = ProgressState().snapshot()
        assert (snapshot.last_submitted_id, snapshot.submitted_count, snapshot.new_count) == (0, 0, 0)

    def test_record_increments_counts(self) -> None:
        progress = ProgressState()
        progress.record_submission(5, is_new=True)
        progress.record_submission(6, is_new=False)
        snapshot = progress.snapshot()
        assert snapshot.submitted_count == 2
        assert snapshot.new_count == 1
        assert snapshot.last_submitted_id == 6

    def test_out_of_order_completion_never_moves_backwards(self) -> None:
        """
        GIVEN chain 10 completes before chain 3
        WHEN both are recorded
        THEN last_submitted_id stays at 10.
        """
        progress = ProgressState()
        progress.record_submission(10)
        progress.record_submission(3)
        assert progress.last_submitted_id == 10

    def test_concurrent_writers_lose_no_updates(self) -> None:
        """
        GIVEN 8 threads each recording 500 submissions with interleaved ids
        WHEN they run concurrently
        THEN the count is exact and last_submitted_id is the global maximum.
        """
        progress = ProgressState()

        def record(start: int) -> None:
            for i in range(start, 4000, 8):
                progress.record_submission(i, is_new=i % 2 == 0)

        threads = [threading.Thread(target=record, args=(k,)) for k in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        snapshot = progress.snapshot()
        assert snapshot.submitted_count == 4000
        assert snapshot.new_count == 2000
        assert snapshot.last_submitted_id == 3999
