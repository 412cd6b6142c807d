"""
Domain models — immutable data structures for chains, certificates, and log responses.

These are pure value objects with no behavior beyond small derived views.
They represent what flows through the submission pipeline:

  ChainIdentity → (CertReport + raw bytes) → CertRecord → AssembledChain → SubmissionOutcome

All models are frozen dataclasses (immutable) so they can cross thread
boundaries through the channels without copying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

RECENT_WINDOW_MS = 60 * 60 * 1000


@dataclass(frozen=True, slots=True)
class ChainIdentity:
    """
    One row of the chains listing.

    `fingerprint` identifies the chain; `sequence_id` is the monotonic key the
    listing is ordered by, and the value reported as progress.
    """

    fingerprint: bytes = field(repr=False)
    sequence_id: int


@dataclass(frozen=True, slots=True)
class CertReport:
    """A distinct (certificate fingerprint, is_end_entity) pair associated with a chain."""

    fingerprint: bytes = field(repr=False)
    is_end_entity: bool


@dataclass(frozen=True, slots=True)
class CertRecord:
    """A certificate of a chain together with its raw DER encoding."""

    fingerprint: bytes = field(repr=False)
    raw: bytes = field(repr=False)
    is_end_entity: bool


@dataclass(frozen=True, slots=True)
class AssembledChain:
    """
    A chain ready for submission.

    `certs` holds the DER encodings, leaf certificate first, then the
    remaining certificates in the order they were retrieved.
    """

    identity: ChainIdentity
    certs: tuple[bytes, ...] = field(repr=False)

    @property
    def sequence_id(self) -> int:
        return self.identity.sequence_id


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    """
    The log's answer to an accepted add-chain call (a signed certificate timestamp).

    `timestamp` is milliseconds since the Unix epoch, as logs report it.
    """

    timestamp: int
    log_id: str | None = None
    signature: str | None = None

    def is_recent(self, now: datetime) -> bool:
        """True when the log timestamp falls within the hour before `now`."""
        return self.timestamp > int(now.timestamp() * 1000) - RECENT_WINDOW_MS
