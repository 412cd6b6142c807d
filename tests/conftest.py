"""
Shared test fixtures and fake adapters for the ct-submitter test suite.

Provides an in-memory ChainStore that mirrors the PostgreSQL adapter's
contract (pages ordered by sequence id, distinct reports, raw bytes lookup)
and records every call, so pipeline tests run without a database.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field

import pytest
import structlog
from railway import ErrorCode
from railway.result import Result

from ct_submitter.domain.models import (
    AssembledChain,
    CertReport,
    ChainIdentity,
    SubmissionOutcome,
)


@dataclass
class StoredChain:
    """One chain in the fake store: identity plus (cert fp, is_end_entity, raw) rows."""

    identity: ChainIdentity
    certs: list[tuple[bytes, bool, bytes]] = field(default_factory=list)


class InMemoryChainStore:
    """ChainStore fake backed by dicts; records page requests as (limit, offset)."""

    def __init__(self, chains: list[StoredChain] | None = None) -> None:
        self._chains = sorted(chains or [], key=lambda c: c.identity.sequence_id)
        self._reports: dict[bytes, list[CertReport]] = {}
        self._raw: dict[bytes, bytes] = {}
        for chain in self._chains:
            self._reports[chain.identity.fingerprint] = [
                CertReport(fingerprint=fp, is_end_entity=ee) for fp, ee, _ in chain.certs
            ]
            for fp, _, raw in chain.certs:
                self._raw[fp] = raw
        self.page_requests: list[tuple[int, int]] = []
        self.fail_page_at_offset: int | None = None
        self.fail_reports_for: set[bytes] = set()
        self.closed = False
        self._lock = threading.Lock()

    def fetch_chain_page(self, limit: int, offset: int) -> Result[list[ChainIdentity]]:
        with self._lock:
            self.page_requests.append((limit, offset))
        if self.fail_page_at_offset is not None and offset >= self.fail_page_at_offset:
            return Result.failure(ErrorCode.STORE_ERROR, f"Failed to list chains at offset {offset}")
        return Result.success([c.identity for c in self._chains[offset : offset + limit]])

    def fetch_cert_reports(self, chain_fingerprint: bytes) -> Result[list[CertReport]]:
        if chain_fingerprint in self.fail_reports_for:
            return Result.failure(ErrorCode.STORE_ERROR, "Failed to load chain reports")
        return Result.success(list(self._reports.get(chain_fingerprint, [])))

    def fetch_raw_certificate(self, cert_fingerprint: bytes) -> Result[bytes]:
        raw = self._raw.get(cert_fingerprint)
        if raw is None:
            return Result.failure(ErrorCode.VALIDATION_ERROR, "certificate missing from store")
        return Result.success(raw)

    def close(self) -> None:
        self.closed = True


class RecordingSink:
    """SubmissionSink fake: records chains, fails the sequence ids it is told to."""

    def __init__(self, failing_ids: set[int] | None = None, timestamp: int = 0) -> None:
        self.failing_ids = failing_ids or set()
        self.timestamp = timestamp
        self.submitted: list[AssembledChain] = []
        self.closed = False
        self._lock = threading.Lock()

    def submit(self, chain: AssembledChain) -> Result[SubmissionOutcome]:
        with self._lock:
            self.submitted.append(chain)
        if chain.sequence_id in self.failing_ids:
            return Result.failure(ErrorCode.PROTOCOL_ERROR, "non-200 status code 400, body: rejected")
        return Result.success(SubmissionOutcome(timestamp=self.timestamp))

    def close(self) -> None:
        self.closed = True


def make_chain(sequence_id: int, n_intermediates: int = 1, with_leaf: bool = True) -> StoredChain:
    """Build a StoredChain whose raw bytes encode the sequence id for easy assertions."""
    fp = f"chain-{sequence_id}".encode()
    certs: list[tuple[bytes, bool, bytes]] = []
    if with_leaf:
        certs.append((f"leaf-{sequence_id}".encode(), True, f"LEAF{sequence_id}".encode()))
    for i in range(n_intermediates):
        certs.append((f"ca-{sequence_id}-{i}".encode(), False, f"CA{sequence_id}.{i}".encode()))
    return StoredChain(identity=ChainIdentity(fingerprint=fp, sequence_id=sequence_id), certs=certs)


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo any structlog configuration a test applied."""
    yield
    structlog.reset_defaults()
