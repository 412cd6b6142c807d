"""
PostgreSQL store adapter — read-only access to chains, reports, and certificates.

Adapter layer — implements the ChainStore port using psycopg (v3) with
parameterized queries.

Table mapping:
  chains(chain_fp, chain_id, valid)       → ChainIdentity (valid rows only)
  reports(chain_fp, cert_fp, is_end_entity) → CertReport (DISTINCT per chain)
  certs(cert_fp, raw_cert)                → raw DER bytes

One autocommit connection is opened lazily and shared; psycopg connections
are thread-safe, so the source thread and the assembly loop can both use it.
All exceptions are caught at this adapter boundary via Result.from_computation().

No ORM — raw parameterized SQL for maximum control and transparency.
"""

from __future__ import annotations

import threading
from typing import Any

import psycopg
import structlog
from railway import ErrorCode
from railway.result import Result

from ct_submitter.domain.models import CertReport, ChainIdentity

log = structlog.get_logger()

_SELECT_CHAINS = """
SELECT chain_fp, chain_id FROM chains
WHERE valid
ORDER BY chain_id ASC
LIMIT %s OFFSET %s
"""

_SELECT_REPORTS = """
SELECT DISTINCT cert_fp, is_end_entity FROM reports WHERE chain_fp = %s
"""

_SELECT_RAW_CERT = """
SELECT raw_cert FROM certs WHERE cert_fp = %s
"""


class PsycopgChainStore:
    """
    Read chains and certificates from PostgreSQL.

    Implements the ChainStore port.
    """

    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._conn: psycopg.Connection[Any] | None = None
        self._lock = threading.Lock()

    def fetch_chain_page(self, limit: int, offset: int) -> Result[list[ChainIdentity]]:
        """Return up to `limit` valid chains ordered by chain_id, skipping `offset` rows."""
        return Result.from_computation(
            lambda: self._select_chains(limit, offset),
            ErrorCode.STORE_ERROR,
            f"Failed to list chains at offset {offset}",
        )

    def fetch_cert_reports(self, chain_fingerprint: bytes) -> Result[list[CertReport]]:
        """Return the distinct (cert_fp, is_end_entity) pairs of one chain."""
        return Result.from_computation(
            lambda: self._select_reports(chain_fingerprint),
            ErrorCode.STORE_ERROR,
            "Failed to load chain reports",
        )

    def fetch_raw_certificate(self, cert_fingerprint: bytes) -> Result[bytes]:
        """
        Return the DER bytes of one certificate.

        A query failure is STORE_ERROR; a fingerprint with no certs row is
        VALIDATION_ERROR, since only the chain referencing it is affected.
        """
        return Result.from_computation(
            lambda: self._select_raw_certs(cert_fingerprint),
            ErrorCode.STORE_ERROR,
            "Failed to load raw certificate",
        ).flat_map(
            lambda rows: Result.success(rows[0])
            if rows
            else Result.failure(
                ErrorCode.VALIDATION_ERROR,
                f"certificate {cert_fingerprint.hex()} missing from store",
            )
        )

    def close(self) -> None:
        with self._lock:
            if self._conn is not None and not self._conn.closed:
                self._conn.close()
                log.debug("repository.closed")
            self._conn = None

    def _connection(self) -> psycopg.Connection[Any]:
        with self._lock:
            if self._conn is None or self._conn.closed:
                self._conn = psycopg.connect(self._dsn, autocommit=True)
                log.info("repository.connected")
            return self._conn

    def _select_chains(self, limit: int, offset: int) -> list[ChainIdentity]:
        rows = self._connection().execute(_SELECT_CHAINS, (limit, offset)).fetchall()
        return [ChainIdentity(fingerprint=bytes(fp), sequence_id=chain_id) for fp, chain_id in rows]

    def _select_reports(self, chain_fingerprint: bytes) -> list[CertReport]:
        rows = self._connection().execute(_SELECT_REPORTS, (chain_fingerprint,)).fetchall()
        return [
            CertReport(fingerprint=bytes(fp), is_end_entity=bool(end_entity))
            for fp, end_entity in rows
        ]

    def _select_raw_certs(self, cert_fingerprint: bytes) -> list[bytes]:
        rows = self._connection().execute(_SELECT_RAW_CERT, (cert_fingerprint,)).fetchall()
        return [bytes(raw) for (raw,) in rows]
