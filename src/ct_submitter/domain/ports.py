"""
Ports — Protocol-based interfaces for infrastructure adapters.

These define WHAT the pipeline needs (contracts) without specifying
HOW it's done (implementation). Following hexagonal architecture:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing) so adapters satisfy
the contract simply by implementing the methods — no inheritance.
Every method returns a Result; the ErrorCode of a failure decides
whether the pipeline skips the item or aborts.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from railway.result import Result

from ct_submitter.domain.models import (
    AssembledChain,
    CertReport,
    ChainIdentity,
    SubmissionOutcome,
)


@runtime_checkable
class ChainStore(Protocol):
    """
    Port: read-only access to the chain/certificate store.

    Three lookups:
      1. a page of valid chains ordered by sequence id (LIMIT/OFFSET)
      2. the distinct certificate reports of one chain
      3. the raw DER bytes of one certificate

    Query failures are Failure(STORE_ERROR). A certificate fingerprint with
    no stored bytes is Failure(VALIDATION_ERROR).
    """

    def fetch_chain_page(self, limit: int, offset: int) -> Result[list[ChainIdentity]]: ...

    def fetch_cert_reports(self, chain_fingerprint: bytes) -> Result[list[CertReport]]: ...

    def fetch_raw_certificate(self, cert_fingerprint: bytes) -> Result[bytes]: ...


@runtime_checkable
class SubmissionSink(Protocol):
    """
    Port: submit one assembled chain to a log.

    Returns Result[SubmissionOutcome]. Failures are TRANSPORT_ERROR
    (network) or PROTOCOL_ERROR (unexpected response); neither is retried.
    """

    def submit(self, chain: AssembledChain) -> Result[SubmissionOutcome]: ...
