"""
Chain assembler — rebuilds a chain's certificate sequence from the store.

Domain layer — pure ordering logic over the ChainStore port:

  fetch_cert_reports(chain)
    → fetch_raw_certificate(cert) for each report
      → partition into leaf / others
        → AssembledChain(leaf, *others)

Failures short-circuit through the railway. A chain without an end-entity
certificate is a VALIDATION_ERROR (the caller skips it); store failures keep
their STORE_ERROR code (the caller aborts).
"""

from __future__ import annotations

import structlog
from railway import ErrorCode
from railway.result import Result

from ct_submitter.domain.models import AssembledChain, CertRecord, CertReport, ChainIdentity
from ct_submitter.domain.ports import ChainStore

log = structlog.get_logger()


class ChainAssembler:
    """Turns a ChainIdentity into an AssembledChain, leaf first."""

    def __init__(self, store: ChainStore) -> None:
        self._store = store

    def assemble(self, identity: ChainIdentity) -> Result[AssembledChain]:
        return (
            self._store.fetch_cert_reports(identity.fingerprint)
            .flat_map(self._fetch_records)
            .flat_map(lambda records: order_chain(identity, records))
        )

    def _fetch_records(self, reports: list[CertReport]) -> Result[list[CertRecord]]:
        return Result.all_of(
            self._store.fetch_raw_certificate(report.fingerprint).map(
                lambda raw, report=report: CertRecord(
                    fingerprint=report.fingerprint,
                    raw=raw,
                    is_end_entity=report.is_end_entity,
                )
            )
            for report in reports
        )


def order_chain(identity: ChainIdentity, records: list[CertRecord]) -> Result[AssembledChain]:
    """
    Put the end-entity certificate first, keeping the others in retrieval order.

    With several end-entity records the last one seen is used as the leaf and
    the earlier ones are dropped from the chain.
    """
    leaves = [r for r in records if r.is_end_entity]
    if not leaves:
        return Result.failure(ErrorCode.VALIDATION_ERROR, "chain without end-entity")
    if len(leaves) > 1:
        log.warning(
            "assembler.multiple_leaves",
            sequence_id=identity.sequence_id,
            leaves=len(leaves),
        )
    others = tuple(r.raw for r in records if not r.is_end_entity)
    return Result.success(AssembledChain(identity=identity, certs=(leaves[-1].raw, *others)))
