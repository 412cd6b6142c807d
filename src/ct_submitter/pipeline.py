"""
Pipeline — the orchestrator wiring source, assembly, and submission together.

  ChainSource ──batches──▶ assembly loop ──submissions──▶ WorkerPool ──▶ SubmissionSink
   (thread)                (caller thread)                (N threads)
                   ▲                               ▲
                   └──────── StatsReporter ────────┘  (read-only, own thread)

Normal completion: the source closes the batch channel, the assembly loop
drains it and closes the submission channel, workers drain that and return.

Fatal failure (store error from the source or from assembly): both channels
are aborted, queued submissions are discarded, in-flight submissions finish,
and the failure is returned.

Either way, the final progress (last submitted chain id) is recorded before
run() returns or raises.
"""

from __future__ import annotations

import threading

import structlog
from railway import ErrorCode
from railway.failure import FailureDescription
from railway.result import Result

from ct_submitter.assembler import ChainAssembler
from ct_submitter.channel import BoundedChannel
from ct_submitter.domain.models import AssembledChain
from ct_submitter.domain.progress import ProgressState
from ct_submitter.source import ChainBatch, ChainSource
from ct_submitter.stats import StatsReporter
from ct_submitter.workers import WorkerPool

log = structlog.get_logger()


class Orchestrator:
    """Owns the pipeline threads and the shutdown sequence."""

    def __init__(
        self,
        source: ChainSource,
        assembler: ChainAssembler,
        pool: WorkerPool,
        batches: BoundedChannel[ChainBatch],
        submissions: BoundedChannel[AssembledChain],
        progress: ProgressState,
        reporter: StatsReporter | None = None,
    ) -> None:
        self._source = source
        self._assembler = assembler
        self._pool = pool
        self._batches = batches
        self._submissions = submissions
        self._progress = progress
        self._reporter = reporter
        self._source_result: Result[int] | None = None

    def run(self) -> Result[int]:
        """
        Run the pipeline to completion or to the first fatal failure.

        Returns Result[int] with the number of successful submissions.
        """
        source_thread = threading.Thread(target=self._run_source, name="chain-source", daemon=True)
        try:
            if self._reporter is not None:
                self._reporter.start()
            self._pool.start()
            source_thread.start()

            assembled = self._assemble_all()
            if assembled.is_failure():
                # abort before joining: the source may be blocked on a full batch channel
                return self._abort(assembled.error(), source_thread)

            source_thread.join()
            source_result = (
                self._source_result
                if self._source_result is not None
                else Result.failure(
                    ErrorCode.TECHNICAL_ERROR, "chain source finished without a result"
                )
            )
            if source_result.is_failure():
                return self._abort(source_result.error(), source_thread)

            self._submissions.close()
            self._pool.join()
            return Result.success(self._progress.submitted_count)
        except BaseException:
            self._submissions.abort()
            self._batches.abort()
            raise
        finally:
            if self._reporter is not None:
                self._reporter.shutdown()
            self._record_final_progress()

    def _run_source(self) -> None:
        try:
            self._source_result = self._source.run()
        except Exception as e:
            log.error("source.crashed", error=str(e))
            self._batches.abort()
            self._source_result = Result.failure(
                ErrorCode.TECHNICAL_ERROR, f"Chain source crashed: {e}", e
            )

    def _assemble_all(self) -> Result[int]:
        """Assemble every identity, in batch order, onto the submission channel."""
        queued = 0
        skipped = 0
        for batch in self._batches:
            for identity in batch:
                result = self._assembler.assemble(identity)
                if result.is_failure():
                    failure = result.error()
                    if failure.is_fatal:
                        log.error(
                            "assembler.fatal",
                            sequence_id=identity.sequence_id,
                            failure=str(failure),
                        )
                        return Result.failure_from(failure)
                    skipped += 1
                    log.debug(
                        "assembler.chain_skipped",
                        sequence_id=identity.sequence_id,
                        reason=failure.message,
                    )
                    continue
                self._submissions.put(result.value())
                queued += 1

        log.info("pipeline.assembly_finished", queued=queued, skipped=skipped)
        return Result.success(queued)

    def _abort(self, failure: FailureDescription, source_thread: threading.Thread) -> Result[int]:
        dropped = self._submissions.abort()
        self._batches.abort()
        source_thread.join()
        self._pool.join()
        log.error("pipeline.aborted", failure=str(failure), dropped_submissions=dropped)
        return Result.failure_from(failure)

    def _record_final_progress(self) -> None:
        snapshot = self._progress.snapshot()
        log.info(
            "pipeline.final_progress",
            last_submitted_chain_id=snapshot.last_submitted_id,
            submitted=snapshot.submitted_count,
            new=snapshot.new_count,
        )
