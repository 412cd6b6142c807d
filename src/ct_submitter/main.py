"""
Application entry point — wires dependencies and runs the submission pipeline.

Composition root: creates concrete adapters, channels, and pipeline stages,
injects them into the Orchestrator, and runs it once.

This is the ONLY place where concrete classes are instantiated.
Everything else depends on Protocol interfaces.

Responsibilities:
  1. Load and validate configuration (environment, .env, command-line flags)
  2. Configure structlog
  3. Create concrete adapters (PostgreSQL store + live or dry-run sink)
  4. Build channels, progress state, and pipeline stages
  5. Run the Orchestrator inside a LoggingExecutionContext
  6. Exit non-zero on a fatal failure
"""

from __future__ import annotations

from typing import TypeAlias

import logging
import signal
import sys

import structlog
from railway import LoggingExecutionContext

from ct_submitter import __version__
from ct_submitter.adapters.dry_run import DryRunSink
from ct_submitter.adapters.http_client import HttpLogSink
from ct_submitter.adapters.repository import PsycopgChainStore
from ct_submitter.assembler import ChainAssembler
from ct_submitter.channel import BoundedChannel
from ct_submitter.config import AppSettings
from ct_submitter.domain.models import AssembledChain
from ct_submitter.domain.ports import ChainStore
from ct_submitter.domain.progress import ProgressState
from ct_submitter.pipeline import Orchestrator
from ct_submitter.source import ChainBatch, ChainSource
from ct_submitter.stats import StatsReporter
from ct_submitter.workers import WorkerPool


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for human-readable console logging.

    Every pipeline thread logs through the same processors, so stats
    snapshots and failures interleave in one readable stream.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


Sink: TypeAlias = HttpLogSink | DryRunSink


def create_sink(settings: AppSettings) -> Sink:
    """Pick the submission sink once, from the dry-run flag."""
    if settings.dry_run:
        return DryRunSink(delay_seconds=settings.dry_run_delay_seconds)
    return HttpLogSink(
        log_url=settings.log_server.url,
        timeout=settings.log_server.timeout_seconds,
    )


def _create_adapters(settings: AppSettings) -> tuple[PsycopgChainStore, Sink]:
    """Instantiate the store and sink adapters from application settings."""
    store = PsycopgChainStore(dsn=settings.database.get_dsn())
    return store, create_sink(settings)


def build_orchestrator(
    settings: AppSettings,
    store: ChainStore,
    sink: Sink,
    progress: ProgressState | None = None,
) -> Orchestrator:
    """Build channels and pipeline stages around the given adapters."""
    progress = progress or ProgressState()
    batches: BoundedChannel[ChainBatch] = BoundedChannel(settings.batch_capacity)
    submissions: BoundedChannel[AssembledChain] = BoundedChannel(settings.submission_capacity)

    source = ChainSource(
        store,
        batches,
        page_size=settings.page_size,
        initial_offset=settings.initial_chain_id,
    )
    pool = WorkerPool(sink, submissions, progress, workers=settings.workers)
    reporter = StatsReporter(
        progress,
        batches,
        submissions,
        page_size=settings.page_size,
        interval_seconds=settings.stats_interval_seconds,
    )
    return Orchestrator(
        source=source,
        assembler=ChainAssembler(store),
        pool=pool,
        batches=batches,
        submissions=submissions,
        progress=progress,
        reporter=reporter,
    )


def _register_shutdown_signals() -> None:
    """Turn SIGTERM into KeyboardInterrupt so final progress is still recorded."""

    def _interrupt(signum: int, frame: object) -> None:
        raise KeyboardInterrupt(signal.Signals(signum).name)

    signal.signal(signal.SIGTERM, _interrupt)


def main(argv: list[str] | None = None) -> None:
    """Wire dependencies and run the pipeline once."""
    try:
        settings = AppSettings(_cli_parse_args=argv if argv is not None else True)
    except Exception as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        dry_run=settings.dry_run,
        workers=settings.workers,
        initial_chain_id=settings.initial_chain_id,
        log_url=settings.log_server.url,
    )

    store, sink = _create_adapters(settings)
    orchestrator = build_orchestrator(settings, store, sink)
    _register_shutdown_signals()

    try:
        result = LoggingExecutionContext(operation="ChainSubmission").execute(orchestrator.run)
    except KeyboardInterrupt:
        log.info("app.shutdown", reason="signal received")
        sys.exit(1)
    finally:
        sink.close()
        store.close()

    if result.is_failure():
        log.error("app.fatal_error", failure=str(result.error()))
        sys.exit(1)

    log.info("app.finished", submitted=result.value())


if __name__ == "__main__":
    main()
