"""
Chain source — paginated producer of chain identities.

Walks the store's chain listing with LIMIT/OFFSET and pushes every non-empty
page, as one batch, onto the batch channel:

  offset=N → page(N) → emit → offset += len(page) → ... → short page → close

A short (or empty) page is the last one: no further page is requested.
A store failure is fatal and is not retried; the output channel is aborted so
the consumer stops promptly, and the failure is returned to the caller.
"""

from __future__ import annotations

from typing import TypeAlias

import structlog
from railway import ErrorCode
from railway.result import Result

from ct_submitter.channel import BoundedChannel, ChannelClosed
from ct_submitter.domain.models import ChainIdentity
from ct_submitter.domain.ports import ChainStore

log = structlog.get_logger()

DEFAULT_PAGE_SIZE = 1000

ChainBatch: TypeAlias = tuple[ChainIdentity, ...]


class ChainSource:
    """Producer stage: store pages → batch channel."""

    def __init__(
        self,
        store: ChainStore,
        output: BoundedChannel[ChainBatch],
        page_size: int = DEFAULT_PAGE_SIZE,
        initial_offset: int = 0,
    ) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self._store = store
        self._output = output
        self._page_size = page_size
        self._initial_offset = initial_offset

    @property
    def page_size(self) -> int:
        return self._page_size

    def run(self) -> Result[int]:
        """
        Emit every page from the initial offset to the end of the listing.

        Returns Result[int] with the number of identities emitted, or the
        store failure that stopped the walk. The output channel is closed
        on every return path.
        """
        emitted = 0
        offset = self._initial_offset
        try:
            while True:
                page_result = self._store.fetch_chain_page(self._page_size, offset)
                if page_result.is_failure():
                    failure = page_result.error()
                    log.error("source.page_failed", offset=offset, failure=str(failure))
                    self._output.abort()
                    return Result.failure_from(failure)

                page = page_result.value()
                if page:
                    self._output.put(tuple(page))
                    emitted += len(page)
                log.debug("source.page_fetched", offset=offset, size=len(page))

                if len(page) < self._page_size:
                    break
                offset += len(page)
        except ChannelClosed:
            log.warning("source.output_closed", offset=offset, emitted=emitted)
            return Result.failure(
                ErrorCode.TECHNICAL_ERROR,
                f"Batch channel closed after {emitted} chains",
            )
        finally:
            self._output.close()

        log.info("source.exhausted", emitted=emitted, next_offset=offset + len(page))
        return Result.success(emitted)
