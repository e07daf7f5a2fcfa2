"""Asynchronous page pipeline driver.

The driver fetches every page in the configured range concurrently, bounded
by a BoundedTaskPool, and fans the extracted records in to a single consumer
through an unbounded channel:

1. Spawning: one task per page, each holding its own channel sender.
2. Draining: the driver closes its own sender and reads the channel until
   every page task has closed its sender.
3. Done.

Each task holds a pool slot while it fetches, parses and emits. A fetch or
extraction error ends that task only; it is logged, recorded as a
PageFailure and passed to ``on_page_error``. The other pages are unaffected.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from quotegate.common.channel import Sender, open_channel
from quotegate.common.exceptions import (
    FetchError,
    HTMLStructuralAssumptionException,
    ScraperAssumptionException,
)
from quotegate.common.pool import BoundedTaskPool
from quotegate.common.request_manager import AsyncRequestManager
from quotegate.config import PipelineConfig
from quotegate.data_types import (
    DriverState,
    PageFailure,
    Record,
    Response,
    RunSummary,
)
from quotegate.extractor import QuoteExtractor, RecordExtractor

logger = logging.getLogger(__name__)


class AsyncPageDriver:
    """Runs the bounded fetch-parse-aggregate pipeline over a page range.

    Records can be pulled with :meth:`stream` or pushed to a callback with
    :meth:`run`.

    Example usage:
        config = PipelineConfig(base_url="https://quotes.toscrape.com/")
        driver = AsyncPageDriver(config)
        async for record in driver.stream():
            print(record)
        print(driver.failures)
    """

    def __init__(
        self,
        config: PipelineConfig,
        request_manager: AsyncRequestManager | None = None,
        extractor: RecordExtractor | None = None,
        on_record: Callable[[Record], Awaitable[None]] | None = None,
        on_page_error: Callable[[PageFailure], Awaitable[None]] | None = None,
        on_run_start: Callable[[PipelineConfig], Awaitable[None]] | None = None,
        on_run_complete: Callable[[RunSummary], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            config: Page range, pool capacity, and HTTP settings.
            request_manager: AsyncRequestManager used to fetch pages. If None,
                one is created from ``config`` and closed when the run ends.
            extractor: Turns page markup into records. Defaults to QuoteExtractor.
            on_record: Optional async callback receiving each record during run().
            on_page_error: Optional async callback receiving each PageFailure as
                it happens, in both run() and stream().
            on_run_start: Optional async callback invoked before any page is
                spawned. Receives the config.
            on_run_complete: Optional async callback invoked after the run ends,
                even when it ends early. Receives the RunSummary.
        """
        self.config = config
        if request_manager is not None:
            self.request_manager = request_manager
            self._owns_request_manager = False
        else:
            self.request_manager = AsyncRequestManager(config)
            self._owns_request_manager = True
        self.extractor: RecordExtractor = extractor or QuoteExtractor()

        self.on_record = on_record
        self.on_page_error = on_page_error
        self.on_run_start = on_run_start
        self.on_run_complete = on_run_complete

        self.pool = BoundedTaskPool(config.pool_capacity)
        self.state = DriverState.PENDING
        self.summary = RunSummary()

    @property
    def failures(self) -> list[PageFailure]:
        return self.summary.failures

    async def run(self) -> RunSummary:
        """Drive the pipeline to completion, handing records to ``on_record``.

        Returns:
            RunSummary for the run.
        """
        async for record in self.stream():
            if self.on_record:
                await self.on_record(record)
        return self.summary

    async def stream(self) -> AsyncIterator[Record]:
        """Yield records as page tasks produce them.

        The iterator ends once every page task has finished. If the consumer
        stops early, outstanding page tasks are cancelled and awaited.

        Raises:
            RuntimeError: If the driver has already been started.
        """
        if self.state is not DriverState.PENDING:
            raise RuntimeError("AsyncPageDriver can only be run once")

        if self.on_run_start:
            await self.on_run_start(self.config)

        sender, receiver = open_channel()
        tasks: list[asyncio.Task[None]] = []
        try:
            self.state = DriverState.SPAWNING
            with sender:
                for page_index in self.config.page_indices():
                    tasks.append(
                        asyncio.create_task(
                            self._page_task(page_index, sender.clone()),
                            name=f"page-{page_index}",
                        )
                    )
            self.summary.pages_requested = len(tasks)
            logger.info(
                "Spawned %d page tasks (capacity %d)",
                len(tasks),
                self.pool.capacity,
            )

            self.state = DriverState.DRAINING
            async for record in receiver:
                self.summary.records += 1
                yield record
        finally:
            receiver.close()
            for task in tasks:
                if not task.done():
                    task.cancel()
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for task, result in zip(tasks, results):
                if isinstance(result, Exception):
                    logger.error(
                        "Task %s ended with an error outside page handling",
                        task.get_name(),
                        exc_info=result,
                    )

            if self._owns_request_manager:
                await self.request_manager.close()

            self.summary.peak_concurrency = self.pool.peak_in_use
            self.state = DriverState.DONE
            logger.info(
                "Run finished: %d records, %d/%d pages failed",
                self.summary.records,
                self.summary.pages_failed,
                self.summary.pages_requested,
            )
            if self.on_run_complete:
                await self.on_run_complete(self.summary)

    async def _page_task(self, page_index: int, sender: Sender[Record]) -> None:
        """Fetch, extract and emit one page while holding a pool slot."""
        with sender:
            async with self.pool.slot():
                url = self.request_manager.page_url(page_index)
                try:
                    response = await self.request_manager.fetch_page(page_index)
                    records, container_errors = self._extract(response)
                except (FetchError, ScraperAssumptionException) as e:
                    await self._report_failure(page_index, url, e)
                    return
                except Exception as e:
                    logger.exception(
                        "Unexpected error while processing page %d", page_index
                    )
                    await self._report_failure(page_index, url, e)
                    return

                for record in records:
                    sender.send(record)
                logger.debug(
                    "Page %d produced %d records", page_index, len(records)
                )
                # Reported after the good records are sent
                for error in container_errors:
                    await self._report_failure(
                        page_index, url, error, partial=bool(records)
                    )

    def _extract(
        self, response: Response
    ) -> tuple[list[Record], list[HTMLStructuralAssumptionException]]:
        if not self.config.partial_pages:
            return self.extractor.extract(response.text, response.url), []

        outcome = self.extractor.extract_partial(response.text, response.url)
        return outcome.records, outcome.errors

    async def _report_failure(
        self, page_index: int, url: str, error: Exception, partial: bool = False
    ) -> None:
        failure = PageFailure(
            page_index=page_index, url=url, error=error, partial=partial
        )
        self.summary.failures.append(failure)
        logger.warning(
            "Page %d failed: %s",
            page_index,
            failure.describe(),
            extra={
                "page_index": page_index,
                "url": url,
                "error_type": failure.kind,
                "partial": partial,
            },
        )
        if self.on_page_error:
            await self.on_page_error(failure)
