"""
Concurrent scan engine.

Addresses flow through a work queue to a fixed pool of workers; each
worker pushes one result per address into a bounded result channel, and
the aggregator consumes exactly as many results as there were addresses.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from .aggregator import Classification, ResultAggregator
from .channel import Channel, ChannelClosed
from .config import ScanConfig
from .console import ScanStatistics
from .errors import ErrorCategory, ErrorCode, ScanAborted
from .input_parser import AddressList
from .scanner import DeviceScanner, ScanOutcome, ScanResult

logger = logging.getLogger(__name__)

ResultCallback = Callable[[ScanResult, Classification, ScanStatistics], Awaitable[None]]


class ScanEngine:
    """
    Runs a scan over an address list with a bounded worker pool.

    Results are aggregated in completion order, not input order.
    """

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        scanner: Optional[DeviceScanner] = None,
        on_result: Optional[ResultCallback] = None,
    ):
        """
        Initialize scan engine.

        Args:
            config: Scan settings (defaults if not given)
            scanner: Device scanner (built from config if not given)
            on_result: Optional callback awaited after each result is
                       aggregated, with signature
                       callback(result, classification, statistics)
        """
        self.config = config or ScanConfig()
        self.scanner = scanner or DeviceScanner.from_config(self.config)
        self.on_result = on_result
        self._workers: List["asyncio.Task[None]"] = []
        self._results: Optional[Channel[ScanResult]] = None
        self._live_workers = 0
        self._cancelled = False

    def cancel(self) -> None:
        """Stop the scan; run() raises ScanAborted with partial statistics."""
        self._cancelled = True
        for task in self._workers:
            task.cancel()
        if self._results is not None:
            self._results.close()

    async def _worker(
        self,
        worker_id: int,
        work_queue: "Channel[str]",
        results: "Channel[ScanResult]",
    ) -> None:
        """Pull addresses until the work queue is closed and drained."""
        try:
            async with self.scanner.create_session() as session:
                async for address in work_queue:
                    if self._cancelled:
                        break
                    logger.debug(f"Worker ID:{worker_id} - Working on: {address}")
                    try:
                        result = await self.scanner.scan_address(session, address)
                    except Exception as e:
                        logger.exception(f"Worker ID:{worker_id} - Scan of {address} failed")
                        result = ScanResult.unknown(
                            address,
                            ScanOutcome.UNREACHABLE,
                            error=f"Scan failed: {e}",
                            error_code=ErrorCode.UNKNOWN_ERROR.value,
                            error_category=ErrorCategory.UNKNOWN.value,
                        )
                    await results.put(result)
        finally:
            self._live_workers -= 1
            if self._live_workers == 0:
                # No producer left: wake the aggregator if it is still waiting
                results.close()

    async def _stop_workers(self) -> None:
        for task in self._workers:
            task.cancel()
        outcomes = await asyncio.gather(*self._workers, return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, Exception):
                logger.warning(f"Worker exited with error: {outcome!r}")

    async def run(self, addresses: AddressList, writer) -> ScanStatistics:
        """
        Scan every valid address and aggregate the results.

        Args:
            addresses: Validated scan population
            writer: Report sink with write_all(result) and write_bad(result)

        Returns:
            Final scan statistics

        Raises:
            ScanAborted: If the scan was cancelled or stopped before every
                         address produced a result
            ReportWriteError: If a report row cannot be written
        """
        valid_count = addresses.valid_count
        stats = ScanStatistics(
            valid_addresses=valid_count,
            invalid_addresses=addresses.invalid_count,
        )
        aggregator = ResultAggregator(writer, self.config.temp_threshold, stats)

        if valid_count == 0:
            logger.info("No valid addresses to scan")
            return stats

        # Capacity equals the population, so loading never blocks
        work_queue: Channel[str] = Channel(valid_count)
        for address in addresses.addresses:
            work_queue.put_nowait(address)
        work_queue.close()
        logger.debug("All jobs loaded into queue")

        results: Channel[ScanResult] = Channel(self.config.workers)
        self._results = results
        self._live_workers = self.config.workers
        self._workers = [
            asyncio.ensure_future(self._worker(worker_id, work_queue, results))
            for worker_id in range(1, self.config.workers + 1)
        ]

        try:
            for _ in range(valid_count):
                try:
                    result = await results.get()
                except ChannelClosed:
                    reason = "cancelled" if self._cancelled else "workers exited early"
                    raise ScanAborted(
                        f"Scan {reason} with {stats.scanned} of {valid_count} results",
                        stats,
                    ) from None

                classification = aggregator.add(result)

                if self.on_result:
                    try:
                        await self.on_result(result, classification, stats)
                    except Exception as e:
                        logger.warning(f"Result callback error: {e}")

                logger.debug(
                    f"Jobs remaining: {work_queue.qsize()} of {work_queue.capacity}, "
                    f"results in queue: {results.qsize()}"
                )

                if (
                    result.outcome == ScanOutcome.PARSE_ERROR
                    and self.config.abort_on_parse_error
                ):
                    raise ScanAborted(
                        f"Unparseable status page from {result.address}; aborting scan",
                        stats,
                    )
        except BaseException:
            self._cancelled = True
            results.close()
            await self._stop_workers()
            raise

        # Every address has a result, so the workers are already idle
        outcomes = await asyncio.gather(*self._workers, return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, Exception):
                logger.warning(f"Worker exited with error: {outcome!r}")

        return stats
