"""
Batch Scanner
=============
Sends scan units to the remote classifier in slices that respect the
per-request item cap, and returns findings in original unit order.

Dispatch:
    - ceil(N / max_items) requests, each a consecutive slice of units
    - at most ``max_concurrency`` requests in flight (asyncio.Semaphore)
    - results are placed by slice index, never by completion order

Failure:
    - the first failing slice cancels every other pending slice and the
      whole scan raises RemoteScanError; no partial result is returned
    - no retries at this layer
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence

from diffscan.core.constants import DEFAULT_MAX_CONCURRENT_SCANS, MAX_ITEMS_PER_SCAN_REQUEST
from diffscan.core.errors import RemoteScanError
from diffscan.models.finding import Finding, ScanResult, ScanUnit

logger = logging.getLogger(__name__)

# items → one findings list per item, same order and length
SubmitFn = Callable[[List[str]], Awaitable[List[List[Finding]]]]


def partition(units: Sequence[ScanUnit], size: int) -> List[Sequence[ScanUnit]]:
    """Split ``units`` into consecutive slices of at most ``size`` items."""
    if size < 1:
        raise ValueError(f"slice size must be positive, got {size}")
    return [units[i:i + size] for i in range(0, len(units), size)]


class BatchScanner:

    def __init__(
        self,
        submit: SubmitFn,
        max_items: int = MAX_ITEMS_PER_SCAN_REQUEST,
        max_concurrency: int = DEFAULT_MAX_CONCURRENT_SCANS,
    ) -> None:
        if max_items < 1:
            raise ValueError(f"max_items must be positive, got {max_items}")
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be positive, got {max_concurrency}")
        self.submit = submit
        self.max_items = max_items
        self.max_concurrency = max_concurrency

    async def _scan_slice(
        self,
        request_num: int,
        units: Sequence[ScanUnit],
        semaphore: asyncio.Semaphore,
    ) -> List[List[Finding]]:
        items = [u.content for u in units]
        async with semaphore:
            try:
                findings = await self.submit(items)
            except RemoteScanError:
                logger.error("Scan request #%d with %d items failed", request_num, len(items))
                raise
            except Exception as e:
                logger.error("Scan request #%d with %d items failed: %s", request_num, len(items), e)
                raise RemoteScanError(f"scan request #{request_num} failed: {e}") from e

        if len(findings) != len(items):
            raise RemoteScanError(
                f"scan request #{request_num} returned {len(findings)} results for {len(items)} items"
            )
        found = sum(len(f) for f in findings)
        logger.info("Got %d findings for request #%d", found, request_num)
        return findings

    async def scan(self, units: Sequence[ScanUnit]) -> List[ScanResult]:
        """
        Scan every unit and pair it with its findings.

        Returns
        -------
        List[ScanResult]
            One entry per input unit, in input order.
        """
        if not units:
            return []

        slices = partition(units, self.max_items)
        logger.info("Sending %d requests to Nightfall API", len(slices))

        semaphore = asyncio.Semaphore(self.max_concurrency)
        tasks = [
            asyncio.ensure_future(self._scan_slice(n + 1, chunk, semaphore))
            for n, chunk in enumerate(slices)
        ]
        try:
            per_slice = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        results: List[ScanResult] = []
        for chunk, findings in zip(slices, per_slice):
            results.extend(ScanResult(unit=u, findings=list(f)) for u, f in zip(chunk, findings))
        return results
