import asyncio
import logging

from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from config import Timings

logger = logging.getLogger("cptrash.stabilizer")

TABLE_SELECTOR = ".yui-dt-data"
ROW_SELECTOR = ".yui-dt-data tr.yui-dt-rec"

# Rows rendered, or the explicit empty marker: either proves the table finished loading.
ROWS_OR_EMPTY_JS = """() => {
    const table = document.querySelector('.yui-dt-data');
    if (!table) return false;
    const hasRows = table.querySelectorAll('tr.yui-dt-rec').length > 0;
    const isEmpty = document.querySelector('.yui-dt-empty') !== null;
    return hasRows || isEmpty;
}"""

ROW_COUNT_JS = "() => document.querySelectorAll('.yui-dt-data tr.yui-dt-rec').length"


class StabilizationPoller:
    """
    Decides when a freshly loaded File Manager listing is safe to read.

    A failed wait is a soft failure: wait() returns False and the caller
    carries on, since missing proof of stability is not proof of instability.
    """

    def __init__(self, page, timeout_ms: int, timings: Timings = None):
        self.page = page
        self.timeout_ms = timeout_ms
        self.timings = timings or Timings()

    async def wait(self) -> bool:
        t = self.timings
        for attempt in range(1, t.stabilize_retries + 1):
            try:
                await self._wait_once()
                return True
            except PlaywrightError as e:
                logger.debug(f"Listing not stable (attempt {attempt}/{t.stabilize_retries}): {e}")
                if attempt < t.stabilize_retries:
                    await asyncio.sleep(t.stabilize_backoff * attempt)

        logger.warning(f"Listing did not stabilize after {t.stabilize_retries} attempts, continuing")
        await asyncio.sleep(t.stabilize_fallback_delay)
        return False

    async def _wait_once(self):
        t = self.timings
        await self.page.wait_for_selector(TABLE_SELECTOR, timeout=self.timeout_ms)
        await self.page.wait_for_function(ROWS_OR_EMPTY_JS, timeout=self.timeout_ms)

        # Debounce progressive rendering: the row count must repeat N polls in a row.
        previous = -1
        stable = 0
        polls = 0
        while stable < t.stable_checks:
            if polls >= t.stable_max_polls:
                raise PlaywrightTimeoutError(f"Row count still changing after {polls} polls (last {previous})")
            polls += 1
            count = await self.page.evaluate(ROW_COUNT_JS)
            if count == previous:
                stable += 1
            else:
                stable = 0
                previous = count
            if stable < t.stable_checks:
                await asyncio.sleep(t.stable_poll_interval)

        await asyncio.sleep(t.settle_delay)
        logger.debug(f"Listing stable with {previous} rows")
