import asyncio
import logging
from typing import List, Tuple

from playwright.async_api import Error as PlaywrightError

from config import Timings
from .interface import Entry

logger = logging.getLogger("cptrash.selector")

# Each strategy is (label, script). Scripts return true when they acted.
SELECT_ALL_STRATEGIES: List[Tuple[str, str]] = [
    ("text", """() => {
        for (const el of document.querySelectorAll('a, button, span')) {
            if ((el.textContent || '').trim() === 'Select All') { el.click(); return true; }
        }
        return false;
    }"""),
    ("title", """() => {
        const el = document.querySelector('[title="Select All"]');
        if (el) { el.click(); return true; }
        return false;
    }"""),
]

SELECT_ALL_SELECTORS = [
    'a:has-text("Select All")',
    'button:has-text("Select All")',
    'a[title="Select All"]',
    'button[title="Select All"]',
]

# Row locators for select-by-name, given the entry name. They return the row or null.
ROW_LOCATORS: List[Tuple[str, str]] = [
    ("renameable", """(name) => {
        for (const span of document.querySelectorAll('span.renameable')) {
            if ((span.textContent || '').trim() === name || span.getAttribute('title') === name) {
                return span.closest('tr');
            }
        }
        return null;
    }"""),
    ("link-text", """(name) => {
        for (const link of document.querySelectorAll('a')) {
            if ((link.textContent || '').trim() === name) {
                return link.closest('tr') || link.closest('[class*="row"]')
                    || (link.parentElement ? link.parentElement.parentElement : null);
            }
        }
        return null;
    }"""),
]

TOGGLE_ROW_JS = """(row) => {
    const checkbox = row.querySelector('input[type="checkbox"]');
    if (checkbox && !checkbox.checked) { checkbox.click(); return true; }
    if (!row.classList.contains('selected') && !row.classList.contains('yui-dt-selected')) {
        row.click();
        return true;
    }
    return false;
}"""

DELETE_TRIGGERS: List[Tuple[str, str]] = [
    ("action-handler", """() => {
        if (typeof actionHandler === 'function') { actionHandler('delete'); return true; }
        return false;
    }"""),
    ("action-delete", """() => {
        const li = document.querySelector('#action-delete, li[id="action-delete"]');
        if (li) { li.classList.remove('disabled'); li.click(); return true; }
        return false;
    }"""),
    ("delete-link", """() => {
        const link = document.querySelector('a[title="Delete"]');
        if (link) { link.click(); return true; }
        return false;
    }"""),
]

CONFIRM_STRATEGIES: List[Tuple[str, str]] = [
    ("modal-default", """() => {
        const modal = document.querySelector('#delete, #delete_c, .yui-dialog');
        const btn = modal ? modal.querySelector('button.default') : null;
        if (btn) { btn.click(); return true; }
        return false;
    }"""),
    ("modal-label", """() => {
        const modal = document.querySelector('#delete, #delete_c, .yui-dialog');
        if (!modal) return false;
        for (const btn of modal.querySelectorAll('button')) {
            if ((btn.textContent || '').trim() === 'Delete Files') { btn.click(); return true; }
        }
        return false;
    }"""),
    ("any-label", """() => {
        for (const btn of document.querySelectorAll('button')) {
            if ((btn.textContent || '').trim() === 'Delete Files') { btn.click(); return true; }
        }
        return false;
    }"""),
]

CLEAR_SELECTION_JS = """() => {
    document.querySelectorAll('tr.yui-dt-selected').forEach((row) => row.classList.remove('yui-dt-selected'));
}"""

MARK_SINGLE_JS = """(name) => {
    for (const span of document.querySelectorAll('span.renameable')) {
        if ((span.textContent || '').trim() === name || span.getAttribute('title') === name) {
            const row = span.closest('tr');
            if (row) {
                row.classList.add('yui-dt-selected');
                row.click();
                return true;
            }
        }
    }
    return false;
}"""


class RowSelector:
    """
    Selection and deletion on the File Manager page.
    Missing affordances are reported as False, never raised.
    """

    def __init__(self, page, timings: Timings = None):
        self.page = page
        self.timings = timings or Timings()

    async def _evaluate(self, label: str, script: str, arg=None) -> bool:
        try:
            if arg is None:
                return bool(await self.page.evaluate(script))
            return bool(await self.page.evaluate(script, arg))
        except PlaywrightError as e:
            logger.debug(f"Strategy '{label}' failed: {e}")
            return False

    async def _run_strategies(self, strategies, purpose: str) -> bool:
        for label, script in strategies:
            if await self._evaluate(label, script):
                logger.debug(f"{purpose}: '{label}' succeeded")
                return True
        logger.debug(f"{purpose}: no strategy succeeded")
        return False

    async def select_all(self) -> bool:
        selected = await self._run_strategies(SELECT_ALL_STRATEGIES, "Select all")
        if not selected:
            for selector in SELECT_ALL_SELECTORS:
                try:
                    button = await self.page.query_selector(selector)
                    if button:
                        await button.click()
                        selected = True
                        break
                except PlaywrightError as e:
                    logger.debug(f"Select all via '{selector}' failed: {e}")

        if selected:
            await asyncio.sleep(self.timings.after_select_delay)
        return selected

    async def _locate_row(self, name: str):
        for label, script in ROW_LOCATORS:
            try:
                handle = await self.page.evaluate_handle(script, name)
            except PlaywrightError as e:
                logger.debug(f"Row locator '{label}' failed for {name}: {e}")
                continue
            row = handle.as_element()
            if row is not None:
                return row
            await handle.dispose()
        return None

    async def _select_row(self, name: str) -> bool:
        row = await self._locate_row(name)
        if row is None:
            return False
        try:
            return bool(await row.evaluate(TOGGLE_ROW_JS))
        except PlaywrightError as e:
            logger.debug(f"Could not toggle row for {name}: {e}")
            return False
        finally:
            await row.dispose()

    async def select_by_name(self, entries: List[Entry]) -> bool:
        selected_count = 0
        for entry in entries:
            if await self._select_row(entry.name):
                selected_count += 1
                await asyncio.sleep(self.timings.after_select_delay)
        logger.debug(f"Selected {selected_count}/{len(entries)} rows by name")
        return selected_count > 0

    async def delete_selected(self) -> bool:
        t = self.timings
        if not await self._run_strategies(DELETE_TRIGGERS, "Delete action"):
            logger.warning("Delete control not found")
            return False

        await asyncio.sleep(t.after_delete_action_delay)
        if not await self._run_strategies(CONFIRM_STRATEGIES, "Delete confirmation"):
            logger.warning("Delete confirmation button not found")

        await asyncio.sleep(t.after_confirm_delay)
        return True

    async def _mark_single(self, name: str) -> bool:
        return await self._evaluate("single", MARK_SINGLE_JS, name)

    async def select_and_delete_single(self, name: str, dry_run: bool = False) -> bool:
        t = self.timings
        await asyncio.sleep(t.single_pre_delay)

        await self._evaluate("clear-selection", CLEAR_SELECTION_JS)
        selected = await self._mark_single(name)
        if not selected:
            await asyncio.sleep(t.single_retry_delay)
            selected = await self._mark_single(name)
        if not selected:
            logger.debug(f"Row for '{name}' not found")
            return False

        if dry_run:
            return True

        await asyncio.sleep(t.single_before_delete_delay)
        await self.delete_selected()
        await asyncio.sleep(t.single_after_delete_delay)
        return True
