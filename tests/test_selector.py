import unittest
from unittest.mock import AsyncMock, MagicMock

from playwright.async_api import Error as PlaywrightError

from config import Timings
from providers.interface import Entry, EntryKind
from providers.selector import RowSelector


def js_handle(element=None):
    handle = MagicMock()
    handle.as_element.return_value = element
    handle.dispose = AsyncMock()
    return handle


def row_element(toggled=True):
    row = MagicMock()
    row.evaluate = AsyncMock(return_value=toggled)
    row.dispose = AsyncMock()
    return row


class TestRowSelector(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.page = MagicMock()
        self.page.evaluate = AsyncMock()
        self.page.evaluate_handle = AsyncMock()
        self.page.query_selector = AsyncMock(return_value=None)
        self.selector = RowSelector(self.page, Timings.instant())

    async def test_select_all_by_title_after_text_misses(self):
        self.page.evaluate.side_effect = [False, True]
        self.assertTrue(await self.selector.select_all())
        self.assertEqual(self.page.evaluate.await_count, 2)
        self.page.query_selector.assert_not_awaited()

    async def test_select_all_css_fallback(self):
        button = MagicMock()
        button.click = AsyncMock()
        self.page.evaluate.return_value = False
        self.page.query_selector.side_effect = [None, button]

        self.assertTrue(await self.selector.select_all())
        button.click.assert_awaited_once()

    async def test_select_all_missing_is_false(self):
        self.page.evaluate.return_value = False
        self.assertFalse(await self.selector.select_all())

    async def test_select_all_tolerates_script_errors(self):
        self.page.evaluate.side_effect = PlaywrightError("boom")
        self.page.query_selector.side_effect = PlaywrightError("bad selector")
        self.assertFalse(await self.selector.select_all())

    async def test_select_by_name_counts_matches(self):
        found = row_element()
        # first entry found by the first locator; second entry found by neither
        self.page.evaluate_handle.side_effect = [js_handle(found), js_handle(None), js_handle(None)]
        entries = [Entry("a.txt", EntryKind.FILE), Entry("missing.txt", EntryKind.FILE)]

        self.assertTrue(await self.selector.select_by_name(entries))
        found.evaluate.assert_awaited_once()
        found.dispose.assert_awaited_once()

    async def test_select_by_name_none_found(self):
        self.page.evaluate_handle.side_effect = [js_handle(None), js_handle(None)]
        self.assertFalse(await self.selector.select_by_name([Entry("x", EntryKind.FILE)]))

    async def test_select_by_name_row_already_selected(self):
        self.page.evaluate_handle.return_value = js_handle(row_element(toggled=False))
        self.assertFalse(await self.selector.select_by_name([Entry("x", EntryKind.FILE)]))

    async def test_delete_skips_confirmation_without_control(self):
        self.page.evaluate.return_value = False
        self.assertFalse(await self.selector.delete_selected())
        # three trigger strategies, no confirmation attempts
        self.assertEqual(self.page.evaluate.await_count, 3)

    async def test_delete_confirms_by_label(self):
        # action hook fires, modal default button missing, label match works
        self.page.evaluate.side_effect = [True, False, True]
        self.assertTrue(await self.selector.delete_selected())
        self.assertEqual(self.page.evaluate.await_count, 3)

    async def test_single_dry_run_does_not_delete(self):
        # clear selection, mark fails once, retry succeeds
        self.page.evaluate.side_effect = [None, False, True]
        self.assertTrue(await self.selector.select_and_delete_single("old", dry_run=True))
        self.assertEqual(self.page.evaluate.await_count, 3)

    async def test_single_not_found(self):
        self.page.evaluate.side_effect = [None, False, False]
        self.assertFalse(await self.selector.select_and_delete_single("ghost"))

    async def test_single_live_deletes(self):
        self.page.evaluate.side_effect = [None, True, True, True]
        self.assertTrue(await self.selector.select_and_delete_single("old"))
        self.assertEqual(self.page.evaluate.await_count, 4)
        self.assertEqual(self.page.evaluate.await_args_list[1].args[1], "old")


if __name__ == '__main__':
    unittest.main()
