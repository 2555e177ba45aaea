import asyncio
import signal
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import cpanel_trash_cleaner as cli
from config import CleanerConfig, Timings
from core.report import RunReport
from providers.interface import NavigationError

BROWSER = {"name": "Test Chrome", "path": "/usr/bin/chrome"}


class TestBrowserRelease(unittest.IsolatedAsyncioTestCase):
    """The browser session is closed however the traversal ends."""

    def setUp(self):
        self.config = CleanerConfig(cpanel_url="https://example.com:2083", username="bob",
                                    password="secret", headless=True, timings=Timings.instant())
        self.session = MagicMock()
        self.session.start = AsyncMock(return_value=MagicMock())
        self.session.login = AsyncMock()
        self.session.open_file_manager = AsyncMock()
        self.session.close = AsyncMock()

        self.view = MagicMock()
        self.view.wait_until_stable = AsyncMock(return_value=True)
        self.engine = MagicMock()
        self.engine.run = AsyncMock()

        patches = [
            patch.object(cli, "BrowserSession", return_value=self.session),
            patch.object(cli, "CPanelDirectoryView", return_value=self.view),
            patch.object(cli, "TraversalEngine", return_value=self.engine),
            patch("builtins.print"),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

    async def test_completed_run_closes_session(self):
        report = RunReport()
        self.engine.run.return_value = report

        self.assertIs(await cli.clean_trash(self.config, BROWSER), report)
        self.engine.run.assert_awaited_once_with("/home/bob/.trash")
        self.session.close.assert_awaited_once()

    async def test_navigation_error_closes_session(self):
        self.engine.run.side_effect = NavigationError("/home/bob/.trash/a", RuntimeError("gone"))

        with self.assertRaises(NavigationError):
            await cli.clean_trash(self.config, BROWSER)
        self.session.close.assert_awaited_once()

    async def test_login_failure_closes_session(self):
        self.session.login.side_effect = cli.SessionError("Login failed")

        with self.assertRaises(cli.SessionError):
            await cli.clean_trash(self.config, BROWSER)
        self.engine.run.assert_not_awaited()
        self.session.close.assert_awaited_once()

    async def test_signal_cancels_and_closes_session(self):
        started = asyncio.Event()

        async def never_finishes(path):
            started.set()
            await asyncio.Event().wait()

        self.engine.run.side_effect = never_finishes
        loop = asyncio.get_running_loop()
        handlers = {}

        with patch.object(loop, "add_signal_handler", side_effect=lambda sig, cb: handlers.setdefault(sig, cb)), \
                patch.object(loop, "remove_signal_handler") as remove:
            task = asyncio.ensure_future(cli.run_until_signalled(cli.clean_trash(self.config, BROWSER)))
            await started.wait()
            handlers[signal.SIGINT]()

            with self.assertRaises(asyncio.CancelledError):
                await task

        self.assertEqual(set(handlers), {signal.SIGINT, signal.SIGTERM})
        self.assertEqual(remove.call_count, 2)
        self.session.close.assert_awaited_once()

    async def test_run_until_signalled_returns_result(self):
        async def work():
            return 42

        self.assertEqual(await cli.run_until_signalled(work()), 42)


if __name__ == '__main__':
    unittest.main()
