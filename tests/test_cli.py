import io
import asyncio
import logging
import unittest
from contextlib import redirect_stdout
from unittest.mock import AsyncMock, patch

import cpanel_trash_cleaner as cli
from core.report import RunReport
from core.types import DeletionStatus
from providers.interface import NavigationError
from providers.session import SessionError

ARGS = ["-u", "https://example.com:2083", "-n", "bob", "-p", "secret", "-H"]
BROWSER = {"name": "Test Chrome", "path": "/usr/bin/chrome"}


class TestMain(unittest.TestCase):

    def setUp(self):
        patches = [
            patch.object(cli, "setup_logger", return_value=(logging.getLogger("cptrash.test"), None)),
            patch.object(cli, "resolve_browser", return_value=BROWSER),
            patch.dict("os.environ", {"CPTRASH_CONFIG": ""}),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

    def run_main(self, *extra):
        out = io.StringIO()
        with redirect_stdout(out):
            code = cli.main(ARGS + list(extra))
        return code, out.getvalue()

    def test_successful_run(self):
        report = RunReport()
        report.folder_entered()
        report.add_deleted(1)
        report.record("/home/bob/.trash", 1, DeletionStatus.DELETED)

        with patch.object(cli, "clean_trash", new=AsyncMock(return_value=report)) as clean:
            code, output = self.run_main()

        self.assertEqual(code, cli.EXIT_OK)
        config = clean.await_args.args[0]
        self.assertEqual(config.username, "bob")
        self.assertTrue(config.headless)
        self.assertIn("Processed 1 folders, 1 items deleted", output)
        self.assertIn("Cleanup Complete", output)

    def test_dry_run_banner_and_wording(self):
        with patch.object(cli, "clean_trash", new=AsyncMock(return_value=RunReport())):
            code, output = self.run_main("--dry-run")
        self.assertEqual(code, cli.EXIT_OK)
        self.assertIn("DRY RUN MODE", output)
        self.assertIn("items found", output)

    def test_navigation_error_exits_nonzero(self):
        error = NavigationError("/home/bob/.trash/x", RuntimeError("net::ERR_CONNECTION_RESET"))
        with patch.object(cli, "clean_trash", new=AsyncMock(side_effect=error)):
            code, output = self.run_main()
        self.assertEqual(code, cli.EXIT_ERROR)
        self.assertIn("Error: Failed to navigate to '/home/bob/.trash/x'", output)

    def test_session_error_exits_nonzero(self):
        with patch.object(cli, "clean_trash", new=AsyncMock(side_effect=SessionError("Login failed"))):
            code, output = self.run_main()
        self.assertEqual(code, cli.EXIT_ERROR)
        self.assertIn("Error: Login failed", output)

    def test_interrupt(self):
        with patch.object(cli, "clean_trash", new=AsyncMock(side_effect=asyncio.CancelledError())):
            code, output = self.run_main()
        self.assertEqual(code, cli.EXIT_INTERRUPTED)
        self.assertIn("Interrupted", output)

    def test_bad_config(self):
        code, output = self.run_main("-t", "-5")
        self.assertEqual(code, cli.EXIT_ERROR)
        self.assertIn("Timeout must be a positive", output)


if __name__ == '__main__':
    unittest.main()
