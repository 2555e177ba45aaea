#!/usr/bin/env python3
"""
cPanel Trash Cleaner
====================
Recursively deletes the contents of the cPanel File Manager trash
(/home/<user>/.trash) by driving the File Manager in a browser.

Usage:
    python cpanel_trash_cleaner.py --dry-run      # Count what would be deleted
    python cpanel_trash_cleaner.py                # Delete everything in the trash
    python cpanel_trash_cleaner.py -u https://example.com:2083 -n user -H

Credentials can also come from CPANEL_URL, CPANEL_USERNAME and
CPANEL_PASSWORD (a .env file is read), otherwise they are prompted for.
"""

import sys
import signal
import asyncio
import logging
import argparse

from playwright.async_api import Error as PlaywrightError

from config import load_config, prompt_missing, ConfigError, CleanerConfig
from logger_setup import setup_logger, format_browser_error
from utils import ProgressBar, format_summary_table, format_final_summary
from core.engine import TraversalEngine
from core.report import RunReport
from core.safety import TraversalGuard, SafetyException
from core.types import RunMode
from providers.interface import NavigationError
from providers.cpanel_provider import CPanelDirectoryView
from providers.session import BrowserSession, SessionError, resolve_browser

__version__ = "1.0.0"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130

logger = logging.getLogger("cptrash")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="cptrash",
        description="Recursively delete cPanel File Manager trash contents.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cptrash --dry-run                              # Preview only
  cptrash -u https://example.com:2083 -n myuser  # Delete, prompt for password
  cptrash -H -t 60000                            # Headless, 60s timeouts
        """
    )
    parser.add_argument("-u", "--url", help="cPanel URL (e.g., https://example.com:2083)")
    parser.add_argument("-n", "--username", help="cPanel username")
    parser.add_argument("-p", "--password", help="cPanel password")
    parser.add_argument("-d", "--dry-run", action="store_true",
                        help="Preview what would be deleted without actually deleting")
    parser.add_argument("-H", "--headless", action="store_true", default=None,
                        help="Run browser in headless mode")
    parser.add_argument("-t", "--timeout", type=int, help="Timeout in milliseconds (default: 30000)")
    parser.add_argument("-b", "--browser", help="Custom browser executable path")
    parser.add_argument("--max-depth", type=int, help="Maximum folder depth to descend (default: 64)")
    parser.add_argument("--config", help="JSON config file (default: cptrash.json if present)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show log messages on the console")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


async def clean_trash(config: CleanerConfig, browser, progress=None) -> RunReport:
    """Launch the browser, log in, open the trash and run the traversal."""
    session = BrowserSession(config)
    try:
        page = await session.start(browser)
        print(f"✓ Launched {browser['name']}")

        await session.login()
        print("✓ Logged in")

        await session.open_file_manager()
        view = CPanelDirectoryView(page, config.trash_root, config.timeout_ms, config.timings)
        await view.wait_until_stable()
        print("✓ Navigated to trash folder\n")

        engine = TraversalEngine(
            view,
            report=RunReport(),
            mode=RunMode.DRY_RUN if config.dry_run else RunMode.LIVE,
            guard=TraversalGuard(config.max_depth),
            timings=config.timings,
            progress=progress,
        )
        return await engine.run(config.trash_root)
    finally:
        await session.close()


async def run_until_signalled(coro):
    """Run `coro` as a task that SIGINT/SIGTERM cancel."""
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(coro)
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, task.cancel)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handlers; KeyboardInterrupt still applies.
            pass
    try:
        return await task
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def print_header(config):
    print("\n" + "=" * 70)
    print("  CPANEL TRASH CLEANER")
    print("=" * 70)
    if config.dry_run:
        print("  🔍 DRY RUN MODE - No files will be deleted")
        print("=" * 70)
    print()


def error_message(e):
    if isinstance(e, PlaywrightError):
        return format_browser_error(e)
    cause = getattr(e, "cause", None)
    if isinstance(cause, PlaywrightError):
        return f"Failed to navigate to '{e.path}': {format_browser_error(cause)}"
    text = str(e).strip()
    return text.splitlines()[0] if text else type(e).__name__


def main(argv=None):
    args = build_parser().parse_args(argv)
    _, log_filename = setup_logger(
        "cptrash", "cptrash", console_level=logging.INFO if args.verbose else logging.WARNING
    )

    try:
        config = load_config(args)
    except ConfigError as e:
        print(f"Error: {e}")
        return EXIT_ERROR

    print_header(config)
    try:
        config = prompt_missing(config)
        browser = resolve_browser(config)
    except (KeyboardInterrupt, EOFError):
        print("\nCancelled.")
        return EXIT_INTERRUPTED
    except SessionError as e:
        print(f"Error: {e}")
        return EXIT_ERROR

    logger.info(f"Run started (mode={'dry-run' if config.dry_run else 'live'}, user={config.username})")
    progress = ProgressBar()
    try:
        report = asyncio.run(run_until_signalled(clean_trash(config, browser, progress.update)))
    except (KeyboardInterrupt, asyncio.CancelledError):
        progress.finish("Interrupted! Browser session closed.", ok=False)
        logger.warning("Run interrupted")
        return EXIT_INTERRUPTED
    except (SessionError, NavigationError, SafetyException, PlaywrightError) as e:
        progress.finish("Error occurred", ok=False)
        logger.debug("Run aborted", exc_info=True)
        print(f"Error: {error_message(e)}")
        return EXIT_ERROR

    verb = "found" if config.dry_run else "deleted"
    progress.finish(f"Processed {report.folders_scanned} folders, {report.total_deleted} items {verb}")
    print(format_summary_table(report.entries))
    print(format_final_summary(report, config.dry_run))
    if log_filename:
        print(f"\n📄 Log saved to: {log_filename}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
