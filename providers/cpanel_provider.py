import logging
from typing import List
from urllib.parse import urlparse, urlunparse, parse_qs, urlencode

from playwright.async_api import Error as PlaywrightError

from config import Timings
from .interface import IDirectoryView, Entry, NavigationError
from .stabilizer import StabilizationPoller
from .lister import ItemLister
from .selector import RowSelector

logger = logging.getLogger("cptrash.view")

DIR_PARAM = "dir"


def with_dir_param(url: str, path: str) -> str:
    """Return `url` with its directory query parameter set to `path`."""
    parsed = urlparse(url)
    query = parse_qs(parsed.query, keep_blank_values=True)
    query[DIR_PARAM] = [path]
    return urlunparse(parsed._replace(query=urlencode(query, doseq=True)))


def dir_param(url: str):
    values = parse_qs(urlparse(url).query).get(DIR_PARAM)
    return values[0] if values else None


class CPanelDirectoryView(IDirectoryView):
    """IDirectoryView over a logged-in cPanel File Manager page."""

    def __init__(self, page, trash_root: str, timeout_ms: int, timings: Timings = None):
        self.page = page
        self.trash_root = trash_root
        self.timings = timings or Timings()
        self.poller = StabilizationPoller(page, timeout_ms, self.timings)
        self.lister = ItemLister(page, self.timings)
        self.selector = RowSelector(page, self.timings)

    async def navigate(self, path: str) -> None:
        url = with_dir_param(self.page.url, path)
        logger.debug(f"Navigating to {path}")
        try:
            await self.page.goto(url, wait_until="domcontentloaded",
                                 timeout=self.timings.navigation_timeout_ms)
        except PlaywrightError as e:
            raise NavigationError(path, e) from e
        await self.poller.wait()

    def current_path(self) -> str:
        return dir_param(self.page.url) or self.trash_root

    async def reload(self) -> None:
        logger.debug(f"Reloading {self.current_path()}")
        try:
            await self.page.reload(wait_until="domcontentloaded",
                                   timeout=self.timings.navigation_timeout_ms)
        except PlaywrightError as e:
            raise NavigationError(self.current_path(), e) from e
        await self.poller.wait()

    async def wait_until_stable(self) -> bool:
        return await self.poller.wait()

    async def list_entries(self, retry_on_empty: bool = True) -> List[Entry]:
        return await self.lister.list_entries(retry_on_empty)

    async def select_all(self) -> bool:
        return await self.selector.select_all()

    async def select_by_name(self, entries: List[Entry]) -> bool:
        return await self.selector.select_by_name(entries)

    async def delete_selected(self) -> bool:
        return await self.selector.delete_selected()

    async def select_and_delete_single(self, name: str, dry_run: bool = False) -> bool:
        return await self.selector.select_and_delete_single(name, dry_run)
