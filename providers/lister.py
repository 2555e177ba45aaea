import asyncio
import logging
from collections import Counter
from typing import List, Dict, Any, Callable, Tuple

from playwright.async_api import Error as PlaywrightError

from config import Timings
from .interface import Entry, EntryKind

logger = logging.getLogger("cptrash.lister")

# Raw row data only; classification happens in Python so each heuristic stays separate.
EXTRACT_ROWS_JS = """() => {
    const result = [];
    const dataTable = document.querySelector('.yui-dt-data');
    if (!dataTable) return result;
    dataTable.querySelectorAll('tr.yui-dt-rec').forEach((row) => {
        const nameSpan = row.querySelector('span.renameable');
        if (!nameSpan) return;
        const name = nameSpan.getAttribute('title') || (nameSpan.textContent || '').trim();
        const mimeCell = row.querySelector('td[class*="mimetype"]');
        result.push({
            name: name,
            folderIcon: row.querySelector('.fa-folder') !== null,
            mimetype: mimeCell ? (mimeCell.textContent || '') : '',
        });
    });
    return result;
}"""

RawRow = Dict[str, Any]


def has_folder_icon(row: RawRow) -> bool:
    return bool(row.get("folderIcon"))


def mimetype_is_directory(row: RawRow) -> bool:
    return "directory" in (row.get("mimetype") or "")


# Tried in order; the first one that recognises a folder wins.
FOLDER_STRATEGIES: List[Tuple[str, Callable[[RawRow], bool]]] = [
    ("folder-icon", has_folder_icon),
    ("mimetype", mimetype_is_directory),
]


def classify(row: RawRow) -> EntryKind:
    for _label, strategy in FOLDER_STRATEGIES:
        if strategy(row):
            return EntryKind.FOLDER
    return EntryKind.FILE


def rows_to_entries(rows: List[RawRow]) -> List[Entry]:
    entries = []
    for row in rows:
        name = (row.get("name") or "").strip()
        if not name or name in (".", ".."):
            continue
        entries.append(Entry(name=name, kind=classify(row)))
    return entries


def find_duplicates(entries: List[Entry]) -> List[str]:
    counts = Counter(e.name for e in entries)
    return sorted(name for name, n in counts.items() if n > 1)


class ItemLister:
    """Reads the current File Manager listing. Never raises."""

    def __init__(self, page, timings: Timings = None):
        self.page = page
        self.timings = timings or Timings()

    async def _fetch(self) -> List[Entry]:
        try:
            rows = await self.page.evaluate(EXTRACT_ROWS_JS)
        except PlaywrightError as e:
            logger.debug(f"Row extraction failed: {e}")
            return []
        return rows_to_entries(rows or [])

    async def list_entries(self, retry_on_empty: bool = True) -> List[Entry]:
        t = self.timings
        await asyncio.sleep(t.list_pre_delay)

        entries = await self._fetch()

        # An empty table may just be slow to render.
        if not entries and retry_on_empty:
            for _ in range(t.empty_retries):
                await asyncio.sleep(t.empty_retry_delay)
                entries = await self._fetch()
                if entries:
                    break

        duplicates = find_duplicates(entries)
        if duplicates:
            logger.warning(f"Duplicate names in listing, first match will be used: {', '.join(duplicates)}")

        return entries
