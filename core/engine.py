import asyncio
import logging
from typing import List, Optional, Callable

from providers.interface import IDirectoryView, Entry
from config import Timings
from .report import RunReport
from .safety import TraversalGuard
from .types import RunMode, DeletionStatus

logger = logging.getLogger("cptrash.engine")

# progress(path, action, report)
ProgressCallback = Callable[[str, str, RunReport], None]


def join_path(parent: str, name: str) -> str:
    """Child path with exactly one slash between parent and name."""
    return f"{parent.rstrip('/')}/{name}"


class TraversalEngine:
    """
    Depth-first, post-order deletion of everything under a remote directory.

    A directory gets at most one log entry, appended after all of its
    subfolders have been resolved; one holding only subfolders gets none.
    Soft failures become FAILED/SKIPPED entries; NavigationError and SafetyException abort the run.
    """

    def __init__(self, view: IDirectoryView, report: Optional[RunReport] = None,
                 mode: RunMode = RunMode.LIVE, guard: Optional[TraversalGuard] = None,
                 timings: Optional[Timings] = None, progress: Optional[ProgressCallback] = None):
        self.view = view
        self.report = report if report is not None else RunReport()
        self.mode = mode
        self.guard = guard or TraversalGuard()
        self.timings = timings or Timings()
        self.progress = progress

    @property
    def dry_run(self) -> bool:
        return self.mode == RunMode.DRY_RUN

    def _progress(self, path: str, action: str):
        if self.progress:
            self.progress(path, action, self.report)

    async def run(self, path: Optional[str] = None) -> RunReport:
        root = path or self.view.current_path()
        logger.info(f"Starting {self.mode.value} run at {root}")
        await self._visit(root, 0)
        logger.info(f"Run finished: {self.report.folders_scanned} folders scanned, "
                    f"{self.report.total_deleted} items {'found' if self.dry_run else 'deleted'}")
        return self.report

    async def _visit(self, path: str, depth: int):
        self.guard.enter(path, depth)
        try:
            await self._process(path, depth)
        finally:
            self.guard.leave(path)

    async def _process(self, path: str, depth: int):
        report = self.report
        report.folder_entered()
        self._progress(path, "Scanning")

        items = await self.view.list_entries()
        if not items:
            report.record(path, 0, DeletionStatus.EMPTY)
            return

        folders = [e for e in items if e.is_folder]
        files = [e for e in items if not e.is_folder]
        logger.debug(f"{path}: {len(folders)} folders, {len(files)} files")

        for folder in folders:
            folder_path = join_path(path, folder.name)
            self._progress(folder_path, "Entering")
            await self.view.navigate(folder_path)
            await self._visit(folder_path, depth + 1)

            self._progress(path, "Returning to")
            await self.view.navigate(path)
            await self._remove_folder(path, folder)

        await self._delete_files(path, len(files))

    async def _remove_folder(self, path: str, folder: Entry):
        if self.dry_run:
            await self.view.select_and_delete_single(folder.name, dry_run=True)
            self.report.add_deleted(1)
            return

        self._progress(path, f"Deleting folder {folder.name} in")
        deleted = await self.view.select_and_delete_single(folder.name)
        if not deleted:
            logger.debug(f"Retrying removal of {folder.name} after reload")
            await asyncio.sleep(self.timings.folder_retry_delay)
            await self.view.reload()
            deleted = await self.view.select_and_delete_single(folder.name)

        if deleted:
            await self.view.wait_until_stable()
            self.report.add_deleted(1)
        else:
            self.report.folder_failed(join_path(path, folder.name))

    async def _select(self, entries: List[Entry]) -> bool:
        if await self.view.select_all():
            return True
        logger.debug("Select All unavailable, selecting by name")
        return await self.view.select_by_name(entries)

    async def _delete_round(self, entries: List[Entry]) -> Optional[int]:
        """One select+delete pass. Returns files left afterwards, or None if nothing got selected."""
        if not await self._select(entries):
            return None
        await asyncio.sleep(self.timings.before_bulk_delete_delay)
        await self.view.delete_selected()
        await asyncio.sleep(self.timings.after_bulk_delete_delay)
        remaining = await self.view.list_entries()
        return sum(1 for e in remaining if not e.is_folder)

    async def _delete_files(self, path: str, initial_files: int):
        report = self.report
        current = await self.view.list_entries()
        files = [e for e in current if not e.is_folder]
        file_count = len(files)

        if file_count == 0:
            if initial_files > 0:
                # Gone as a side effect of processing the subfolders.
                status = DeletionStatus.SKIPPED if self.dry_run else DeletionStatus.DELETED
                report.record(path, initial_files, status)
            return

        if self.dry_run:
            report.add_deleted(file_count)
            report.record(path, file_count, DeletionStatus.SKIPPED)
            return

        self._progress(path, f"Deleting {file_count} files in")
        remaining = await self._delete_round(current)
        if remaining is None:
            report.record(path, 0, DeletionStatus.FAILED)
            return

        deleted = max(0, file_count - remaining)
        if remaining > 0:
            logger.debug(f"{remaining} files left in {path}, retrying once")
            left_entries = [e for e in await self.view.list_entries() if not e.is_folder]
            after_retry = await self._delete_round(left_entries)
            if after_retry is not None:
                deleted += max(0, remaining - after_retry)

        report.add_deleted(deleted)
        report.record(path, deleted, DeletionStatus.DELETED if deleted > 0 else DeletionStatus.FAILED)
