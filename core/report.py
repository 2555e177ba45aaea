import time
import logging
from typing import List, Tuple

from .types import DeletionLogEntry, DeletionStatus

logger = logging.getLogger("cptrash.report")


class RunReport:
    """
    Counters and the ordered per-directory audit log of one run.
    Counters only grow and log entries are never changed once appended.
    """

    def __init__(self):
        self.folders_scanned = 0
        self.total_deleted = 0
        self.failed_folders: List[str] = []
        self._entries: List[DeletionLogEntry] = []
        self.start_time = time.time()

    @property
    def entries(self) -> Tuple[DeletionLogEntry, ...]:
        return tuple(self._entries)

    def folder_entered(self):
        self.folders_scanned += 1

    def add_deleted(self, count: int):
        if count < 0:
            raise ValueError(f"Deleted count cannot be negative: {count}")
        self.total_deleted += count

    def record(self, path: str, items: int, status: DeletionStatus) -> DeletionLogEntry:
        entry = DeletionLogEntry(path=path, items=items, status=status)
        self._entries.append(entry)
        logger.info(f"{status.value}: {path} ({items} items)")
        return entry

    def folder_failed(self, path: str):
        self.failed_folders.append(path)
        logger.warning(f"Could not remove folder {path}")

    def count(self, status: DeletionStatus) -> int:
        return sum(1 for e in self._entries if e.status == status)

    def elapsed(self) -> float:
        return time.time() - self.start_time
