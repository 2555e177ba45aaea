from enum import Enum
from dataclasses import dataclass


class RunMode(Enum):
    DRY_RUN = "dry-run"
    LIVE = "live"


class DeletionStatus(Enum):
    DELETED = "deleted"
    SKIPPED = "skipped"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class DeletionLogEntry:
    path: str
    items: int
    status: DeletionStatus
