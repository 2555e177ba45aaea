from abc import ABC, abstractmethod
from enum import Enum, auto
from dataclasses import dataclass
from typing import List, Optional


class EntryKind(Enum):
    FILE = auto()
    FOLDER = auto()


@dataclass(frozen=True)
class Entry:
    name: str
    kind: EntryKind

    @property
    def is_folder(self) -> bool:
        return self.kind == EntryKind.FOLDER


class NavigationError(Exception):
    """Raised when a remote path cannot be reached at all."""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        message = f"Failed to navigate to '{path}'"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class IDirectoryView(ABC):
    """
    Abstract window onto one remote directory at a time.
    The view holds a single navigation state; callers must not interleave
    operations.
    """

    @abstractmethod
    async def navigate(self, path: str) -> None:
        """Load the listing of `path` and wait for it to stabilize."""
        pass

    @abstractmethod
    def current_path(self) -> str:
        """Path of the directory currently shown."""
        pass

    @abstractmethod
    async def reload(self) -> None:
        """Reload the current directory and wait for it to stabilize."""
        pass

    @abstractmethod
    async def wait_until_stable(self) -> bool:
        """Best-effort wait for the listing to stop changing."""
        pass

    @abstractmethod
    async def list_entries(self, retry_on_empty: bool = True) -> List[Entry]:
        """List the entries of the current directory."""
        pass

    @abstractmethod
    async def select_all(self) -> bool:
        """Select every row using the bulk affordance."""
        pass

    @abstractmethod
    async def select_by_name(self, entries: List[Entry]) -> bool:
        """Select rows one by one. True if at least one was selected."""
        pass

    @abstractmethod
    async def delete_selected(self) -> bool:
        """Delete the selection and confirm. True if the delete action fired."""
        pass

    @abstractmethod
    async def select_and_delete_single(self, name: str, dry_run: bool = False) -> bool:
        """Select exactly one entry by name and delete it."""
        pass
