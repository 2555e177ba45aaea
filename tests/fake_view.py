"""In-memory IDirectoryView used by the engine tests."""

import copy
from typing import Dict, List, Optional, Set

from providers.interface import IDirectoryView, Entry, EntryKind, NavigationError
from core.engine import join_path


def file_entry(name):
    return Entry(name=name, kind=EntryKind.FILE)


def folder_entry(name):
    return Entry(name=name, kind=EntryKind.FOLDER)


class FakeDirectoryView(IDirectoryView):
    """
    A remote tree as nested dicts: a dict value is a folder, None is a file.

    Failure knobs:
      select_all_fails      paths where Select All is missing
      select_by_name_fails  paths where name-based selection finds nothing
      leave_behind          path -> list of file counts to leave undeleted on
                            successive bulk deletes
      single_failures       folder path -> number of single deletes that fail
      unreachable           paths whose navigation raises NavigationError
    """

    def __init__(self, tree: Dict, root: str = "/home/user/.trash"):
        self.tree = copy.deepcopy(tree)
        self.root = root
        self.path = root
        self.selected: Set[str] = set()
        self.select_all_fails: Set[str] = set()
        self.select_by_name_fails: Set[str] = set()
        self.leave_behind: Dict[str, List[int]] = {}
        self.single_failures: Dict[str, int] = {}
        self.unreachable: Set[str] = set()
        self.calls: List[tuple] = []
        self.delete_calls = 0

    def _node(self, path: str) -> Optional[Dict]:
        if path.rstrip("/") == self.root.rstrip("/"):
            return self.tree
        rel = path[len(self.root.rstrip("/")):].strip("/")
        node = self.tree
        for part in rel.split("/"):
            if not isinstance(node, dict) or part not in node or node[part] is None:
                return None
            node = node[part]
        return node

    def snapshot(self) -> Dict:
        return copy.deepcopy(self.tree)

    async def navigate(self, path: str) -> None:
        self.calls.append(("navigate", path))
        if path in self.unreachable or self._node(path) is None:
            raise NavigationError(path)
        self.path = path
        self.selected.clear()

    def current_path(self) -> str:
        return self.path

    async def reload(self) -> None:
        self.calls.append(("reload", self.path))
        self.selected.clear()

    async def wait_until_stable(self) -> bool:
        return True

    async def list_entries(self, retry_on_empty: bool = True) -> List[Entry]:
        self.calls.append(("list", self.path))
        node = self._node(self.path) or {}
        return [folder_entry(n) if isinstance(v, dict) else file_entry(n) for n, v in node.items()]

    async def select_all(self) -> bool:
        self.calls.append(("select_all", self.path))
        if self.path in self.select_all_fails:
            return False
        self.selected = set(self._node(self.path) or {})
        return True

    async def select_by_name(self, entries: List[Entry]) -> bool:
        self.calls.append(("select_by_name", self.path))
        if self.path in self.select_by_name_fails:
            return False
        node = self._node(self.path) or {}
        picked = {e.name for e in entries if e.name in node}
        self.selected |= picked
        return bool(picked)

    async def delete_selected(self) -> bool:
        self.calls.append(("delete", self.path))
        if not self.selected:
            return False
        self.delete_calls += 1
        node = self._node(self.path)
        names = sorted(self.selected)
        pending = self.leave_behind.get(self.path)
        keep = pending.pop(0) if pending else 0
        for name in names[keep:]:
            node.pop(name, None)
        self.selected.clear()
        return True

    async def select_and_delete_single(self, name: str, dry_run: bool = False) -> bool:
        target = join_path(self.path, name)
        self.calls.append(("delete_single", target))
        node = self._node(self.path) or {}
        if name not in node:
            return False
        if self.single_failures.get(target, 0) > 0:
            self.single_failures[target] -= 1
            return False
        if dry_run:
            return True
        self.delete_calls += 1
        node.pop(name)
        return True
