import logging
from typing import List

logger = logging.getLogger("cptrash.safety")


class TraversalGuard:
    def __init__(self, max_depth: int = 64):
        self.max_depth = max_depth
        self._ancestors: List[str] = []

    @staticmethod
    def _key(path: str) -> str:
        return path.rstrip("/") or "/"

    def enter(self, path: str, depth: int) -> bool:
        """
        Check a directory before it is visited.
        Returns True if safe, raises SafetyException if the walk is deeper than
        allowed or the path is already on the current ancestor chain.
        """
        if depth > self.max_depth:
            msg = f"Safety Limit Exceeded: {path} is at depth {depth}, limit is {self.max_depth}."
            logger.critical(msg)
            raise SafetyException(msg)

        key = self._key(path)
        if key in self._ancestors:
            msg = f"CRITICAL: Directory cycle detected at {path}"
            logger.critical(msg)
            raise SafetyException(msg)

        self._ancestors.append(key)
        return True

    def leave(self, path: str):
        key = self._key(path)
        if self._ancestors and self._ancestors[-1] == key:
            self._ancestors.pop()


class SafetyException(Exception):
    pass
