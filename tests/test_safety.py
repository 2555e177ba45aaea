import unittest
from core.safety import TraversalGuard, SafetyException


class TestTraversalGuard(unittest.TestCase):
    def setUp(self):
        self.guard = TraversalGuard(max_depth=2)

    def test_within_depth_limit(self):
        """Directories up to max_depth are allowed."""
        self.assertTrue(self.guard.enter("/t", 0))
        self.assertTrue(self.guard.enter("/t/a", 1))
        self.assertTrue(self.guard.enter("/t/a/b", 2))

    def test_depth_limit_exceeded(self):
        """Going one level deeper than max_depth is blocked."""
        with self.assertRaises(SafetyException):
            self.guard.enter("/t/a/b/c", 3)

    def test_cycle_on_ancestor_chain(self):
        """Revisiting a directory that is still being processed is blocked."""
        guard = TraversalGuard()
        guard.enter("/t", 0)
        guard.enter("/t/a", 1)
        # Trailing slash is the same directory
        with self.assertRaises(SafetyException):
            guard.enter("/t/a/", 2)

    def test_siblings_are_not_cycles(self):
        """A directory left behind can be entered again."""
        guard = TraversalGuard()
        guard.enter("/t", 0)
        guard.enter("/t/a", 1)
        guard.leave("/t/a")
        self.assertTrue(guard.enter("/t/a", 1))

if __name__ == '__main__':
    unittest.main()
