import unittest
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pathviz.core.errors import OutOfBounds
from pathviz.core.grid import Grid
from pathviz.core.operations import CLOSED, OPENED, TESTED, Operation, OperationLog, SearchGrid


class TestOperationLog(unittest.TestCase):
    def test_fifo(self):
        log = OperationLog()
        log.record(0, 0, OPENED, True)
        log.record(1, 0, CLOSED, 1)
        self.assertEqual(len(log), 2)
        self.assertEqual(log.popleft(), Operation(0, 0, OPENED, True))
        self.assertEqual(log.popleft(), Operation(1, 0, CLOSED, True))
        self.assertFalse(log)

    def test_clear_is_idempotent(self):
        log = OperationLog()
        log.record(0, 0, OPENED, True)
        log.clear()
        log.clear()
        self.assertEqual(len(log), 0)
        self.assertEqual(log.snapshot(), [])


class TestSearchGrid(unittest.TestCase):
    def setUp(self):
        self.log = OperationLog()
        self.grid = SearchGrid(Grid(3, 3), self.log)

    def test_every_write_is_recorded_in_order(self):
        self.grid.set_exploration_flag(1, 1, OPENED, True)
        self.grid.set_exploration_flag(1, 1, OPENED, True)   # same value again still counts
        self.grid.set_exploration_flag(2, 0, TESTED, True)
        self.grid.set_exploration_flag(1, 1, OPENED, False)
        self.grid.set_exploration_flag(1, 1, CLOSED, True)

        self.assertEqual(self.log.snapshot(), [
            Operation(1, 1, OPENED, True),
            Operation(1, 1, OPENED, True),
            Operation(2, 0, TESTED, True),
            Operation(1, 1, OPENED, False),
            Operation(1, 1, CLOSED, True),
        ])

    def test_flags_follow_writes(self):
        self.assertFalse(self.grid.is_opened(0, 2))
        self.grid.set_exploration_flag(0, 2, OPENED, True)
        self.grid.set_exploration_flag(0, 2, CLOSED, True)
        self.assertTrue(self.grid.is_opened(0, 2))
        self.assertTrue(self.grid.is_closed(0, 2))
        self.assertFalse(self.grid.is_tested(0, 2))

        self.grid.set_exploration_flag(0, 2, OPENED, False)
        self.assertFalse(self.grid.is_opened(0, 2))
        self.assertTrue(self.grid.is_closed(0, 2))

    def test_reads_do_not_log(self):
        self.grid.is_opened(0, 0)
        self.grid.get_exploration_flag(1, 1, CLOSED)
        self.grid.is_walkable_at(2, 2)
        list(self.grid.get_neighbors(1, 1))
        self.assertEqual(len(self.log), 0)

    def test_flags_start_unset_on_a_fresh_clone(self):
        source = Grid(3, 3)
        first = SearchGrid(source.clone(), OperationLog())
        first.set_exploration_flag(1, 1, OPENED, True)

        second = SearchGrid(source.clone(), OperationLog())
        self.assertFalse(second.is_opened(1, 1))

    def test_rejects_bad_writes(self):
        with self.assertRaises(ValueError):
            self.grid.set_exploration_flag(0, 0, "walkable", False)
        with self.assertRaises(OutOfBounds):
            self.grid.set_exploration_flag(3, 0, OPENED, True)
        self.assertEqual(len(self.log), 0)


if __name__ == '__main__':
    unittest.main()
