import unittest
import sys
import os

# Add project root to path so we can import pathviz
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pathviz.core.errors import OutOfBounds
from pathviz.core.grid import Grid


class TestGrid(unittest.TestCase):
    def test_initialization(self):
        w, h = 10, 7
        grid = Grid(w, h)
        self.assertEqual(len(grid.cells), w * h, f"Grid initialization size mismatch. Expected {w*h}, got {len(grid.cells)}")
        # Everything starts walkable
        for val in grid.cells:
            self.assertEqual(val, Grid.WALKABLE)

    def test_rejects_empty_grid(self):
        with self.assertRaises(ValueError):
            Grid(0, 5)

    def test_coordinates(self):
        grid = Grid(5, 5)
        self.assertEqual(grid.get_index(2, 2), 12)  # 2 * 5 + 2

        with self.assertRaises(OutOfBounds):
            grid.get_index(-1, 0)
        with self.assertRaises(IndexError):
            grid.get_index(0, 5)

    def test_walkability(self):
        grid = Grid(3, 3)
        self.assertTrue(grid.is_walkable_at(1, 1))
        grid.set_walkable_at(1, 1, False)
        self.assertFalse(grid.is_walkable_at(1, 1))
        grid.set_walkable_at(1, 1, True)
        self.assertTrue(grid.is_walkable_at(1, 1))

    def test_out_of_bounds_write_leaves_grid_untouched(self):
        grid = Grid(3, 3)
        before = grid.cells.tobytes()
        with self.assertRaises(OutOfBounds):
            grid.set_walkable_at(3, 0, False)
        with self.assertRaises(OutOfBounds):
            grid.is_walkable_at(0, -1)
        self.assertEqual(grid.cells.tobytes(), before)

    def test_clone_is_independent(self):
        grid = Grid(4, 4)
        grid.set_walkable_at(1, 2, False)

        copy = grid.clone()
        self.assertEqual(copy.cells.tobytes(), grid.cells.tobytes())
        self.assertFalse(copy.is_walkable_at(1, 2))

        # Painting on the original must not leak into the clone, and back
        grid.set_walkable_at(3, 3, False)
        copy.set_walkable_at(0, 0, False)
        self.assertTrue(copy.is_walkable_at(3, 3))
        self.assertTrue(grid.is_walkable_at(0, 0))

    def test_blocked_cells(self):
        grid = Grid(4, 3)
        grid.set_walkable_at(2, 1, False)
        grid.set_walkable_at(0, 2, False)
        self.assertEqual(sorted(grid.blocked_cells()), [(0, 2), (2, 1)])

    def test_neighbors(self):
        grid = Grid(3, 3)
        # Center cell (1,1) should have 4 neighbors
        self.assertEqual(len(list(grid.get_neighbors(1, 1))), 4)

        # Corner cell (0,0) should have 2 neighbors (East, South)
        corner_neighbors = list(grid.get_neighbors(0, 0))
        self.assertEqual(sorted(corner_neighbors), [(0, 1), (1, 0)])

        grid.set_walkable_at(1, 0, False)
        self.assertEqual(list(grid.get_neighbors(0, 0)), [(0, 1)])

    def test_diagonal_neighbors_do_not_cut_corners(self):
        grid = Grid(3, 3)
        self.assertEqual(len(list(grid.get_neighbors(1, 1, allow_diagonal=True))), 8)

        grid.set_walkable_at(1, 0, False)
        neighbors = set(grid.get_neighbors(0, 0, allow_diagonal=True))
        self.assertNotIn((1, 1), neighbors)  # would squeeze past (1, 0)
        self.assertEqual(neighbors, {(0, 1)})


if __name__ == '__main__':
    unittest.main()
