from array import array
from typing import Iterator, Tuple

from pathviz.core.errors import OutOfBounds


class Grid:
    # Walkability byte values
    BLOCKED = 0
    WALKABLE = 1

    # Neighbor offsets, orthogonal first (N, E, S, W) then diagonals
    ORTHOGONAL = ((0, -1), (1, 0), (0, 1), (-1, 0))
    DIAGONAL = ((1, -1), (1, 1), (-1, 1), (-1, -1))

    __slots__ = ('width', 'height', 'cells')

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        # 'B' (unsigned char) -> 1 byte per cell, everything walkable
        self.cells = array('B', [self.WALKABLE] * (width * height))

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_index(self, x: int, y: int) -> int:
        if 0 <= x < self.width and 0 <= y < self.height:
            return y * self.width + x
        raise OutOfBounds(x, y)

    def is_walkable_at(self, x: int, y: int) -> bool:
        return self.cells[self.get_index(x, y)] == self.WALKABLE

    def set_walkable_at(self, x: int, y: int, walkable: bool):
        idx = self.get_index(x, y)
        self.cells[idx] = self.WALKABLE if walkable else self.BLOCKED

    def clone(self) -> 'Grid':
        """
        Copies walkability only. The copy owns its own buffer, so painting
        walls on the original never leaks into a search running on the clone.
        """
        copy = Grid.__new__(Grid)
        copy.width = self.width
        copy.height = self.height
        copy.cells = array('B', self.cells)
        return copy

    def blocked_cells(self) -> Iterator[Tuple[int, int]]:
        for idx, val in enumerate(self.cells):
            if val == self.BLOCKED:
                yield (idx % self.width, idx // self.width)

    def get_neighbors(self, x: int, y: int, allow_diagonal: bool = False) -> Iterator[Tuple[int, int]]:
        """
        Yields walkable (nx, ny) around (x, y).
        Diagonal moves may not cut a blocked corner.
        """
        for dx, dy in self.ORTHOGONAL:
            nx, ny = x + dx, y + dy
            if self.contains(nx, ny) and self.cells[ny * self.width + nx] == self.WALKABLE:
                yield (nx, ny)

        if not allow_diagonal:
            return

        for dx, dy in self.DIAGONAL:
            nx, ny = x + dx, y + dy
            if not self.contains(nx, ny) or self.cells[ny * self.width + nx] != self.WALKABLE:
                continue
            # Both orthogonal cells we'd squeeze between must be open
            if (self.cells[y * self.width + nx] == self.WALKABLE
                    and self.cells[ny * self.width + x] == self.WALKABLE):
                yield (nx, ny)
