from array import array
from collections import deque
from typing import Iterator, List, NamedTuple, Tuple

from pathviz.core.grid import Grid


# Exploration attributes a finder may write
OPENED = "opened"
CLOSED = "closed"
TESTED = "tested"

ATTRIBUTES = (OPENED, CLOSED, TESTED)

# Bit per attribute in SearchGrid.flags
FLAG_BITS = {
    OPENED: 0b001,
    CLOSED: 0b010,
    TESTED: 0b100,
}


class Operation(NamedTuple):
    x: int
    y: int
    attribute: str
    value: bool


class OperationLog:
    """
    FIFO record of exploration writes for the most recent search.
    The controller owns it; the playback scheduler only pops from the head.
    """

    def __init__(self):
        self._ops = deque()

    def record(self, x: int, y: int, attribute: str, value: bool):
        self._ops.append(Operation(x, y, attribute, bool(value)))

    def popleft(self) -> Operation:
        return self._ops.popleft()

    def clear(self):
        self._ops.clear()

    def snapshot(self) -> List[Operation]:
        return list(self._ops)

    def __len__(self) -> int:
        return len(self._ops)

    def __bool__(self) -> bool:
        return bool(self._ops)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._ops)


class SearchGrid:
    """
    The surface a finder searches on.

    Walkability comes from a frozen Grid clone. Exploration flags live in a
    private byte array and can only be written through
    set_exploration_flag(), which records every write (whatever the value)
    into the operation log before returning. Reads never log.
    """

    __slots__ = ('grid', 'width', 'height', 'flags', 'log')

    def __init__(self, grid: Grid, log: OperationLog):
        self.grid = grid
        self.width = grid.width
        self.height = grid.height
        self.flags = array('B', [0] * (grid.width * grid.height))
        self.log = log

    def contains(self, x: int, y: int) -> bool:
        return self.grid.contains(x, y)

    def is_walkable_at(self, x: int, y: int) -> bool:
        return self.grid.is_walkable_at(x, y)

    def get_neighbors(self, x: int, y: int, allow_diagonal: bool = False) -> Iterator[Tuple[int, int]]:
        return self.grid.get_neighbors(x, y, allow_diagonal)

    def get_exploration_flag(self, x: int, y: int, attribute: str) -> bool:
        return (self.flags[self.grid.get_index(x, y)] & FLAG_BITS[attribute]) != 0

    def set_exploration_flag(self, x: int, y: int, attribute: str, value: bool = True):
        bit = FLAG_BITS.get(attribute)
        if bit is None:
            raise ValueError(f"Unknown exploration attribute '{attribute}'")
        idx = self.grid.get_index(x, y)

        self.log.record(x, y, attribute, value)

        if value:
            self.flags[idx] |= bit
        else:
            self.flags[idx] &= ~bit

    # Shorthands finders read with
    def is_opened(self, x: int, y: int) -> bool:
        return self.get_exploration_flag(x, y, OPENED)

    def is_closed(self, x: int, y: int) -> bool:
        return self.get_exploration_flag(x, y, CLOSED)

    def is_tested(self, x: int, y: int) -> bool:
        return self.get_exploration_flag(x, y, TESTED)
