import heapq
import math
from collections import deque
from typing import Dict, Iterable, List, Tuple

from pathviz.algo.base import Finder, Path, backtrace
from pathviz.core.operations import CLOSED, OPENED, Operation, SearchGrid

SQRT2 = math.sqrt(2)


def manhattan(dx: int, dy: int) -> float:
    return dx + dy


def octile(dx: int, dy: int) -> float:
    f = SQRT2 - 1
    return f * dx + dy if dx < dy else f * dy + dx


class BreadthFirstFinder(Finder):
    def find_path(self, start_x, start_y, end_x, end_y, grid: SearchGrid) -> Path:
        start = (start_x, start_y)
        end = (end_x, end_y)
        parents: Dict[Tuple[int, int], Tuple[int, int]] = {}

        queue = deque([start])
        grid.set_exploration_flag(start_x, start_y, OPENED, True)

        while queue:
            current = queue.popleft()
            cx, cy = current
            grid.set_exploration_flag(cx, cy, CLOSED, True)

            if current == end:
                return backtrace(parents, end)

            for nx, ny in grid.get_neighbors(cx, cy, self.allow_diagonal):
                # Skip anything already queued or expanded
                if grid.is_opened(nx, ny) or grid.is_closed(nx, ny):
                    continue
                parents[(nx, ny)] = current
                grid.set_exploration_flag(nx, ny, OPENED, True)
                queue.append((nx, ny))

        return []


class AStarFinder(Finder):
    def __init__(self, allow_diagonal: bool = False, weight: float = 1.0):
        super().__init__(allow_diagonal)
        self.weight = weight

    def heuristic(self, dx: int, dy: int) -> float:
        return octile(dx, dy) if self.allow_diagonal else manhattan(dx, dy)

    def find_path(self, start_x, start_y, end_x, end_y, grid: SearchGrid) -> Path:
        start = (start_x, start_y)
        end = (end_x, end_y)
        parents: Dict[Tuple[int, int], Tuple[int, int]] = {}
        g_score: Dict[Tuple[int, int], float] = {start: 0.0}

        # Priority Queue: (f_score, seq, x, y); seq keeps ties FIFO
        open_set: List[tuple] = []
        seq = 0
        heapq.heappush(open_set, (0.0, seq, start_x, start_y))
        grid.set_exploration_flag(start_x, start_y, OPENED, True)

        while open_set:
            _, _, cx, cy = heapq.heappop(open_set)
            if grid.is_closed(cx, cy):
                continue  # stale entry
            grid.set_exploration_flag(cx, cy, CLOSED, True)

            if (cx, cy) == end:
                return backtrace(parents, end)

            curr_g = g_score[(cx, cy)]
            for nx, ny in grid.get_neighbors(cx, cy, self.allow_diagonal):
                if grid.is_closed(nx, ny):
                    continue

                step = 1.0 if (nx == cx or ny == cy) else SQRT2
                new_g = curr_g + step
                old_g = g_score.get((nx, ny))

                if old_g is None or new_g < old_g:
                    g_score[(nx, ny)] = new_g
                    parents[(nx, ny)] = (cx, cy)
                    h = self.weight * self.heuristic(abs(nx - end_x), abs(ny - end_y))
                    seq += 1
                    heapq.heappush(open_set, (new_g + h, seq, nx, ny))
                    if not grid.is_opened(nx, ny):
                        grid.set_exploration_flag(nx, ny, OPENED, True)

        return []


class DijkstraFinder(AStarFinder):
    """ Dijkstra is just A* with h(n) = 0. """
    def heuristic(self, dx, dy):
        return 0


class BestFirstFinder(AStarFinder):
    """Greedy: the heuristic dominates the accumulated cost."""
    def heuristic(self, dx, dy):
        return super().heuristic(dx, dy) * 1000000


class ReplayFinder(Finder):
    """
    Feeds a previously recorded search back through the finder contract, so a
    saved operation log replays through the same controller and scheduler.
    """

    def __init__(self, operations: Iterable[Operation], path: Path):
        super().__init__()
        self.operations = list(operations)
        self.path = list(path)

    def find_path(self, start_x, start_y, end_x, end_y, grid: SearchGrid) -> Path:
        for op in self.operations:
            grid.set_exploration_flag(op.x, op.y, op.attribute, op.value)
        return list(self.path)


FINDERS = {
    "astar": AStarFinder,
    "bfs": BreadthFirstFinder,
    "dijkstra": DijkstraFinder,
    "bestfirst": BestFirstFinder,
}


def create_finder(name: str, allow_diagonal: bool = False) -> Finder:
    try:
        cls = FINDERS[name]
    except KeyError:
        raise ValueError(f"Unknown finder '{name}', expected one of {sorted(FINDERS)}") from None
    return cls(allow_diagonal=allow_diagonal)
