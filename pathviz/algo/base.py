import math
from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple

from pathviz.core.operations import SearchGrid

Path = List[Tuple[int, int]]


class Finder(ABC):
    """
    Contract for a pathfinding function.

    find_path() runs synchronously to completion and may only touch
    exploration state through grid.set_exploration_flag(), so the
    controller's operation log sees every step. Returns the path from start
    to end inclusive, or [] when the end is unreachable.
    """

    def __init__(self, allow_diagonal: bool = False):
        self.allow_diagonal = allow_diagonal

    @abstractmethod
    def find_path(self, start_x: int, start_y: int, end_x: int, end_y: int, grid: SearchGrid) -> Path:
        pass


def backtrace(parents: dict, end: Tuple[int, int]) -> Path:
    path = [end]
    curr = end
    while curr in parents:
        curr = parents[curr]
        path.append(curr)
    path.reverse()
    return path


def path_length(path: Sequence[Tuple[int, int]]) -> float:
    """Euclidean length of the path polyline."""
    total = 0.0
    for (ax, ay), (bx, by) in zip(path, path[1:]):
        total += math.hypot(bx - ax, by - ay)
    return total
