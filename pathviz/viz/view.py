import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, NamedTuple, Sequence, Tuple

logger = logging.getLogger(__name__)


class SearchStats(NamedTuple):
    path_length: float
    time_spent: float       # milliseconds
    operation_count: int


class View(ABC):
    """
    What the controller needs from a renderer.

    supported_operations filters which recorded attributes get drawn during
    playback. animation_effect_duration (seconds) is how long a single cell
    colorize takes; it bounds deferred cleanup when the view can't signal
    completion itself.
    """

    supported_operations = frozenset({"opened", "closed"})
    animation_effect_duration = 0.05

    @abstractmethod
    def set_attribute_at(self, x: int, y: int, attribute: str, value: bool):
        pass

    @abstractmethod
    def draw_path(self, path: Sequence[Tuple[int, int]]):
        pass

    @abstractmethod
    def show_stats(self, stats: SearchStats):
        pass

    @abstractmethod
    def clear_footprints(self):
        pass

    @abstractmethod
    def clear_path(self):
        pass

    @abstractmethod
    def clear_blocked_nodes(self):
        pass

    # Optional surface; defaults do nothing

    def set_start_pos(self, x: int, y: int):
        pass

    def set_end_pos(self, x: int, y: int):
        pass

    def show_actions(self, actions: Sequence[str]):
        pass

    def show_endpoint_prompt(self, x: int, y: int):
        pass

    def hide_endpoint_prompt(self):
        pass

    def show_error(self, message: str):
        logger.warning(message)

    def wait_for_animations(self, callback: Callable[[], None]) -> bool:
        """
        Ask to be called back once every in-flight animation has finished.
        Return False if this view can't tell; the caller then falls back to
        a timer based on animation_effect_duration.
        """
        return False


class HeadlessView(View):
    """Records everything it is asked to draw. Used by the CLI and tests."""

    def __init__(self, supported_operations=None, animation_effect_duration=None):
        if supported_operations is not None:
            self.supported_operations = frozenset(supported_operations)
        if animation_effect_duration is not None:
            self.animation_effect_duration = animation_effect_duration

        self.rendered: List[Tuple[int, int, str, bool]] = []
        self.cells: Dict[Tuple[int, int], Dict[str, bool]] = {}
        self.path: List[Tuple[int, int]] = []
        self.stats: List[SearchStats] = []
        self.actions: Tuple[str, ...] = ()
        self.errors: List[str] = []
        self.prompt = None
        self.start_pos = None
        self.end_pos = None

    def set_attribute_at(self, x, y, attribute, value):
        self.rendered.append((x, y, attribute, value))
        self.cells.setdefault((x, y), {})[attribute] = value

    def draw_path(self, path):
        self.path = list(path)
        logger.debug(f"Path drawn ({len(self.path)} cells)")

    def show_stats(self, stats):
        self.stats.append(stats)
        logger.info(f"Length: {stats.path_length:.4f} | Time: {stats.time_spent}ms | "
                    f"Operations: {stats.operation_count}")

    def clear_footprints(self):
        for attrs in self.cells.values():
            for attr in ("opened", "closed", "tested"):
                attrs.pop(attr, None)

    def clear_path(self):
        self.path = []

    def clear_blocked_nodes(self):
        for attrs in self.cells.values():
            attrs.pop("walkable", None)

    def set_start_pos(self, x, y):
        self.start_pos = (x, y)

    def set_end_pos(self, x, y):
        self.end_pos = (x, y)

    def show_actions(self, actions):
        self.actions = tuple(actions)

    def show_endpoint_prompt(self, x, y):
        self.prompt = (x, y)

    def hide_endpoint_prompt(self):
        self.prompt = None

    def show_error(self, message):
        super().show_error(message)
        self.errors.append(message)

    def footprint(self, attribute: str) -> List[Tuple[int, int]]:
        return [pos for pos, attrs in self.cells.items() if attrs.get(attribute)]
