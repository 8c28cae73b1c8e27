"""
The visualization controller.

A Controller is the session context: it owns the Grid, the endpoints, the
OperationLog and the state machine. The finder runs synchronously against a
clone of the grid while every exploration write lands in the log; the
PlaybackScheduler then replays the log to the view at a fixed rate.

State diagram (event: from -> to):

    init                none -> ready
    start               ready | modified | restarting -> starting
    search              starting -> searching        (fired on entering starting)
    fail                starting | restarting -> ready (finder raised or endpoints broke)
    pause / resume      searching <-> paused
    cancel              paused -> ready
    finish              searching -> finished        (fired when the log runs dry)
    modify              finished -> modified
    restart             searching | finished -> restarting
    clear               finished | modified -> ready
    reset               * -> ready
    drag_start/drag_end ready | finished -> dragging_start / dragging_end
    draw_wall/erase_wall ready | finished -> drawing_wall / erasing_wall
    rest                dragging_* | drawing_wall | erasing_wall -> ready
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from pathviz.algo.base import Finder, path_length
from pathviz.controller.playback import PlaybackScheduler
from pathviz.core.errors import InvalidEndpoints, SearchFailed, UnknownLocation
from pathviz.core.grid import Grid
from pathviz.core.operations import OperationLog, SearchGrid
from pathviz.core.statemachine import WILDCARD, StateMachine
from pathviz.core.timers import TimerQueue
from pathviz.io.layout import Layout
from pathviz.viz.view import SearchStats, View

logger = logging.getLogger(__name__)


class State(Enum):
    NONE = "none"
    READY = "ready"
    STARTING = "starting"
    SEARCHING = "searching"
    PAUSED = "paused"
    FINISHED = "finished"
    MODIFIED = "modified"
    RESTARTING = "restarting"
    DRAGGING_START = "dragging_start"
    DRAGGING_END = "dragging_end"
    DRAWING_WALL = "drawing_wall"
    ERASING_WALL = "erasing_wall"


TRANSITIONS = [
    ("init", State.NONE, State.READY),
    ("start", (State.READY, State.MODIFIED, State.RESTARTING), State.STARTING),
    ("search", State.STARTING, State.SEARCHING),
    ("fail", (State.STARTING, State.RESTARTING), State.READY),
    ("pause", State.SEARCHING, State.PAUSED),
    ("resume", State.PAUSED, State.SEARCHING),
    ("cancel", State.PAUSED, State.READY),
    ("finish", State.SEARCHING, State.FINISHED),
    ("modify", State.FINISHED, State.MODIFIED),
    ("restart", (State.SEARCHING, State.FINISHED), State.RESTARTING),
    ("clear", (State.FINISHED, State.MODIFIED), State.READY),
    ("reset", WILDCARD, State.READY),
    ("drag_start", (State.READY, State.FINISHED), State.DRAGGING_START),
    ("drag_end", (State.READY, State.FINISHED), State.DRAGGING_END),
    ("draw_wall", (State.READY, State.FINISHED), State.DRAWING_WALL),
    ("erase_wall", (State.READY, State.FINISHED), State.ERASING_WALL),
    ("rest", (State.DRAGGING_START, State.DRAGGING_END,
              State.DRAWING_WALL, State.ERASING_WALL), State.READY),
]

# Externally triggerable actions published to the view on entering a state
ACTIONS = {
    State.READY: ("start", "reset"),
    State.SEARCHING: ("restart", "pause"),
    State.PAUSED: ("resume", "cancel"),
    State.FINISHED: ("restart", "clear"),
    State.MODIFIED: ("start", "clear"),
}

# States in which endpoints may be reassigned without a drag
EDITABLE_STATES = frozenset({State.READY, State.FINISHED, State.MODIFIED})


@dataclass
class ControllerConfig:
    grid_size: Tuple[int, int] = (70, 100)  # columns, rows
    operations_per_second: float = 300
    # Deferred cleanup waits animation_effect_duration * cleanup_slack
    cleanup_slack: float = 1.2


class Controller:
    def __init__(self, view: View, finder: Finder, timers: TimerQueue,
                 config: Optional[ControllerConfig] = None, layout: Optional[Layout] = None):
        self.view = view
        self.finder = finder
        self.timers = timers
        self.config = config or ControllerConfig()
        self.layout = layout

        if layout is not None:
            self.width, self.height = layout.width, layout.height
        else:
            self.width, self.height = self.config.grid_size
        self.grid = Grid(self.width, self.height)

        self.operations = OperationLog()
        self.start_x: Optional[int] = None
        self.start_y: Optional[int] = None
        self.end_x: Optional[int] = None
        self.end_y: Optional[int] = None

        self.path = []
        self.time_spent = 0.0
        self.operation_count = 0

        self.playback = PlaybackScheduler(timers, self.operations, view,
                                          self.config.operations_per_second,
                                          self._on_playback_exhausted)

        self.machine = StateMachine(State.NONE, TRANSITIONS)
        for state in State:
            self.machine.on_enter(state, self._announce)
        self.machine.on_enter(State.READY, self._enter_ready)
        self.machine.on_enter(State.STARTING, self._enter_starting)
        self.machine.on_enter(State.SEARCHING, self._enter_searching)
        self.machine.on_leave(State.SEARCHING, self._leave_searching)
        self.machine.on_enter(State.FINISHED, self._enter_finished)
        self.machine.on_enter(State.RESTARTING, self._enter_restarting)
        self.machine.on_event("cancel", self._on_clear)
        self.machine.on_event("fail", self._on_clear)
        self.machine.on_event("clear", self._on_clear)
        self.machine.on_event("reset", self._on_reset)
        self.machine.on_event("draw_wall", self._on_paint)
        self.machine.on_event("erase_wall", self._on_paint)

    # -- queries ---------------------------------------------------------

    @property
    def state(self) -> State:
        return self.machine.current

    def is_(self, state: State) -> bool:
        return self.machine.is_(state)

    def can(self, event: str) -> bool:
        return self.machine.can(event)

    def available_actions(self) -> Tuple[str, ...]:
        return ACTIONS.get(self.state, ())

    @property
    def stats(self) -> SearchStats:
        return SearchStats(path_length(self.path), self.time_spent, self.operation_count)

    def is_walkable_at(self, x: int, y: int) -> bool:
        return self.grid.is_walkable_at(x, y)

    def is_start_pos(self, x: int, y: int) -> bool:
        return x == self.start_x and y == self.start_y

    def is_end_pos(self, x: int, y: int) -> bool:
        return x == self.end_x and y == self.end_y

    def is_start_or_end_pos(self, x: int, y: int) -> bool:
        return self.is_start_pos(x, y) or self.is_end_pos(x, y)

    # -- events ----------------------------------------------------------

    def init(self, start: Optional[Tuple[int, int]] = None,
             end: Optional[Tuple[int, int]] = None) -> bool:
        """Applies the layout (if any), places the endpoints and enters ready."""
        if not self.can("init"):
            return False

        if self.layout is not None:
            for x, y in self.layout.blocked:
                self.set_walkable_at(x, y, False)
            start = start or self.layout.start
            end = end or self.layout.end

        default_start, default_end = self.default_endpoints()
        self.set_start_pos(*(start or default_start))
        self.set_end_pos(*(end or default_end))

        return self.machine.fire("init")

    def start(self) -> bool:
        if not self.can("start"):
            return False
        self.validate_endpoints()
        return self.machine.fire("start")

    def pause(self) -> bool:
        return self.machine.fire("pause")

    def resume(self) -> bool:
        return self.machine.fire("resume")

    def cancel(self) -> bool:
        return self.machine.fire("cancel")

    def restart(self) -> bool:
        return self.machine.fire("restart")

    def clear(self) -> bool:
        return self.machine.fire("clear")

    def modify(self) -> bool:
        return self.machine.fire("modify")

    def reset(self) -> bool:
        return self.machine.fire("reset")

    def drag_start(self) -> bool:
        return self.machine.fire("drag_start")

    def drag_end(self) -> bool:
        return self.machine.fire("drag_end")

    def draw_wall(self, x: int, y: int) -> bool:
        if not self.can("draw_wall"):
            return False
        self._check_wall_target(x, y)
        return self.machine.fire("draw_wall", x, y)

    def erase_wall(self, x: int, y: int) -> bool:
        if not self.can("erase_wall"):
            return False
        self._check_wall_target(x, y)
        return self.machine.fire("erase_wall", x, y)

    def rest(self) -> bool:
        return self.machine.fire("rest")

    # -- model mutations -------------------------------------------------

    def set_start_pos(self, x: int, y: int):
        self._check_endpoint(x, y, other=(self.end_x, self.end_y), what="Start")
        self.start_x, self.start_y = x, y
        self.view.set_start_pos(x, y)

    def set_end_pos(self, x: int, y: int):
        self._check_endpoint(x, y, other=(self.start_x, self.start_y), what="End")
        self.end_x, self.end_y = x, y
        self.view.set_end_pos(x, y)

    def set_walkable_at(self, x: int, y: int, walkable: bool):
        if not walkable and self.is_start_or_end_pos(x, y):
            raise InvalidEndpoints(f"Cannot block endpoint cell ({x}, {y})")
        self.grid.set_walkable_at(x, y, walkable)
        self.view.set_attribute_at(x, y, "walkable", walkable)

    def assign_endpoint(self, which: str, x: int, y: int) -> bool:
        """
        Moves the start or end marker outside of a drag. Only allowed while
        no search is replaying; a finished search becomes 'modified'.
        """
        if self.state not in EDITABLE_STATES:
            logger.debug(f"Ignoring {which} assignment in state {self.state.value}")
            return False
        if which == "start":
            self.set_start_pos(x, y)
        elif which == "end":
            self.set_end_pos(x, y)
        else:
            raise ValueError(f"Unknown endpoint '{which}'")
        if self.is_(State.FINISHED):
            self.modify()
        return True

    def locate(self, query: str) -> bool:
        """Moves the end marker to a named location from the layout."""
        try:
            if self.layout is None:
                raise UnknownLocation(f"No layout loaded, cannot find '{query}'")
            x, y = self.layout.lookup_room(query)
        except UnknownLocation as e:
            self.view.show_error(str(e))
            raise
        logger.info(f"Located '{query}' at ({x}, {y})")
        return self.assign_endpoint("end", x, y)

    def default_endpoints(self) -> Tuple[Tuple[int, int], Tuple[int, int]]:
        cx, cy = self.width // 2, self.height // 2
        start = (max(0, cx - 5), cy)
        end = (min(self.width - 1, cx + 5), cy)
        if start == end:
            end = (cx, cy + 1 if cy + 1 < self.height else cy - 1)
        return start, end

    def validate_endpoints(self):
        problem = None
        if self.start_x is None or self.end_x is None:
            problem = "Start and end must both be set before searching"
        elif self.is_start_pos(self.end_x, self.end_y):
            problem = f"Start and end are the same cell ({self.start_x}, {self.start_y})"
        elif not self.grid.is_walkable_at(self.start_x, self.start_y):
            problem = f"Start ({self.start_x}, {self.start_y}) is not walkable"
        elif not self.grid.is_walkable_at(self.end_x, self.end_y):
            problem = f"End ({self.end_x}, {self.end_y}) is not walkable"
        if problem:
            self.view.show_error(problem)
            raise InvalidEndpoints(problem)

    # -- search ----------------------------------------------------------

    def _search(self):
        """Runs the finder to completion on a frozen clone, recording into the log."""
        search_grid = SearchGrid(self.grid.clone(), self.operations)

        time_start = time.perf_counter()
        try:
            path = self.finder.find_path(self.start_x, self.start_y, self.end_x, self.end_y, search_grid)
        except Exception as e:
            # fail keeps walls; it only drops the log and footprints
            logger.exception("Finder failed")
            self.machine.fire_strict("fail")
            raise SearchFailed(f"Search failed: {e}") from e
        time_end = time.perf_counter()

        self.path = list(path)
        self.operation_count = len(self.operations)
        self.time_spent = round((time_end - time_start) * 1000, 4)
        logger.info(f"Search from ({self.start_x}, {self.start_y}) to ({self.end_x}, {self.end_y}): "
                    f"{len(self.path)} path cells, {self.operation_count} operations, {self.time_spent}ms")

        self.machine.fire_strict("search")

    def clear_operations(self):
        self.operations.clear()

    def clear_footprints(self):
        self.view.clear_footprints()
        self.view.clear_path()

    def clear_all(self):
        self.clear_footprints()
        self.view.clear_blocked_nodes()

    def build_new_grid(self):
        self.grid = Grid(self.width, self.height)

    # -- hooks -----------------------------------------------------------

    def _announce(self, event, source, target, *args):
        logger.debug(f"=> {target.value}")
        if target in ACTIONS:
            self.view.show_actions(self.available_actions())

    def _enter_ready(self, event, source, target, *args):
        self.clear_operations()

    def _enter_starting(self, event, source, target, *args):
        # Clears any existing search progress
        self.clear_footprints()
        self.clear_operations()
        self._search()

    def _enter_searching(self, event, source, target, *args):
        self.playback.start()

    def _leave_searching(self, event, source, target, *args):
        self.playback.stop()

    def _on_playback_exhausted(self):
        self.machine.fire_strict("finish")

    def _enter_finished(self, event, source, target, *args):
        self.playback.stop()
        self.view.show_stats(self.stats)
        self.view.draw_path(self.path)

    def _enter_restarting(self, event, source, target, *args):
        self._defer_cleanup(self._restart_cleanup)

    def _on_clear(self, event, source, target, *args):
        self.clear_operations()
        self.clear_footprints()

    def _on_reset(self, event, source, target, *args):
        self._defer_cleanup(self._reset_cleanup)

    def _on_paint(self, event, source, target, x, y):
        self.set_walkable_at(x, y, event == "erase_wall")

    # -- deferred cleanup ------------------------------------------------

    def _defer_cleanup(self, cleanup: Callable[[], None]):
        """
        Runs cleanup once the view's in-flight animations are done, unless
        the controller has moved on in the meantime.
        """
        token = self.machine.transition_count
        name = cleanup.__name__

        def run():
            if self.machine.transition_count != token:
                logger.debug(f"Skipping stale {name} (now in {self.state.value})")
                return
            cleanup()

        if not self.view.wait_for_animations(run):
            delay = self.view.animation_effect_duration * self.config.cleanup_slack
            self.timers.call_later(delay, run)

    def _restart_cleanup(self):
        self.clear_operations()
        self.clear_footprints()
        try:
            self.start()
        except InvalidEndpoints:
            logger.warning("Restart aborted, endpoints are no longer valid")
            self.machine.fire_strict("fail")
        except SearchFailed as e:
            self.view.show_error(str(e))

    def _reset_cleanup(self):
        self.clear_operations()
        self.clear_all()
        self.build_new_grid()
        self.path = []

    def _check_endpoint(self, x, y, other, what):
        if not self.grid.is_walkable_at(x, y):
            raise InvalidEndpoints(f"{what} ({x}, {y}) is not walkable")
        if (x, y) == other:
            raise InvalidEndpoints(f"{what} ({x}, {y}) would overlap the other endpoint")

    def _check_wall_target(self, x, y):
        self.grid.get_index(x, y)
        if self.is_start_or_end_pos(x, y):
            raise InvalidEndpoints(f"Cannot paint walls over endpoint ({x}, {y})")
