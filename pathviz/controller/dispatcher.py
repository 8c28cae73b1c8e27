import logging
from typing import Optional, Tuple

from pathviz.controller.controller import EDITABLE_STATES, Controller, State

logger = logging.getLogger(__name__)


class InputDispatcher:
    """
    Turns pointer events (already in grid coordinates) into controller
    events and model edits.

    Pointer-down priority:
      1. over the start marker and drag_start is legal -> drag start
      2. over the end marker and drag_end is legal     -> drag end
      3. otherwise, depending on wall_drawing:
         - True:  paint a wall on a walkable cell, erase one on a blocked cell
         - False: open the endpoint prompt on a walkable non-endpoint cell,
                  resolved later by assign("start" | "end") or cancel_prompt()
    """

    def __init__(self, controller: Controller, wall_drawing: bool = False):
        self.controller = controller
        self.wall_drawing = wall_drawing
        self.prompt: Optional[Tuple[int, int]] = None

    def pointer_down(self, x: int, y: int) -> bool:
        ctrl = self.controller
        if not ctrl.grid.contains(x, y):
            return False

        if ctrl.can("drag_start") and ctrl.is_start_pos(x, y):
            return ctrl.drag_start()
        if ctrl.can("drag_end") and ctrl.is_end_pos(x, y):
            return ctrl.drag_end()
        if ctrl.is_start_or_end_pos(x, y):
            return False

        if self.wall_drawing:
            if ctrl.can("draw_wall") and ctrl.is_walkable_at(x, y):
                return ctrl.draw_wall(x, y)
            if ctrl.can("erase_wall") and not ctrl.is_walkable_at(x, y):
                return ctrl.erase_wall(x, y)
            return False

        if ctrl.is_walkable_at(x, y) and ctrl.state in EDITABLE_STATES:
            self.open_prompt(x, y)
            return True
        return False

    def pointer_move(self, x: int, y: int) -> bool:
        ctrl = self.controller
        if not ctrl.grid.contains(x, y) or ctrl.is_start_or_end_pos(x, y):
            return False

        state = ctrl.state
        if state == State.DRAGGING_START:
            if ctrl.is_walkable_at(x, y):
                ctrl.set_start_pos(x, y)
                return True
        elif state == State.DRAGGING_END:
            if ctrl.is_walkable_at(x, y):
                ctrl.set_end_pos(x, y)
                return True
        elif state == State.DRAWING_WALL:
            ctrl.set_walkable_at(x, y, False)
            return True
        elif state == State.ERASING_WALL:
            ctrl.set_walkable_at(x, y, True)
            return True
        return False

    def pointer_up(self) -> bool:
        if self.controller.can("rest"):
            return self.controller.rest()
        return False

    # -- endpoint prompt -------------------------------------------------

    def open_prompt(self, x: int, y: int):
        self.prompt = (x, y)
        logger.debug(f"Endpoint prompt opened at ({x}, {y})")
        self.controller.view.show_endpoint_prompt(x, y)

    def assign(self, which: str) -> bool:
        if self.prompt is None:
            return False
        x, y = self.prompt
        self.close_prompt()
        return self.controller.assign_endpoint(which, x, y)

    def cancel_prompt(self) -> bool:
        if self.prompt is None:
            return False
        self.close_prompt()
        return True

    def close_prompt(self):
        self.prompt = None
        self.controller.view.hide_endpoint_prompt()
