import logging
import math
from typing import Callable, Dict, List, Optional, Tuple

import pygame

from pathviz.core.errors import PathvizError
from pathviz.viz.recorder import VideoRecorder
from pathviz.viz.view import SearchStats, View

logger = logging.getLogger(__name__)


class Renderer(View):
    COLOR_BG = (10, 10, 10)
    COLOR_CELL = (255, 255, 255)
    COLOR_BLOCKED = (128, 128, 128)
    COLOR_OPENED = (152, 251, 152)  # pale green
    COLOR_CLOSED = (175, 238, 238)  # pale turquoise
    COLOR_TESTED = (229, 229, 229)
    COLOR_PATH = (255, 215, 0)      # Gold
    COLOR_START = (0, 221, 0)
    COLOR_END = (238, 68, 0)
    COLOR_PROMPT = (90, 90, 200)
    COLOR_GRID_LINE = (200, 200, 200)

    ATTRIBUTE_COLORS = {
        "opened": COLOR_OPENED,
        "closed": COLOR_CLOSED,
        "tested": COLOR_TESTED,
    }

    supported_operations = frozenset({"opened", "closed"})
    animation_effect_duration = 0.05
    # Seconds a finished search is held in recorded video
    finish_hold = 1.5

    def __init__(self, width=1280, height=720, record=False):
        # Known once a controller is attached
        self.grid_width = 0
        self.grid_height = 0
        self.screen_width = width
        self.screen_height = height

        # Camera
        self.cell_size = 10.0  # Pixels per cell
        self.offset_x = 0.0
        self.offset_y = 0.0
        self.zoom_speed = 1.1

        # What has been drawn so far
        self.blocked = set()
        self.footprints: Dict[Tuple[int, int], str] = {}
        self.path: List[Tuple[int, int]] = []
        self.start_pos: Optional[Tuple[int, int]] = None
        self.end_pos: Optional[Tuple[int, int]] = None
        self.prompt: Optional[Tuple[int, int]] = None
        self.actions: Tuple[str, ...] = ()
        self.stats: Optional[SearchStats] = None
        self.message = ""
        self.query = ""

        # Cell -> colorize start time; cleared once the effect has played out
        self._animations: Dict[Tuple[int, int], float] = {}
        self._waiters: List[Callable[[], None]] = []

        self.recorder = VideoRecorder(active=record)
        self._hold_pending = False
        self.controller = None
        self.dispatcher = None
        self.timers = None

        self.font = None
        self.running = True
        self.clock = None
        self.surface = None

    def attach(self, controller, dispatcher, timers):
        self.controller = controller
        self.grid_width = controller.width
        self.grid_height = controller.height
        self.dispatcher = dispatcher
        self.timers = timers

    # -- View interface --------------------------------------------------

    def set_attribute_at(self, x, y, attribute, value):
        if attribute == "walkable":
            if value:
                self.blocked.discard((x, y))
            else:
                self.blocked.add((x, y))
            return
        if value:
            self.footprints[(x, y)] = attribute
            self._animations[(x, y)] = self._now()
        elif self.footprints.get((x, y)) == attribute:
            del self.footprints[(x, y)]

    def draw_path(self, path):
        self.path = list(path)

    def show_stats(self, stats):
        self.stats = stats
        self._hold_pending = True

    def clear_footprints(self):
        self.footprints.clear()

    def clear_path(self):
        self.path = []
        self.stats = None

    def clear_blocked_nodes(self):
        self.blocked.clear()

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
        self.message = message

    def wait_for_animations(self, callback):
        self._waiters.append(callback)
        return True

    # -- camera ----------------------------------------------------------

    def fit_to_screen(self):
        """Auto-adjust zoom and pan to fit the entire grid on screen with padding."""
        padding = 40
        available_w = self.screen_width - (padding * 2)
        available_h = self.screen_height - (padding * 2) - 60  # HUD strip

        self.cell_size = max(1.0, min(available_w / self.grid_width, available_h / self.grid_height))

        total_w = self.grid_width * self.cell_size
        total_h = self.grid_height * self.cell_size
        self.offset_x = (self.screen_width - total_w) / 2
        self.offset_y = 60 + (self.screen_height - 60 - total_h) / 2

    def world_to_screen(self, wx, wy):
        sx = wx * self.cell_size + self.offset_x
        sy = wy * self.cell_size + self.offset_y
        return sx, sy

    def screen_to_world(self, sx, sy):
        wx = (sx - self.offset_x) / self.cell_size
        wy = (sy - self.offset_y) / self.cell_size
        return math.floor(wx), math.floor(wy)

    # -- loop ------------------------------------------------------------

    def init_window(self):
        pygame.init()
        pygame.display.set_caption(f"Pathfinding - {self.grid_width}x{self.grid_height}")
        self.surface = pygame.display.set_mode((self.screen_width, self.screen_height), pygame.RESIZABLE)
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("Consolas", 16)
        self.fit_to_screen()

    def _now(self) -> float:
        if self.timers is not None:
            return self.timers.now()
        return 0.0

    def _act(self, action: Callable, *args):
        try:
            action(*args)
        except PathvizError as e:
            self.show_error(str(e))

    def trigger(self, slot: int):
        """Runs the action published in button slot 1 or 2."""
        if slot <= len(self.actions):
            name = self.actions[slot - 1]
            self.message = ""
            self._act(getattr(self.controller, name))

    def handle_key(self, event):
        if self.dispatcher.prompt is not None:
            if event.key == pygame.K_s:
                self._act(self.dispatcher.assign, "start")
            elif event.key == pygame.K_e:
                self._act(self.dispatcher.assign, "end")
            elif event.key == pygame.K_ESCAPE:
                self.dispatcher.cancel_prompt()
            return

        if event.key == pygame.K_F1:
            self.trigger(1)
        elif event.key == pygame.K_F2:
            self.trigger(2)
        elif event.key == pygame.K_BACKSPACE and not self.query:
            # "Clear Walls"
            self._act(self.controller.reset)
        elif event.key == pygame.K_BACKSPACE:
            self.query = self.query[:-1]
        elif event.key == pygame.K_ESCAPE:
            self.query = ""
        elif event.key == pygame.K_RETURN and self.query:
            query, self.query = self.query, ""
            self._act(self.controller.locate, query)
        elif event.unicode and event.unicode.isalnum():
            self.query += event.unicode

    def handle_input(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False

            elif event.type == pygame.VIDEORESIZE:
                self.screen_width, self.screen_height = event.w, event.h
                self.fit_to_screen()

            elif event.type == pygame.KEYDOWN:
                self.handle_key(event)

            elif event.type == pygame.MOUSEWHEEL:
                # Zoom towards mouse
                mx, my = pygame.mouse.get_pos()
                wx = (mx - self.offset_x) / self.cell_size
                wy = (my - self.offset_y) / self.cell_size

                if event.y > 0:
                    self.cell_size *= self.zoom_speed
                else:
                    self.cell_size /= self.zoom_speed
                self.cell_size = max(1.0, min(100.0, self.cell_size))

                self.offset_x = mx - wx * self.cell_size
                self.offset_y = my - wy * self.cell_size

            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                gx, gy = self.screen_to_world(*event.pos)
                self._act(self.dispatcher.pointer_down, gx, gy)

            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                self._act(self.dispatcher.pointer_up)

            elif event.type == pygame.MOUSEMOTION:
                if event.buttons[2]:  # Right drag pans
                    self.offset_x += event.rel[0]
                    self.offset_y += event.rel[1]
                elif event.buttons[0]:
                    gx, gy = self.screen_to_world(*event.pos)
                    self._act(self.dispatcher.pointer_move, gx, gy)

    def settle_animations(self):
        """Expires finished colorize effects and releases cleanup waiters."""
        now = self._now()
        duration = self.animation_effect_duration
        self._animations = {c: t for c, t in self._animations.items() if now - t < duration}
        if not self._animations and self._waiters:
            waiters, self._waiters = self._waiters, []
            for callback in waiters:
                callback()

    def cell_color(self, cell, now):
        if cell in self.blocked:
            return self.COLOR_BLOCKED
        attr = self.footprints.get(cell)
        if attr is None:
            return self.COLOR_CELL
        target = self.ATTRIBUTE_COLORS[attr]
        started = self._animations.get(cell)
        if started is None:
            return target
        t = min(1.0, (now - started) / self.animation_effect_duration)
        return tuple(int(a + (b - a) * t) for a, b in zip(self.COLOR_CELL, target))

    def draw_grid(self):
        self.surface.fill(self.COLOR_BG)
        now = self._now()

        # Culling: Calculate visible cell range
        start_x = max(0, int((-self.offset_x) / self.cell_size))
        start_y = max(0, int((-self.offset_y) / self.cell_size))
        end_x = min(self.grid_width, int((self.screen_width - self.offset_x) / self.cell_size) + 1)
        end_y = min(self.grid_height, int((self.screen_height - self.offset_y) / self.cell_size) + 1)

        size = int(self.cell_size) + 1
        draw_lines = self.cell_size > 4.0

        for y in range(start_y, end_y):
            for x in range(start_x, end_x):
                px, py = self.world_to_screen(x, y)
                rect = (int(px), int(py), size, size)
                pygame.draw.rect(self.surface, self.cell_color((x, y), now), rect)
                if draw_lines:
                    pygame.draw.rect(self.surface, self.COLOR_GRID_LINE, rect, 1)

        # Path polyline through cell centres
        if len(self.path) > 1:
            half = self.cell_size / 2
            points = [(sx + half, sy + half) for sx, sy in (self.world_to_screen(*c) for c in self.path)]
            pygame.draw.lines(self.surface, self.COLOR_PATH, False, points, max(2, int(self.cell_size / 4)))

        for pos, color in ((self.start_pos, self.COLOR_START), (self.end_pos, self.COLOR_END),
                           (self.prompt, self.COLOR_PROMPT)):
            if pos is not None:
                px, py = self.world_to_screen(*pos)
                pygame.draw.rect(self.surface, color, (int(px), int(py), size, size))

    def draw_hud(self):
        fps = int(self.clock.get_fps())
        state = self.controller.state.value if self.controller else "-"
        buttons = "  ".join(f"[F{i}] {name.title()}" for i, name in enumerate(self.actions, start=1))
        info = [
            f"FPS: {fps} | State: {state} | {buttons}  [Bksp] Clear Walls",
        ]
        if self.prompt is not None:
            info.append(f"Cell {self.prompt}: [S] set start  [E] set end  [Esc] cancel")
        elif self.query:
            info.append(f"Room: {self.query}_  [Enter] go")
        elif self.stats is not None:
            info.append(f"Length: {self.stats.path_length:.2f} | Time: {self.stats.time_spent}ms | "
                        f"Operations: {self.stats.operation_count}")
        if self.message:
            info.append(self.message)

        for i, text in enumerate(info):
            lbl = self.font.render(text, True, (255, 255, 255))
            self.surface.blit(lbl, (10, 10 + i * 20))

    def run_loop(self):
        while self.running:
            self.handle_input()

            # Drive scheduler ticks and deferred cleanups
            self.timers.run_due()
            self.settle_animations()

            self.draw_grid()
            self.draw_hud()
            pygame.display.flip()

            if self.recorder.active and self._hold_pending:
                self.recorder.hold(self.surface, self.finish_hold)
            elif self.recorder.active:
                self.recorder.capture_frame(self.surface)
            self._hold_pending = False

            self.clock.tick(60)

        self.recorder.stop()
        pygame.quit()
