import unittest
import sys
import os
from types import SimpleNamespace

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pygame

from pathviz.algo.finders import BreadthFirstFinder
from pathviz.controller.controller import Controller, ControllerConfig, State
from pathviz.controller.dispatcher import InputDispatcher
from pathviz.core.timers import ManualClock, TimerQueue
from pathviz.io.layout import Layout
from pathviz.viz.renderer import Renderer


class TestRendererWithoutWindow(unittest.TestCase):
    """Exercises the view side of the renderer; no display is opened."""

    def setUp(self):
        self.clock = ManualClock()
        self.timers = TimerQueue(clock=self.clock)
        self.renderer = Renderer()
        layout = Layout(width=5, height=5, start=(0, 0), end=(4, 4), rooms={"4118": (2, 4)})
        self.ctrl = Controller(self.renderer, BreadthFirstFinder(), self.timers,
                               ControllerConfig(operations_per_second=10), layout=layout)
        self.dispatcher = InputDispatcher(self.ctrl)
        self.renderer.attach(self.ctrl, self.dispatcher, self.timers)
        self.ctrl.init()

    def key(self, key, unicode=""):
        self.renderer.handle_key(SimpleNamespace(key=key, unicode=unicode))

    def test_waiters_released_once_animations_settle(self):
        released = []
        self.renderer.set_attribute_at(1, 1, "opened", True)
        self.assertTrue(self.renderer.wait_for_animations(lambda: released.append(True)))

        self.renderer.settle_animations()
        self.assertEqual(released, [])

        self.clock.now += self.renderer.animation_effect_duration
        self.renderer.settle_animations()
        self.assertEqual(released, [True])

    def test_restart_waits_for_the_renderer(self):
        self.ctrl.start()
        self.timers.advance(60)
        self.assertEqual(self.ctrl.state, State.FINISHED)
        self.assertTrue(self.renderer.footprints)

        self.ctrl.restart()
        self.timers.advance(10)
        self.assertEqual(self.ctrl.state, State.RESTARTING)

        self.renderer.settle_animations()
        self.assertEqual(self.ctrl.state, State.SEARCHING)
        self.assertEqual(self.renderer.footprints, {})

    def test_walls_and_markers(self):
        self.assertEqual(self.renderer.start_pos, (0, 0))
        self.assertEqual(self.renderer.end_pos, (4, 4))
        self.ctrl.set_walkable_at(2, 2, False)
        self.assertIn((2, 2), self.renderer.blocked)
        self.ctrl.set_walkable_at(2, 2, True)
        self.assertNotIn((2, 2), self.renderer.blocked)

    def test_screen_to_world(self):
        self.renderer.cell_size = 10.0
        self.renderer.offset_x = 5.0
        self.renderer.offset_y = 60.0
        self.assertEqual(self.renderer.screen_to_world(26, 85), (2, 2))
        self.assertEqual(self.renderer.screen_to_world(0, 0), (-1, -6))

    def test_button_keys_follow_published_actions(self):
        self.assertEqual(self.renderer.actions, ("start", "reset"))
        self.key(pygame.K_F1)
        self.assertEqual(self.ctrl.state, State.SEARCHING)
        self.key(pygame.K_F2)
        self.assertEqual(self.ctrl.state, State.PAUSED)
        self.assertEqual(self.renderer.actions, ("resume", "cancel"))

    def test_room_query(self):
        for ch in "4118":
            self.key(getattr(pygame, f"K_{ch}"), ch)
        self.assertEqual(self.renderer.query, "4118")
        self.key(pygame.K_RETURN)
        self.assertEqual(self.renderer.query, "")
        self.assertEqual((self.ctrl.end_x, self.ctrl.end_y), (2, 4))

        for ch in "99":
            self.key(pygame.K_9, ch)
        self.key(pygame.K_RETURN)
        self.assertIn("99", self.renderer.message)

    def test_prompt_keys(self):
        self.dispatcher.pointer_down(3, 1)
        self.assertEqual(self.renderer.prompt, (3, 1))
        self.key(pygame.K_s, "s")
        self.assertIsNone(self.renderer.prompt)
        self.assertEqual(self.renderer.start_pos, (3, 1))


if __name__ == '__main__':
    unittest.main()
