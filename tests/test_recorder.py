import unittest
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pygame

from pathviz.viz.recorder import VideoRecorder, surface_to_bgr


class FakeWriter:
    def __init__(self):
        self.frames = []
        self.released = False

    def write(self, frame):
        self.frames.append(frame)

    def release(self):
        self.released = True


class TestVideoRecorder(unittest.TestCase):
    def setUp(self):
        self.surface = pygame.Surface((4, 3))
        self.surface.fill((255, 0, 0))

    def test_surface_to_bgr(self):
        frame = surface_to_bgr(self.surface)
        self.assertEqual(frame.shape, (3, 4, 3))
        self.assertEqual(list(frame[0, 0]), [0, 0, 255])

        scaled = surface_to_bgr(self.surface, (8, 6))
        self.assertEqual(scaled.shape, (6, 8, 3))

    def test_inactive_recorder_does_nothing(self):
        recorder = VideoRecorder()
        self.assertIsNone(recorder.output_file)
        recorder.capture_frame(self.surface)
        recorder.stop()
        self.assertEqual(recorder.frame_count, 0)

    def test_default_filename(self):
        name = VideoRecorder.default_filename("no_such_dir_for_videos", "pathviz")
        self.assertTrue(name.startswith("pathviz_"))
        self.assertTrue(name.endswith(".mp4"))
        self.assertEqual(os.path.dirname(name), "")

    def test_hold_repeats_the_frame(self):
        recorder = VideoRecorder(active=True, output_file="unused.mp4", fps=10)
        writer = FakeWriter()
        recorder.writer = writer
        recorder.frame_size = (4, 3)

        recorder.capture_frame(self.surface)
        recorder.hold(self.surface, 0.5)
        self.assertEqual(len(writer.frames), 6)
        self.assertAlmostEqual(recorder.seconds, 0.6)

        recorder.stop()
        self.assertTrue(writer.released)
        self.assertIsNone(recorder.writer)


if __name__ == '__main__':
    unittest.main()
