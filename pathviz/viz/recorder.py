import logging
import os
from datetime import datetime
from typing import Optional, Tuple

import cv2
import numpy as np
import pygame

logger = logging.getLogger(__name__)


def surface_to_bgr(surface: pygame.Surface, size: Optional[Tuple[int, int]] = None) -> np.ndarray:
    """pygame surface -> (height, width, 3) BGR array, optionally rescaled to size."""
    if size is not None and surface.get_size() != size:
        surface = pygame.transform.scale(surface, size)
    # surfarray is indexed [x][y]
    rgb = np.transpose(pygame.surfarray.array3d(surface), (1, 0, 2))
    return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)


class VideoRecorder:
    """
    Writes the replay to an mp4, one frame per rendered loop turn.

    The first captured frame fixes the video size; a window resized later
    is scaled back to it. hold() repeats the current frame so a finished
    search stays on screen in the video for a while.
    """

    def __init__(self, active=False, output_file=None, fps=60, directory="recordings", prefix="pathviz"):
        self.active = active
        self.fps = fps
        self.output_file = output_file
        if active and not output_file:
            self.output_file = self.default_filename(directory, prefix)

        self.writer = None
        self.frame_size: Optional[Tuple[int, int]] = None
        self.frame_count = 0

    @staticmethod
    def default_filename(directory: str, prefix: str) -> str:
        fname = f"{prefix}_{datetime.now():%Y%m%d_%H%M%S}.mp4"
        return os.path.join(directory, fname) if os.path.isdir(directory) else fname

    @property
    def seconds(self) -> float:
        return self.frame_count / self.fps

    def _open(self, size: Tuple[int, int]):
        self.frame_size = size
        fourcc = cv2.VideoWriter_fourcc(*'mp4v')
        self.writer = cv2.VideoWriter(self.output_file, fourcc, self.fps, size)
        if not self.writer.isOpened():
            logger.error(f"Could not open video writer for {self.output_file}, recording disabled")
            self.writer = None
            self.active = False
            return
        logger.info(f"Recording started: {self.output_file} ({size[0]}x{size[1]} @ {self.fps}fps)")

    def capture_frame(self, surface: pygame.Surface, repeat: int = 1):
        if not self.active:
            return
        if self.writer is None:
            self._open(surface.get_size())
            if self.writer is None:
                return

        frame = surface_to_bgr(surface, self.frame_size)
        for _ in range(repeat):
            self.writer.write(frame)
        self.frame_count += repeat

    def hold(self, surface: pygame.Surface, seconds: float):
        self.capture_frame(surface, repeat=max(1, int(seconds * self.fps)))

    def stop(self):
        if self.writer is None:
            return
        self.writer.release()
        self.writer = None
        logger.info(f"Video saved: {self.output_file} ({self.frame_count} frames, {self.seconds:.1f}s)")
