import logging
from typing import Callable, Optional

from pathviz.core.operations import Operation, OperationLog
from pathviz.core.timers import TimerHandle, TimerQueue
from pathviz.viz.view import View

logger = logging.getLogger(__name__)


class PlaybackScheduler:
    """
    Drains a finished OperationLog at a steady rate.

    One tick every 1 / operations_per_second seconds. Each tick pops entries
    from the head until one is renderable (unsupported attributes are
    dropped without waiting for another tick) and forwards it to the view.
    The tick that finds the log empty calls on_exhausted instead.

    stop() only cancels the next pending tick; whatever is left in the log
    stays there, so start() picks up at the next unconsumed entry.
    """

    def __init__(self, timers: TimerQueue, log: OperationLog, view: View,
                 operations_per_second: float, on_exhausted: Callable[[], None]):
        if operations_per_second <= 0:
            raise ValueError("operations_per_second must be positive")
        self.timers = timers
        self.log = log
        self.view = view
        self.interval = 1.0 / operations_per_second
        self.on_exhausted = on_exhausted
        self.rendered_count = 0
        self._handle: Optional[TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self):
        if self._handle is not None:
            return
        logger.debug(f"Playback started, {len(self.log)} operations queued")
        self._handle = self.timers.call_soon(self._tick)

    def stop(self):
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None
        logger.debug(f"Playback stopped, {len(self.log)} operations left")

    def step(self) -> Optional[Operation]:
        """Renders the next supported operation. None means the log ran dry."""
        supported = self.view.supported_operations
        while self.log:
            op = self.log.popleft()
            if op.attribute in supported:
                self.view.set_attribute_at(op.x, op.y, op.attribute, op.value)
                self.rendered_count += 1
                return op
        return None

    def _tick(self):
        deadline = self._handle.deadline
        self._handle = None
        if self.step() is None:
            self.on_exhausted()
            return
        # Next slot counts from this slot, not from now
        self._handle = self.timers.call_at(deadline + self.interval, self._tick)
