import heapq
import itertools
import time
from typing import Callable, List, Optional


class ManualClock:
    """Virtual clock for headless runs and tests. Time only moves on advance()."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class TimerHandle:
    __slots__ = ('deadline', 'callback', 'args', 'cancelled')

    def __init__(self, deadline: float, callback: Callable, args: tuple):
        self.deadline = deadline
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class TimerQueue:
    """
    Single-threaded timer queue. Nothing runs until the owner pumps it:
    the pygame loop calls run_due() every frame, tests call advance().
    Callbacks with the same deadline run in scheduling order.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        # (deadline, seq, handle)
        self._heap: List[tuple] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self.clock()

    def call_at(self, deadline: float, callback: Callable, *args) -> TimerHandle:
        handle = TimerHandle(deadline, callback, args)
        heapq.heappush(self._heap, (deadline, next(self._seq), handle))
        return handle

    def call_later(self, delay: float, callback: Callable, *args) -> TimerHandle:
        return self.call_at(self.clock() + max(0.0, delay), callback, *args)

    def call_soon(self, callback: Callable, *args) -> TimerHandle:
        return self.call_later(0.0, callback, *args)

    def pending(self) -> int:
        return sum(1 for _, _, h in self._heap if not h.cancelled)

    def next_deadline(self) -> Optional[float]:
        self._drop_cancelled()
        if self._heap:
            return self._heap[0][0]
        return None

    def run_due(self) -> int:
        """Runs every callback whose deadline has passed. Returns how many ran."""
        now = self.clock()
        ran = 0
        while self._heap and self._heap[0][0] <= now:
            _, _, handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            handle.callback(*handle.args)
            ran += 1
        return ran

    def advance(self, seconds: float) -> int:
        """
        Moves a ManualClock forward, stopping at each deadline on the way so
        callbacks observe the time they were scheduled for.
        """
        if not isinstance(self.clock, ManualClock):
            raise TypeError("advance() needs a TimerQueue built on a ManualClock")
        target = self.clock.now + seconds
        ran = 0
        while True:
            deadline = self.next_deadline()
            if deadline is None or deadline > target:
                break
            self.clock.now = max(self.clock.now, deadline)
            ran += self.run_due()
        self.clock.now = target
        return ran

    def _drop_cancelled(self):
        while self._heap and self._heap[0][2].cancelled:
            heapq.heappop(self._heap)
