class PathvizError(Exception):
    """Base class for errors raised by the visualizer core."""


class OutOfBounds(PathvizError, IndexError):
    def __init__(self, x: int, y: int):
        super().__init__(f"Coordinate ({x}, {y}) out of bounds")
        self.x = x
        self.y = y


class IllegalTransition(PathvizError, RuntimeError):
    def __init__(self, event: str, state):
        super().__init__(f"Event '{event}' is not allowed in state '{state}'")
        self.event = event
        self.state = state


class InvalidEndpoints(PathvizError, ValueError):
    pass


class UnknownLocation(PathvizError, KeyError):
    def __str__(self):
        # KeyError repr()s its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class SearchFailed(PathvizError, RuntimeError):
    """The finder raised; the original exception is chained as __cause__."""


class InvalidFile(PathvizError, ValueError):
    """A layout or operation log file that can't be parsed."""
