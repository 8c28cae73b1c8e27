import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pathviz.core.errors import InvalidFile, UnknownLocation

Coord = Tuple[int, int]


@dataclass
class Layout:
    """
    A floor plan: grid size, default endpoints, blocked cells and a table of
    named locations (room numbers) to cells.
    """
    width: int
    height: int
    start: Optional[Coord] = None
    end: Optional[Coord] = None
    blocked: List[Coord] = field(default_factory=list)
    rooms: Dict[str, Coord] = field(default_factory=dict)
    name: str = ""

    @staticmethod
    def normalize_room(query: str) -> str:
        # "room 4118", "R-4118" and "4118" all mean the same room
        return re.sub(r"[^0-9]", "", query.upper())

    def lookup_room(self, query: str) -> Coord:
        key = self.normalize_room(query)
        if key and key in self.rooms:
            return self.rooms[key]
        raise UnknownLocation(f"Room '{query}' is not on floor '{self.name or 'default'}'")


class LayoutSerializer:
    VERSION = 1

    @staticmethod
    def save(layout: Layout, filepath: str):
        """
        Writes the layout as JSON:
        {"version", "name", "width", "height", "start", "end",
         "blocked": [[x, y], ...], "rooms": {"4118": [x, y], ...}}
        """
        data = {
            "version": LayoutSerializer.VERSION,
            "name": layout.name,
            "width": layout.width,
            "height": layout.height,
            "start": list(layout.start) if layout.start else None,
            "end": list(layout.end) if layout.end else None,
            "blocked": [list(c) for c in layout.blocked],
            "rooms": {k: list(v) for k, v in layout.rooms.items()},
        }
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    @staticmethod
    def load(filepath: str) -> Layout:
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
        return LayoutSerializer.from_dict(data)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Layout:
        if not isinstance(data, dict) or "width" not in data or "height" not in data:
            raise InvalidFile("Invalid layout file: width and height are required")

        width, height = int(data["width"]), int(data["height"])
        if width <= 0 or height <= 0:
            raise InvalidFile(f"Invalid layout size {width}x{height}")

        def coord(value, what) -> Coord:
            try:
                x, y = int(value[0]), int(value[1])
            except (TypeError, ValueError, IndexError):
                raise InvalidFile(f"Invalid layout coordinate for {what}: {value!r}") from None
            if not (0 <= x < width and 0 <= y < height):
                raise InvalidFile(f"Layout coordinate for {what} outside {width}x{height}: ({x}, {y})")
            return (x, y)

        start = coord(data["start"], "start") if data.get("start") is not None else None
        end = coord(data["end"], "end") if data.get("end") is not None else None
        blocked = [coord(c, "blocked cell") for c in data.get("blocked", [])]
        rooms = {
            Layout.normalize_room(str(name)): coord(c, f"room {name}")
            for name, c in data.get("rooms", {}).items()
        }

        return Layout(width=width, height=height, start=start, end=end,
                      blocked=blocked, rooms=rooms, name=str(data.get("name", "")))
