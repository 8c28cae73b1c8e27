import json
import unittest
import sys
import os
import shutil

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pathviz.core.errors import InvalidFile, UnknownLocation
from pathviz.core.events import EventReader, EventWriter
from pathviz.core.operations import CLOSED, OPENED, TESTED, Operation
from pathviz.io.layout import Layout, LayoutSerializer

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))


class TestLayout(unittest.TestCase):
    def setUp(self):
        os.makedirs("test_out", exist_ok=True)

    def tearDown(self):
        shutil.rmtree("test_out", ignore_errors=True)

    def test_round_trip(self):
        layout = Layout(width=8, height=6, start=(0, 0), end=(7, 5),
                        blocked=[(3, 0), (3, 1)], rooms={"4118": (6, 2)}, name="4f")
        path = "test_out/floor.json"
        LayoutSerializer.save(layout, path)

        loaded = LayoutSerializer.load(path)
        self.assertEqual(loaded, layout)

    def test_room_names_are_normalized(self):
        layout = LayoutSerializer.from_dict({
            "width": 4, "height": 4, "rooms": {"Room 4118": [1, 2]},
        })
        self.assertEqual(layout.rooms, {"4118": (1, 2)})
        self.assertEqual(layout.lookup_room("r-4118"), (1, 2))
        self.assertEqual(layout.lookup_room(" 4118 "), (1, 2))

        with self.assertRaises(UnknownLocation):
            layout.lookup_room("4119")
        with self.assertRaises(UnknownLocation):
            layout.lookup_room("lobby")

    def test_invalid_layouts(self):
        bad = [
            {"height": 4},
            {"width": 0, "height": 4},
            {"width": 4, "height": 4, "start": [4, 0]},
            {"width": 4, "height": 4, "blocked": [[1]]},
            {"width": 4, "height": 4, "rooms": {"1": "nowhere"}},
        ]
        for data in bad:
            with self.subTest(data=data):
                with self.assertRaises(ValueError):
                    LayoutSerializer.from_dict(data)

    def test_bundled_demo_floor(self):
        layout = LayoutSerializer.load(os.path.join(ROOT, "layouts", "demo_floor.json"))
        self.assertEqual((layout.width, layout.height), (20, 12))
        self.assertNotIn(layout.start, layout.blocked)
        self.assertNotIn(layout.end, layout.blocked)
        for room, cell in layout.rooms.items():
            self.assertNotIn(cell, layout.blocked, room)

    def test_file_is_plain_json(self):
        path = "test_out/min.json"
        LayoutSerializer.save(Layout(width=2, height=3), path)
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(data["version"], LayoutSerializer.VERSION)
        self.assertIsNone(data["start"])


class TestOperationLogFile(unittest.TestCase):
    def setUp(self):
        os.makedirs("test_out", exist_ok=True)

    def tearDown(self):
        shutil.rmtree("test_out", ignore_errors=True)

    def test_ops_and_path(self):
        ops = [
            Operation(0, 0, OPENED, True),
            Operation(300, 2, TESTED, True),
            Operation(0, 0, CLOSED, True),
            Operation(1, 0, OPENED, False),
        ]
        path = [(0, 0), (1, 0), (1, 1)]
        filename = "test_out/search.oplog"

        with EventWriter(filename) as writer:
            writer.write_header(400, 3)
            writer.log_operations(ops)
            writer.log_path(path)

        with EventReader(filename) as reader:
            self.assertEqual(reader.read_header(), (400, 3))
            ops2, path2 = reader.read_all()

        self.assertEqual(ops2, ops)
        self.assertEqual(path2, path)

    def test_bad_magic(self):
        filename = "test_out/bogus.oplog"
        with open(filename, "wb") as f:
            f.write(b"NOTALOG" + bytes(8))
        with EventReader(filename) as reader:
            with self.assertRaises(ValueError):
                reader.read_header()

    def test_truncated_files(self):
        filename = "test_out/cut.oplog"
        with EventWriter(filename) as writer:
            writer.write_header(5, 5)
            writer.log_operation(Operation(1, 2, OPENED, True))
        with open(filename, "rb") as f:
            data = f.read()

        # Cut inside the header, then inside the last record
        for size in (len(data) - 8, len(data) - 2):
            with self.subTest(size=size):
                with open(filename, "wb") as f:
                    f.write(data[:size])
                with EventReader(filename) as reader:
                    with self.assertRaises(InvalidFile):
                        reader.read_header()
                        reader.read_all()

    def test_unknown_event_code(self):
        filename = "test_out/odd.oplog"
        with EventWriter(filename) as writer:
            writer.write_header(2, 2)
            writer.file.write(b"\x7f")
        with EventReader(filename) as reader:
            reader.read_header()
            with self.assertRaises(ValueError):
                reader.read_all()


if __name__ == '__main__':
    unittest.main()
