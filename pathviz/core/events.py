import struct
from typing import Iterable, Iterator, List, Tuple

from pathviz.core.errors import InvalidFile
from pathviz.core.operations import OPENED, CLOSED, TESTED, Operation

MAGIC = b"PFOPLOG"

# Event Types
EVT_OPENED = 0x01
EVT_CLOSED = 0x02
EVT_TESTED = 0x03
EVT_PATH_ADD = 0x04

ATTRIBUTE_CODES = {OPENED: EVT_OPENED, CLOSED: EVT_CLOSED, TESTED: EVT_TESTED}
CODE_ATTRIBUTES = {code: attr for attr, code in ATTRIBUTE_CODES.items()}


class EventWriter:
    def __init__(self, filename: str):
        self.filename = filename
        self.file = open(filename, "wb")

    def write_header(self, width: int, height: int):
        # Header: Magic "PFOPLOG" + Width (4b) + Height (4b)
        self.file.write(MAGIC)
        self.file.write(struct.pack(">II", width, height))

    def log_operation(self, op: Operation):
        # 1 byte type + 2b X + 2b Y + 1b value
        data = struct.pack(">BHHB", ATTRIBUTE_CODES[op.attribute], op.x, op.y, 1 if op.value else 0)
        self.file.write(data)

    def log_operations(self, ops: Iterable[Operation]):
        for op in ops:
            self.log_operation(op)

    def log_path(self, path: Iterable[Tuple[int, int]]):
        for x, y in path:
            self.file.write(struct.pack(">BHH", EVT_PATH_ADD, x, y))

    def close(self):
        if self.file:
            self.file.close()
            self.file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class EventReader:
    def __init__(self, filename: str):
        self.filename = filename
        self.file = open(filename, "rb")
        self.width = 0
        self.height = 0

    def read_header(self) -> Tuple[int, int]:
        magic = self.file.read(len(MAGIC))
        if magic != MAGIC:
            raise InvalidFile("Invalid operation log file")
        self.width, self.height = struct.unpack(">II", self._read(8))
        return self.width, self.height

    def stream_events(self) -> Iterator[Tuple[int, Tuple]]:
        while True:
            type_byte = self.file.read(1)
            if not type_byte:
                break

            type_code = ord(type_byte)

            if type_code in CODE_ATTRIBUTES:
                x, y, v = struct.unpack(">HHB", self._read(5))  # 2 shorts + 1 byte
                yield (type_code, (x, y, v))

            elif type_code == EVT_PATH_ADD:
                x, y = struct.unpack(">HH", self._read(4))
                yield (type_code, (x, y))

            else:
                raise InvalidFile(f"Unknown event type 0x{type_code:02x} in {self.filename}")

    def _read(self, size: int) -> bytes:
        data = self.file.read(size)
        if len(data) != size:
            raise InvalidFile(f"Truncated operation log {self.filename}: "
                              f"expected {size} bytes at offset {self.file.tell() - len(data)}")
        return data

    def read_all(self) -> Tuple[List[Operation], List[Tuple[int, int]]]:
        """Splits the stream into recorded operations and the final path."""
        ops: List[Operation] = []
        path: List[Tuple[int, int]] = []
        for type_code, data in self.stream_events():
            if type_code == EVT_PATH_ADD:
                path.append(data)
            else:
                x, y, v = data
                ops.append(Operation(x, y, CODE_ATTRIBUTES[type_code], bool(v)))
        return ops, path

    def close(self):
        if self.file:
            self.file.close()
            self.file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
