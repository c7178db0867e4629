import struct
from pathlib import Path

import pytest

from dbf_core.protocol import DESCRIPTOR_FMT, HEADER_FMT


def descriptor(name: str, code: str, length: int, decimals: int = 0) -> bytes:
    return struct.pack(
        DESCRIPTOR_FMT, name.encode("ascii"), code.encode("ascii"), 0, length, decimals, 0, 0, 0, b""
    )


def header(record_count: int, first_record_offset: int, record_size: int) -> bytes:
    # Last update 2023-01-15
    return struct.pack(
        HEADER_FMT, 0x03, bytes([123, 1, 15]), record_count, first_record_offset, record_size,
        b"", 0, 0, b"",
    )


def footprint(code: str, length: int) -> int:
    return {"I": 4, "O": 8}.get(code, length)


def build_dbf(
    path: Path,
    fields: list[tuple],
    rows: list[bytes],
    deleted: set[int] = frozenset(),
    record_count: int | None = None,
    record_size: int | None = None,
    first_record_offset: int | None = None,
    terminator: bytes = b"\x0d",
    trailer: bytes = b"\x1a",
) -> Path:
    """Write a table. ``fields`` are ``(name, code, length[, decimals])``; rows exclude the flag byte."""
    desc = b"".join(descriptor(*f) for f in fields)
    if first_record_offset is None:
        first_record_offset = 32 + len(desc) + len(terminator)
    if record_size is None:
        record_size = 1 + sum(footprint(f[1], f[2]) for f in fields)
    if record_count is None:
        record_count = len(rows)

    body = bytearray()
    for i, row in enumerate(rows):
        data = row.ljust(record_size - 1, b" ")
        assert len(data) == record_size - 1, "row longer than record slot"
        body += (b"*" if i in deleted else b" ") + data

    head = header(record_count, first_record_offset, record_size) + desc + terminator
    head = head.ljust(first_record_offset, b"\x00")

    path.write_bytes(head + bytes(body) + trailer)
    return path


@pytest.fixture
def make_dbf(tmp_path):
    counter = iter(range(1_000_000))

    def _make(fields, rows, **kw):
        return build_dbf(tmp_path / f"table{next(counter)}.dbf", fields, rows, **kw)

    return _make


PEOPLE_FIELDS = [
    ("NAME", "C", 6),
    ("AGE", "N", 3),
    ("SCORE", "N", 6, 2),
    ("ACTIVE", "L", 1),
    ("BORN", "D", 8),
    ("ID", "I", 4),
]


def people_row(name: str, age: str, score: str, active: str, born: str, ident: int) -> bytes:
    return (
        name.encode("ascii").ljust(6)
        + age.encode("ascii").rjust(3)
        + score.encode("ascii").rjust(6)
        + active.encode("ascii")
        + born.encode("ascii").ljust(8)
        + struct.pack("<i", ident)
    )


@pytest.fixture
def people_dbf(make_dbf):
    rows = [
        people_row("ann", "34", "12.50", "T", "19890301", 1),
        people_row("bob", "41", "7.25", "F", "19820715", 2),
        people_row("cyd", "29", "99.99", "?", "", 3),
        people_row("dee", "x", "", "T", "20230115", 4),
        people_row("eve", "52", "1.00", "F", "20000229", 5),
    ]
    # bob and eve are deleted
    return make_dbf(PEOPLE_FIELDS, rows, deleted={1, 4})
