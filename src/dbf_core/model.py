"""dBASE table model: header, field descriptors and schema.

Layouts are unpacked with explicit ``struct`` formats from ``protocol``;
nothing here depends on native alignment.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterator

from dbf_core.protocol import (
    DESCRIPTOR_FMT,
    DESCRIPTOR_LEN,
    DOUBLE_LEN,
    HEADER_FMT,
    HEADER_LEN,
    INTEGER_LEN,
)


class FieldType(Enum):
    CHARACTER = "C"
    NUMERIC = "N"
    LOGICAL = "L"
    DATE = "D"
    FLOAT = "F"
    INTEGER = "I"
    MEMO = "M"
    TIMESTAMP = "@"
    DOUBLE = "O"
    BINARY = "B"
    INVALID = "\x00"

    @classmethod
    def from_code(cls, code: int) -> "FieldType":
        """Map a raw type byte. Unknown codes become INVALID."""
        try:
            return cls(chr(code))
        except ValueError:
            return cls.INVALID


@dataclass(frozen=True)
class FileHeader:
    version: int
    last_update: bytes
    record_count: int
    first_record_offset: int
    record_size: int
    flags: int
    code_page: int

    @classmethod
    def unpack(cls, buf: bytes) -> "FileHeader":
        version, last_update, count, first_off, rec_size, _, flags, code_page, _ = struct.unpack(
            HEADER_FMT, buf[:HEADER_LEN]
        )
        return cls(
            version=int(version),
            last_update=bytes(last_update),
            record_count=int(count),
            first_record_offset=int(first_off),
            record_size=int(rec_size),
            flags=int(flags),
            code_page=int(code_page),
        )

    @property
    def last_update_date(self) -> date | None:
        """Last update stamp as a date, or None when the bytes are not a valid date."""
        yy, mm, dd = self.last_update
        try:
            return date(1900 + yy, mm, dd)
        except ValueError:
            return None

    @property
    def data_len(self) -> int:
        """Bytes of field data per record, liveness flag excluded."""
        return self.record_size - 1


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    type: FieldType
    length: int
    decimal_count: int
    type_code: int = 0

    @classmethod
    def unpack(cls, buf: bytes, encoding: str) -> "FieldDescriptor":
        raw_name, type_code, _disp, length, decimals, _flags, _next, _step, _ = struct.unpack(
            DESCRIPTOR_FMT, buf[:DESCRIPTOR_LEN]
        )
        name = raw_name.split(b"\x00", 1)[0].rstrip(b" ").decode(encoding, errors="replace")
        code = type_code[0]
        return cls(
            name=name,
            type=FieldType.from_code(code),
            length=int(length),
            decimal_count=int(decimals),
            type_code=code,
        )

    @property
    def footprint(self) -> int:
        """Bytes this field consumes from a record.

        INTEGER and DOUBLE are fixed width whatever ``length`` declares.
        """
        if self.type is FieldType.INTEGER:
            return INTEGER_LEN
        if self.type is FieldType.DOUBLE:
            return DOUBLE_LEN
        return self.length


class Schema:
    """Ordered, read-only field list. Order is column order and byte order."""

    __slots__ = ("_fields",)

    def __init__(self, fields):
        self._fields = tuple(fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self._fields)

    def __getitem__(self, idx):
        return self._fields[idx]

    def __eq__(self, other) -> bool:
        return isinstance(other, Schema) and self._fields == other._fields

    def __hash__(self) -> int:
        return hash(self._fields)

    def __repr__(self) -> str:
        return f"Schema({list(self._fields)!r})"

    @property
    def names(self) -> list[str]:
        return [f.name for f in self._fields]

    @property
    def record_footprint(self) -> int:
        return sum(f.footprint for f in self._fields)
