from __future__ import annotations

from pathlib import Path
from typing import BinaryIO
from warnings import warn

from dbf_core.errors import FormatError, SchemaFootprintWarning
from dbf_core.model import FieldDescriptor, FileHeader, Schema
from dbf_core.protocol import (
    DEFAULT_ENCODING,
    DELETED_FLAG,
    DESCRIPTOR_LEN,
    DESCRIPTOR_TERMINATORS,
    HEADER_LEN,
)


class DbfReader:
    """Header parser and record scanner: offsets come from the header, never the stream.

    - The header and field descriptor table are parsed once, at open time.
    - Every record read seeks to ``first_record_offset + index * record_size``.
    - Deleted slots are read in full and skipped.
    """

    def __init__(self, source: str | Path | BinaryIO, encoding: str = DEFAULT_ENCODING):
        self.encoding = encoding
        if hasattr(source, "read"):
            self.path = Path(getattr(source, "name", "<stream>"))
            self.f = source
            self._owns_handle = False
        else:
            self.path = Path(source)
            self.f = open(self.path, "rb")
            self._owns_handle = True

        self.cursor = 0
        self.deleted_count = 0

        try:
            self.header = self._read_header()
            self.schema = self._read_schema()
        except BaseException:
            self.close()
            raise

    @classmethod
    def open(cls, source: str | Path | BinaryIO, encoding: str = DEFAULT_ENCODING) -> "DbfReader":
        return cls(source, encoding=encoding)

    def __enter__(self) -> "DbfReader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_handle and not self.f.closed:
            self.f.close()

    @property
    def record_count(self) -> int:
        return self.header.record_count

    def _read_header(self) -> FileHeader:
        self.f.seek(0)
        buf = self.f.read(HEADER_LEN)
        if len(buf) < HEADER_LEN:
            raise FormatError("E_HEADER_SHORT", "header", f"got {len(buf)} bytes")

        header = FileHeader.unpack(buf)
        if header.first_record_offset < HEADER_LEN:
            raise FormatError(
                "E_HEADER_OFFSET", "header", f"first_record_offset={header.first_record_offset}"
            )
        if header.record_size < 1:
            raise FormatError("E_HEADER_RECORD_SIZE", "header", f"record_size={header.record_size}")
        return header

    def _read_schema(self) -> Schema:
        fields: list[FieldDescriptor] = []
        # The byte at first_record_offset - 1 is the terminator slot; descriptors live before it.
        limit = self.header.first_record_offset - 1
        pos = HEADER_LEN

        while pos < limit:
            self.f.seek(pos)
            lead = self.f.read(1)
            if not lead:
                raise FormatError("E_SCHEMA_SHORT", "schema", f"EOF at offset {pos}")
            if lead[0] in DESCRIPTOR_TERMINATORS:
                break

            if pos + DESCRIPTOR_LEN > limit:
                raise FormatError(
                    "E_SCHEMA_OVERRUN", "schema", f"descriptor at offset {pos} crosses offset {limit}"
                )

            buf = lead + self.f.read(DESCRIPTOR_LEN - 1)
            if len(buf) < DESCRIPTOR_LEN:
                raise FormatError(
                    "E_SCHEMA_SHORT", "schema", f"descriptor at offset {pos} has {len(buf)} bytes"
                )

            fields.append(FieldDescriptor.unpack(buf, self.encoding))
            pos += DESCRIPTOR_LEN

        schema = Schema(fields)
        if schema.record_footprint > self.header.data_len:
            warn(
                f"{self.path.name}: fields claim {schema.record_footprint} bytes "
                f"but records hold {self.header.data_len}; trailing fields will be null",
                SchemaFootprintWarning,
                stacklevel=3,
            )
        return schema

    def read_record(self, index: int) -> tuple[bool, bytes]:
        """Read slot ``index``. Returns ``(is_deleted, raw)`` with the liveness byte stripped."""
        if not 0 <= index < self.header.record_count:
            raise IndexError(f"record {index} out of range [0, {self.header.record_count})")

        # Strict offset math
        offset = self.header.first_record_offset + index * self.header.record_size
        self.f.seek(offset)

        flag = self.f.read(1)
        if len(flag) != 1:
            raise FormatError("E_RECORD_SHORT", f"record {index}", f"EOF at offset {offset}")

        raw = self.f.read(self.header.data_len)
        if len(raw) != self.header.data_len:
            raise FormatError(
                "E_RECORD_SHORT",
                f"record {index}",
                f"expected {self.header.data_len} bytes, got {len(raw)}",
            )

        return flag[0] == DELETED_FLAG, raw

    def next_record(self) -> bytes | None:
        """Return the next live record, or None once the cursor reaches ``record_count``."""
        while self.cursor < self.header.record_count:
            deleted, raw = self.read_record(self.cursor)
            self.cursor += 1
            if deleted:
                self.deleted_count += 1
                continue
            return raw
        return None

    def seek(self, index: int) -> None:
        if not 0 <= index <= self.header.record_count:
            raise IndexError(f"cursor {index} out of range [0, {self.header.record_count}]")
        self.cursor = index

    def get_scan_stats(self) -> dict:
        return {
            "records": self.header.record_count,
            "cursor": self.cursor,
            "deleted": self.deleted_count,
        }
