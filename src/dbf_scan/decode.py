"""Type-directed field decoding.

Every decode yields a value or None. Content anomalies never raise;
structural problems are the reader's business.
"""
from __future__ import annotations

import math
import re
import struct
import sys
from datetime import date

from dbf_core.model import FieldDescriptor, FieldType, Schema
from dbf_core.protocol import (
    DATE_LEN,
    DEFAULT_ENCODING,
    DOUBLE_FMT,
    DOUBLE_LEN,
    INT64_MAX,
    INT64_MIN,
    INTEGER_FMT,
    INTEGER_LEN,
    PAD_BYTE,
)

# Longest valid leading number, the way strtoll/strtod read it
_INT_RE = re.compile(rb"[+-]?\d+")
_FLOAT_RE = re.compile(
    rb"[+-]?(?:(?P<num>(?P<mant>\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)|inf(?:inity)?|nan)",
    re.IGNORECASE,
)
_LEADING_WS = b" \t\n\v\f\r"

_NUMERIC_TYPES = (FieldType.NUMERIC, FieldType.FLOAT)
_TEXT_TYPES = (FieldType.CHARACTER, FieldType.LOGICAL, FieldType.DATE) + _NUMERIC_TYPES


def _parse_int(text: bytes) -> int | None:
    m = _INT_RE.match(text.lstrip(_LEADING_WS))
    if not m:
        return None
    val = int(m.group())
    if val < INT64_MIN or val > INT64_MAX:
        return None
    return val


def _parse_float(text: bytes) -> float | None:
    m = _FLOAT_RE.match(text.lstrip(_LEADING_WS))
    if not m:
        return None
    val = float(m.group())
    if m.group("num"):
        # Out of double range, either way: null
        if math.isinf(val):
            return None
        if abs(val) < sys.float_info.min and re.search(rb"[1-9]", m.group("mant")):
            return None
    return val


def _parse_date(text: bytes) -> date | None:
    if len(text) != DATE_LEN:
        return None
    parts = [_parse_int(text[0:4]), _parse_int(text[4:6]), _parse_int(text[6:8])]
    if None in parts:
        return None
    try:
        return date(*parts)
    except ValueError:
        return None


def decode_field(field: FieldDescriptor, raw: bytes, offset: int, encoding: str = DEFAULT_ENCODING):
    """Decode one field starting at ``offset`` of a record buffer."""
    ftype = field.type

    if ftype is FieldType.INTEGER:
        if offset + INTEGER_LEN > len(raw):
            return None
        return struct.unpack_from(INTEGER_FMT, raw, offset)[0]

    if ftype is FieldType.DOUBLE:
        if offset + DOUBLE_LEN > len(raw):
            return None
        return struct.unpack_from(DOUBLE_FMT, raw, offset)[0]

    if ftype not in _TEXT_TYPES:
        # MEMO, TIMESTAMP, BINARY and unknown codes: unsupported payloads
        return None

    end = offset + field.length
    if end > len(raw):
        return None

    val = raw[offset:end].strip(PAD_BYTE)
    if not val:
        return None

    if ftype is FieldType.CHARACTER:
        return val.decode(encoding, errors="replace")
    if ftype in _NUMERIC_TYPES:
        return _parse_float(val) if field.decimal_count > 0 else _parse_int(val)
    if ftype is FieldType.LOGICAL:
        if val == b"T":
            return True
        if val == b"F":
            return False
        return None
    return _parse_date(val)


def decode_record(schema: Schema, raw: bytes, encoding: str = DEFAULT_ENCODING) -> list:
    """Decode a raw record (liveness byte excluded) into one value per field."""
    values = []
    offset = 0
    for field in schema:
        values.append(decode_field(field, raw, offset, encoding))
        # Advance by footprint whether or not the value decoded
        offset += field.footprint
    return values
