"""Fatal and advisory conditions raised while reading a table."""
from __future__ import annotations

ERRORS = {
    "E_HEADER_SHORT": "File shorter than the 32-byte table header",
    "E_HEADER_OFFSET": "First record offset points inside the table header",
    "E_HEADER_RECORD_SIZE": "Record size must be at least one byte",
    "E_SCHEMA_SHORT": "Field descriptor table truncated",
    "E_SCHEMA_OVERRUN": "Field descriptors run into the record area",
    "E_RECORD_SHORT": "Record slot truncated",
}


class FormatError(ValueError):
    """Structural corruption or a short read. Aborts the open or the scan.

    ``stage`` names where it happened: ``header``, ``schema`` or ``record <n>``.
    """

    def __init__(self, code: str, stage: str, detail: str | None = None):
        self.code = code
        self.stage = stage
        self.detail = detail
        msg = f"FATAL: {ERRORS.get(code, code)} [{code}] at {stage}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class DbfWarning(UserWarning):
    """Tolerated anomaly in an otherwise readable table."""


class SchemaFootprintWarning(DbfWarning):
    """Field footprints claim more bytes than a record slot holds."""
