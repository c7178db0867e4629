from __future__ import annotations

import pyarrow as pa

from dbf_core.model import FieldDescriptor, FieldType, Schema
from dbf_core.protocol import DEFAULT_BATCH_SIZE
from dbf_scan.decode import decode_record
from dbf_scan.reader import DbfReader


def arrow_type(field: FieldDescriptor) -> pa.DataType:
    """Host column type for a field."""
    ftype = field.type
    if ftype is FieldType.CHARACTER:
        return pa.string()
    if ftype in (FieldType.NUMERIC, FieldType.FLOAT):
        return pa.float64() if field.decimal_count > 0 else pa.int64()
    if ftype is FieldType.LOGICAL:
        return pa.bool_()
    if ftype is FieldType.DATE:
        return pa.date32()
    if ftype is FieldType.INTEGER:
        return pa.int32()
    if ftype is FieldType.DOUBLE:
        return pa.float64()
    # Unsupported payloads surface as all-null text
    return pa.string()


def column_names(schema: Schema) -> list[str]:
    """Field names made unique and non-empty so every column can be bound."""
    used: set[str] = set()
    names: list[str] = []
    for i, name in enumerate(schema.names):
        base = name or f"column{i}"
        candidate = base
        n = 0
        while candidate in used:
            n += 1
            candidate = f"{base}_{n}"
        used.add(candidate)
        names.append(candidate)
    return names


def arrow_schema(schema: Schema) -> pa.Schema:
    return pa.schema(
        [pa.field(name, arrow_type(f)) for name, f in zip(column_names(schema), schema)]
    )


class BatchProducer:
    """Fills columnar batches from a reader, resuming where the last call stopped."""

    def __init__(self, reader: DbfReader):
        self.reader = reader
        self.schema = arrow_schema(reader.schema)

    def fill_batch(self, max_rows: int = DEFAULT_BATCH_SIZE) -> pa.RecordBatch:
        """Decode up to ``max_rows`` live records. An empty batch means the scan is done."""
        if max_rows < 1:
            raise ValueError(f"max_rows must be positive, got {max_rows}")

        fields = self.reader.schema
        columns: list[list] = [[] for _ in fields]
        rows = 0

        while rows < max_rows:
            raw = self.reader.next_record()
            if raw is None:
                break
            for col, val in zip(columns, decode_record(fields, raw, self.reader.encoding)):
                col.append(val)
            rows += 1

        if not columns:
            # No columns to carry the length; an empty struct per row does
            return pa.RecordBatch.from_struct_array(pa.array([{}] * rows, type=pa.struct([])))

        arrays = [pa.array(col, type=f.type) for col, f in zip(columns, self.schema)]
        return pa.RecordBatch.from_arrays(arrays, schema=self.schema)

    def __iter__(self):
        return self.batches()

    def batches(self, batch_size: int = DEFAULT_BATCH_SIZE):
        """Yield non-empty batches until the scan is exhausted."""
        while True:
            batch = self.fill_batch(batch_size)
            if batch.num_rows == 0:
                return
            yield batch
