"""Host-facing surface: schema discovery, streaming batches, tables and DuckDB registration."""
from __future__ import annotations

from pathlib import Path
from typing import Iterator

import duckdb
import pandas as pd
import pyarrow as pa

from dbf_core.protocol import DEFAULT_BATCH_SIZE, DEFAULT_ENCODING
from dbf_scan.batch import BatchProducer, arrow_schema
from dbf_scan.reader import DbfReader


def read_schema(path: str | Path, encoding: str = DEFAULT_ENCODING) -> pa.Schema:
    """Column names and types, without scanning any record."""
    with DbfReader(path, encoding=encoding) as reader:
        return arrow_schema(reader.schema)


def iter_batches(
    path: str | Path,
    batch_size: int = DEFAULT_BATCH_SIZE,
    encoding: str = DEFAULT_ENCODING,
) -> Iterator[pa.RecordBatch]:
    with DbfReader(path, encoding=encoding) as reader:
        yield from BatchProducer(reader).batches(batch_size)


def record_batch_reader(
    path: str | Path,
    batch_size: int = DEFAULT_BATCH_SIZE,
    encoding: str = DEFAULT_ENCODING,
) -> pa.RecordBatchReader:
    """Single-pass streaming reader. The file stays open until the stream is drained."""
    schema = read_schema(path, encoding=encoding)
    return pa.RecordBatchReader.from_batches(schema, iter_batches(path, batch_size, encoding))


def read_table(
    path: str | Path,
    batch_size: int = DEFAULT_BATCH_SIZE,
    encoding: str = DEFAULT_ENCODING,
) -> pa.Table:
    with DbfReader(path, encoding=encoding) as reader:
        producer = BatchProducer(reader)
        return pa.Table.from_batches(list(producer.batches(batch_size)), schema=producer.schema)


def read_dataframe(path: str | Path, encoding: str = DEFAULT_ENCODING) -> pd.DataFrame:
    return read_table(path, encoding=encoding).to_pandas()


def register(
    con: duckdb.DuckDBPyConnection,
    name: str,
    path: str | Path,
    encoding: str = DEFAULT_ENCODING,
) -> None:
    """Read the whole table into a ``pa.Table`` and register it with DuckDB as ``name``.

    Materialized, not streamed, so ``name`` can be queried more than once.
    """
    con.register(name, read_table(path, encoding=encoding))


def read_dbf(
    path: str | Path,
    con: duckdb.DuckDBPyConnection | None = None,
    encoding: str = DEFAULT_ENCODING,
) -> duckdb.DuckDBPyRelation:
    if con is None:
        con = duckdb.connect(":memory:")
    return con.from_arrow(read_table(path, encoding=encoding))
