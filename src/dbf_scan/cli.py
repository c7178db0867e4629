"""dBASE Scan - command line entry point."""
from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from pathlib import Path

import click
import duckdb
import pyarrow.parquet as pq

from dbf_core.errors import FormatError
from dbf_core.protocol import DEFAULT_BATCH_SIZE, DEFAULT_ENCODING
from dbf_scan.batch import BatchProducer, arrow_type
from dbf_scan.host import register
from dbf_scan.reader import DbfReader

CANONICAL_JSON_KW = {"sort_keys": True, "separators": (",", ":"), "ensure_ascii": False}


def _json_default(obj):
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _dumps(obj) -> str:
    return json.dumps(obj, default=_json_default, **CANONICAL_JSON_KW)


def describe(path: Path, encoding: str = DEFAULT_ENCODING) -> dict:
    with DbfReader(path, encoding=encoding) as reader:
        h = reader.header
        last = h.last_update_date
        return {
            "file": str(path),
            "version": h.version,
            "last_update": last.isoformat() if last else None,
            "record_count": h.record_count,
            "first_record_offset": h.first_record_offset,
            "record_size": h.record_size,
            "code_page": h.code_page,
            "fields": [
                {
                    "name": f.name,
                    "type": f.type.name,
                    "length": f.length,
                    "decimal_count": f.decimal_count,
                    "column_type": str(arrow_type(f)),
                }
                for f in reader.schema
            ],
        }


def export_parquet(path: Path, out: Path, batch_size: int, encoding: str) -> int:
    """Stream the table into a Parquet file. Returns rows written."""
    rows = 0
    with DbfReader(path, encoding=encoding) as reader:
        producer = BatchProducer(reader)
        out.parent.mkdir(parents=True, exist_ok=True)
        with pq.ParquetWriter(out, producer.schema) as writer:
            for batch in producer.batches(batch_size):
                writer.write_batch(batch)
                rows += batch.num_rows
    return rows


@click.group()
@click.option("--encoding", default=DEFAULT_ENCODING, show_default=True, help="Text encoding for names and CHARACTER fields")
@click.pass_context
def main(ctx: click.Context, encoding: str) -> None:
    ctx.obj = {"encoding": encoding}


@main.command("schema")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def schema_cmd(obj: dict, path: Path) -> None:
    """Print header facts and fields as JSON."""
    try:
        click.echo(_dumps(describe(path, obj["encoding"])))
    except FormatError as e:
        click.echo(str(e))
        raise SystemExit(1)


@main.command("head")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-n", "rows", default=10, show_default=True, type=click.IntRange(min=1))
@click.pass_obj
def head_cmd(obj: dict, path: Path, rows: int) -> None:
    """Print the first live rows as JSON lines."""
    try:
        with DbfReader(path, encoding=obj["encoding"]) as reader:
            batch = BatchProducer(reader).fill_batch(rows)
        for row in batch.to_pylist():
            click.echo(_dumps(row))
    except FormatError as e:
        click.echo(str(e))
        raise SystemExit(1)


@main.command("export")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("out", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--batch-size", default=DEFAULT_BATCH_SIZE, show_default=True, type=click.IntRange(min=1))
@click.pass_obj
def export_cmd(obj: dict, path: Path, out: Path, batch_size: int) -> None:
    """Write the table to a Parquet file."""
    try:
        rows = export_parquet(path, out, batch_size, obj["encoding"])
    except FormatError as e:
        # Fail closed, with a single-line reason.
        click.echo(str(e))
        raise SystemExit(1)
    click.echo(f"PASS: {rows} rows written to {out}")


@main.command("query")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("sql")
@click.pass_obj
def query_cmd(obj: dict, path: Path, sql: str) -> None:
    """Run SQL against the table, exposed as view ``dbf``."""
    con = duckdb.connect(":memory:")
    try:
        register(con, "dbf", path, encoding=obj["encoding"])
        rows = con.execute(sql).fetch_arrow_table().to_pylist()
    except FormatError as e:
        click.echo(str(e))
        raise SystemExit(1)
    finally:
        con.close()
    for row in rows:
        click.echo(_dumps(row))


if __name__ == "__main__":
    main()
