"""Query a dBASE table with DuckDB."""
from __future__ import annotations

import sys
from pathlib import Path

import duckdb

from dbf_scan.host import register


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python query.py <table.dbf> [sql]")
        print("Example: python query.py customers.dbf \"SELECT * FROM dbf LIMIT 5\"")
        sys.exit(1)

    path = Path(sys.argv[1])
    sql = sys.argv[2] if len(sys.argv) > 2 else "SELECT * FROM dbf LIMIT 10"

    con = duckdb.connect(":memory:")
    register(con, "dbf", path)

    print(f"--- {path.name} ---")
    print(f"--- {sql} ---\n")

    df = con.execute(sql).fetchdf()
    if df.empty:
        print("No rows.")
    else:
        print(df.to_string(index=False))


if __name__ == "__main__":
    main()
