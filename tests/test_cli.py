import json
import os
import subprocess
import sys
from pathlib import Path

import pyarrow.parquet as pq

REPO = Path(__file__).resolve().parents[1]


def run(*args):
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO / "src"), env.get("PYTHONPATH")]))
    return subprocess.run(
        [sys.executable, "-m", "dbf_scan.cli", *map(str, args)],
        cwd=REPO, env=env, check=False, capture_output=True, text=True,
    )


def test_schema(people_dbf):
    r = run("schema", people_dbf)
    assert r.returncode == 0, r.stderr + r.stdout
    info = json.loads(r.stdout)
    assert info["record_count"] == 5
    assert info["last_update"] == "2023-01-15"
    assert [f["name"] for f in info["fields"]] == ["NAME", "AGE", "SCORE", "ACTIVE", "BORN", "ID"]
    assert info["fields"][2] == {
        "name": "SCORE", "type": "NUMERIC", "length": 6, "decimal_count": 2, "column_type": "double",
    }


def test_head(people_dbf):
    r = run("head", people_dbf, "-n", "2")
    assert r.returncode == 0, r.stderr + r.stdout
    rows = [json.loads(line) for line in r.stdout.splitlines()]
    assert [row["NAME"] for row in rows] == ["ann", "cyd"]
    assert rows[0]["BORN"] == "1989-03-01"


def test_export(people_dbf, tmp_path):
    out = tmp_path / "out" / "people.parquet"
    r = run("export", people_dbf, out, "--batch-size", "1")
    assert r.returncode == 0, r.stderr + r.stdout
    assert r.stdout.startswith("PASS: 3 rows")
    table = pq.read_table(out)
    assert table.column("ID").to_pylist() == [1, 3, 4]


def test_query(people_dbf):
    r = run("query", people_dbf, "SELECT sum(AGE) AS total, max(BORN) AS latest FROM dbf")
    assert r.returncode == 0, r.stderr + r.stdout
    assert json.loads(r.stdout) == {"total": 63, "latest": "2023-01-15"}


def test_fatal_on_corrupt_header(tmp_path):
    bad = tmp_path / "bad.dbf"
    bad.write_bytes(b"\x03" * 10)
    r = run("schema", bad)
    assert r.returncode == 1
    assert r.stdout.startswith("FATAL:")
    assert "E_HEADER_SHORT" in r.stdout
