# tests/test_run_hash.py

from __future__ import annotations

import gzip
import io
import math
import re
from pathlib import Path
from typing import List, Optional, Tuple

import pyarrow as pa
import pyarrow.parquet as pq
import pytest
import zstandard

import dfhash.batch.run_hash as cli
from dfhash.utils.config import ParametersConfig, RunConfig, SortConfig

BASE = "a,b\n1,2\n3,4"
REORDERED = "a,b\n3,4\n1,2"
DIFFERENT = "a,b\n1,2\n9,9"

MIXED = "i,f,b,s,e\n3,1.5,true,x,\n,NaN,false,,\n1,-inf,,y z,\n2,,true,NA,\n"

# Same logical tables as the CSV texts above, rows in a different order.
PARQUET_TABLES = {
    BASE: pa.table({"a": [3, 1], "b": [4, 2]}),
    MIXED: pa.table(
        {
            "i": pa.array([2, 1, None, 3], type=pa.int64()),
            "f": pa.array([None, -math.inf, math.nan, 1.5], type=pa.float64()),
            "b": pa.array([True, None, False, True], type=pa.bool_()),
            "s": pa.array(["NA", "y z", None, "x"], type=pa.string()),
            "e": pa.array([None, None, None, None], type=pa.string()),
        }
    ),
}

HASH_LINE = r"[0-9a-f]{64}  \S+"


def _create_file(tmp_path: Path, name: str, content: str) -> Path:
    """
    Write `content` (CSV text) in the format implied by the file suffix.
    Parquet files are written with pyarrow from PARQUET_TABLES[content].
    """
    p = tmp_path / name
    if name.endswith(".csv.gz"):
        with gzip.open(p, "wt", encoding="utf-8") as handle:
            handle.write(content)
    elif name.endswith(".csv.zst"):
        p.write_bytes(zstandard.ZstdCompressor().compress(content.encode("utf-8")))
    elif name.endswith(".parquet"):
        pq.write_table(PARQUET_TABLES[content], p)
    else:
        p.write_text(content, encoding="utf-8")
    return p


def _run(
    files: List[str],
    equals: bool = False,
    params: Optional[ParametersConfig] = None,
) -> Tuple[int, str, str]:
    out, err = io.StringIO(), io.StringIO()
    code = cli.run(files, equals=equals, stdout=out, stderr=err, params=params)
    return code, out.getvalue(), err.getvalue()


def _digests(stdout: str) -> List[str]:
    return [line.split("  ", 1)[0] for line in stdout.splitlines()]


def test_no_files():
    code, out, err = _run([])
    assert code == cli.EXIT_ERROR
    assert out == ""
    assert err == "Error: No files provided\n"


def test_single_file_prints_digest_and_path(tmp_path: Path):
    a = _create_file(tmp_path, "a.csv", BASE)
    code, out, err = _run([str(a)])
    assert code == 0
    assert out == f"{_digests(out)[0]}  {a}\n"
    assert re.fullmatch(HASH_LINE + "\n", out)
    assert err == ""


def test_reordered_rows_hash_identically(tmp_path: Path):
    a = _create_file(tmp_path, "a.csv", BASE)
    b = _create_file(tmp_path, "b.csv", REORDERED)
    code, out, err = _run([str(a), str(b)])
    assert code == 0
    d = _digests(out)
    assert len(d) == 2 and d[0] == d[1]
    assert out.splitlines()[1].endswith("  " + str(b))
    assert err == ""


def test_different_rows_hash_differently_and_equals_fails(tmp_path: Path):
    a = _create_file(tmp_path, "a.csv", BASE)
    b = _create_file(tmp_path, "b.csv", DIFFERENT)

    code, out, err = _run([str(a), str(b)])
    assert code == 0
    d = _digests(out)
    assert d[0] != d[1]

    code, out_eq, err_eq = _run([str(a), str(b)], equals=True)
    assert code == cli.EXIT_MISMATCH
    assert out_eq == out
    assert err_eq == "Error: Files do not match.\n"


def test_missing_file_reported_others_still_hashed(tmp_path: Path):
    a = _create_file(tmp_path, "a.csv", BASE)
    b = _create_file(tmp_path, "b.csv", BASE)
    code, out, err = _run([str(a), str(b), "nonexistent"])
    assert code == cli.EXIT_ERROR
    assert re.fullmatch(f"{HASH_LINE}\n{HASH_LINE}\n", out)
    assert err == "Error loading nonexistent: No such file or directory\n"


def test_missing_file_in_equals_mode_skips_comparison(tmp_path: Path):
    a = _create_file(tmp_path, "a.csv", BASE)
    b = _create_file(tmp_path, "b.csv", DIFFERENT)
    code, out, err = _run([str(a), str(b), "nonexistent"], equals=True)
    assert code == cli.EXIT_ERROR
    assert len(_digests(out)) == 2
    assert err == (
        "Error loading nonexistent: No such file or directory\n"
        "Warning: Cannot check for equality due to previous errors.\n"
    )


def test_equals_requires_two_files(tmp_path: Path):
    a = _create_file(tmp_path, "a.csv", BASE)
    code, out, err = _run([str(a)], equals=True)
    assert code == cli.EXIT_MISMATCH
    assert out == ""
    assert err == "Error: --equals requires at least two files.\n"


def test_equals_rejected_before_loading(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    def _boom(*a, **k):
        raise AssertionError("loader must not be called")

    monkeypatch.setattr(cli, "load_sorted_tables", _boom)
    code, _, _ = _run(["whatever.csv"], equals=True)
    assert code == cli.EXIT_MISMATCH


@pytest.mark.parametrize("content", [BASE, MIXED], ids=["ints", "mixed"])
@pytest.mark.parametrize(
    "other",
    ["b.csv", "b.parquet", "b.csv.zst", "b.csv.gz"],
)
def test_formats_hash_identically(tmp_path: Path, other: str, content: str):
    a = _create_file(tmp_path, "a.csv", content)
    b = _create_file(tmp_path, other, content)

    code, out, err = _run([str(a), str(b)])
    assert code == 0
    d = _digests(out)
    assert d[0] == d[1]

    code, out, err = _run([str(a), str(b)], equals=True)
    assert (code, out, err) == (0, "", "")


def test_nan_and_empty_float_cell_hash_differently(tmp_path: Path):
    a = _create_file(tmp_path, "a.csv", "a,b\n1.5,1\nNaN,2\n")
    b = _create_file(tmp_path, "b.csv", "a,b\n1.5,1\n,2\n")
    code, out, _ = _run([str(a), str(b)])
    assert code == 0
    d = _digests(out)
    assert d[0] != d[1]


def test_equals_with_reordered_file_is_silent(tmp_path: Path):
    a = _create_file(tmp_path, "a.csv", BASE)
    b = _create_file(tmp_path, "b.csv", REORDERED)
    c = _create_file(tmp_path, "c.csv.gz", REORDERED)
    assert _run([str(a), str(b), str(c)], equals=True) == (0, "", "")


def test_parallel_run_matches_sequential(tmp_path: Path):
    files = [
        str(_create_file(tmp_path, f"f{i}.csv", "a,b\n" + "\n".join(f"{(i * j) % 7},{j}" for j in range(40))))
        for i in range(5)
    ]
    files.insert(2, "nonexistent")

    sequential = _run(files)
    params = ParametersConfig(
        sort=SortConfig(workers=3, chunk_size=4),
        run=RunConfig(max_workers=4),
    )
    assert _run(files, params=params) == sequential


def test_hashing_error_is_reported(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    from dfhash.utils.errors import SerializationError

    a = _create_file(tmp_path, "a.csv", BASE)

    def _fail(table):
        raise SerializationError("cannot render")

    monkeypatch.setattr(cli, "hash_table", _fail)
    code, out, err = _run([str(a)])
    assert code == cli.EXIT_ERROR
    assert out == ""
    assert err == f"Error hashing {a}: cannot render\n"


def test_main_prints_hash(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    a = _create_file(tmp_path, "a.csv", BASE)
    b = _create_file(tmp_path, "b.csv", REORDERED)

    assert cli.main([str(a), str(b), "--threads", "2", "--jobs", "2"]) == 0
    captured = capsys.readouterr()
    d = _digests(captured.out)
    assert len(d) == 2 and d[0] == d[1]


def test_main_equals_single_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    a = _create_file(tmp_path, "a.csv", BASE)
    assert cli.main(["-e", str(a)]) == cli.EXIT_MISMATCH
    assert "--equals requires at least two files" in capsys.readouterr().err


def test_main_missing_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]):
    a = _create_file(tmp_path, "a.csv", BASE)
    assert cli.main([str(a), "--config", str(tmp_path / "nope.yaml")]) == cli.EXIT_ERROR
    assert "invalid config" in capsys.readouterr().err


def test_main_requires_files():
    with pytest.raises(SystemExit) as e:
        cli.main([])
    assert e.value.code == 2


def test_main_rejects_non_positive_threads(tmp_path: Path):
    with pytest.raises(SystemExit) as e:
        cli.main(["a.csv", "--threads", "0"])
    assert e.value.code == 2


def test_main_version(capsys: pytest.CaptureFixture[str]):
    with pytest.raises(SystemExit) as e:
        cli.main(["--version"])
    assert e.value.code == 0
    assert cli.VERSION in capsys.readouterr().out
