# dfhash/batch/run_hash.py
"""
dfhash CLI — hash tabular files by content, or check that they hold the same data.

Intent
- Load every input (csv / tsv / psv, optionally .gz/.zst/.bz2/.xz, or parquet),
  put it in canonical order, and print "<sha256>  <path>" per file.
- With --equals, decide whether all inputs hold the same logical dataset.

Flow (per file, independent of the others)
- load_table -> sort_table -> hash_table
- equality mode: all inputs must load first; then every sorted table is
  compared with the first one.

Output / exit status
- stdout: one line per hashed file, digest and path separated by two spaces.
- stderr: per-file errors and the equality verdict.
- 0 = success / all equal, 1 = files differ (or --equals with < 2 files),
  2 = operational error (file missing, unreadable, unhashable).

Notes
- A file that fails to load is reported and skipped; the remaining files are
  still hashed.
- When all files are equal in --equals mode nothing is printed.
"""

from __future__ import annotations

import argparse
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import List, Optional, Sequence, TextIO

from pydantic import ValidationError

from dfhash.core.comparison import all_equal
from dfhash.core.sorting import sort_table
from dfhash.core.table import TypedTable
from dfhash.io.readers import load_table
from dfhash.utils.config import ParametersConfig, load_parameters
from dfhash.utils.errors import DfHashError
from dfhash.utils.hashing import hash_table
from dfhash.utils.logging import configure_logging_from_params, get_logger

VERSION = "0.1.0"

EXIT_OK = 0
EXIT_MISMATCH = 1
EXIT_ERROR = 2


@dataclass(frozen=True)
class LoadedFile:
    path: str
    table: Optional[TypedTable]
    error: Optional[DfHashError] = None


def _load_sorted(path: str, params: ParametersConfig) -> LoadedFile:
    try:
        table = load_table(path, params)
        table = sort_table(table, workers=params.sort.workers, chunk_size=params.sort.chunk_size)
    except DfHashError as e:
        return LoadedFile(path=path, table=None, error=e)
    return LoadedFile(path=path, table=table)


def load_sorted_tables(files: Sequence[str], params: ParametersConfig) -> List[LoadedFile]:
    """
    Load + sort every file; results come back in input order.
    """
    logger = get_logger(__name__)
    max_workers = params.run.max_workers

    if max_workers <= 1 or len(files) <= 1:
        return [_load_sorted(p, params) for p in files]

    results: List[Optional[LoadedFile]] = [None] * len(files)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(_load_sorted, p, params): i for i, p in enumerate(files)}
        for fut in as_completed(futures):
            i = futures[fut]
            results[i] = fut.result()
            logger.debug("Loaded %d/%d: %s", i + 1, len(files), files[i])

    return [r for r in results if r is not None]


def run(
    files: Sequence[str],
    *,
    equals: bool = False,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    params: Optional[ParametersConfig] = None,
) -> int:
    """
    Hash (or compare) `files`; returns the process exit status.
    """
    out = stdout if stdout is not None else sys.stdout
    err = stderr if stderr is not None else sys.stderr
    params = params or ParametersConfig()
    logger = get_logger(__name__)

    if not files:
        err.write("Error: No files provided\n")
        return EXIT_ERROR

    if equals and len(files) < 2:
        err.write("Error: --equals requires at least two files.\n")
        return EXIT_MISMATCH

    paths = [str(f) for f in files]
    exit_code = EXIT_OK

    loaded: List[LoadedFile] = []
    for res in load_sorted_tables(paths, params):
        if res.error is not None:
            err.write(f"Error loading {res.path}: {res.error}\n")
            exit_code = EXIT_ERROR
        else:
            loaded.append(res)

    if equals:
        if exit_code != EXIT_OK:
            err.write("Warning: Cannot check for equality due to previous errors.\n")
        else:
            tables = [r.table for r in loaded if r.table is not None]
            if all_equal(tables, assume_sorted=True):
                logger.info("All %d files are equal", len(tables))
                return EXIT_OK
            err.write("Error: Files do not match.\n")
            exit_code = EXIT_MISMATCH

    for res in loaded:
        if res.table is None:
            continue
        try:
            digest = hash_table(res.table)
        except DfHashError as e:
            err.write(f"Error hashing {res.path}: {e}\n")
            exit_code = EXIT_ERROR
            continue
        out.write(f"{digest}  {res.path}\n")

    return exit_code


def _positive_int(v: str) -> int:
    try:
        iv = int(v)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected an integer, got {v!r}") from e
    if iv <= 0:
        raise argparse.ArgumentTypeError(f"expected a value > 0, got {iv}")
    return iv


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="dfhash",
        description="A deterministic content hasher for tabular data files.",
    )
    p.add_argument("files", nargs="+", help="Files to hash/check (CSV, Parquet, or compressed CSV).")
    p.add_argument(
        "-e",
        "--equals",
        action="store_true",
        help="Check if all files are semantically equal to each other. Returns 0 if all match, 1 otherwise.",
    )
    p.add_argument("--config", default=None, help="Optional parameters YAML (see configs/parameters.yaml).")
    p.add_argument("--threads", type=_positive_int, default=None, help="Sort worker threads per file.")
    p.add_argument("--jobs", type=_positive_int, default=None, help="Files loaded concurrently.")
    p.add_argument("--log-level", default=None, help="Logging level (default from config: WARNING).")
    p.add_argument("--log-file", default=None, help="Also write logs to this file.")
    p.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        params = load_parameters(args.config)
    except (FileNotFoundError, ValueError, ValidationError) as e:
        sys.stderr.write(f"Error: invalid config: {e}\n")
        return EXIT_ERROR

    if args.threads is not None:
        params.sort = params.sort.model_copy(update={"workers": args.threads})
    if args.jobs is not None:
        params.run = params.run.model_copy(update={"max_workers": args.jobs})

    try:
        configure_logging_from_params(params, level=args.log_level, log_file=args.log_file)
    except ValueError as e:
        sys.stderr.write(f"Error: {e}\n")
        return EXIT_ERROR

    return run(args.files, equals=bool(args.equals), params=params)


if __name__ == "__main__":
    raise SystemExit(main())


__all__ = ["run", "main", "build_parser", "load_sorted_tables", "LoadedFile", "EXIT_OK", "EXIT_MISMATCH", "EXIT_ERROR"]
