# dfhash/core/comparison.py
"""
Equality Comparator — semantic equality of TypedTables

Two tables are equal when
- their schemas match exactly (names, order, types), and
- their row multisets match exactly (same rows, same multiplicity).

This is decided on the sorted logical structure (row-by-row canonical keys),
not on digests. Canonical keys treat -0.0 == 0.0 and NaN == NaN, exactly the
values the serializer renders identically, so the verdict always agrees with
comparing hashes.
"""

from __future__ import annotations

from typing import Sequence

from dfhash.core.sorting import DEFAULT_CHUNK_SIZE, row_sort_key, sort_table
from dfhash.core.table import TypedTable
from dfhash.utils.errors import SchemaMismatchError
from dfhash.utils.logging import get_logger


def require_same_schema(a: TypedTable, b: TypedTable) -> None:
    if a.schema == b.schema:
        return
    sa = [f"{c.name}:{c.type.value}" for c in a.schema]
    sb = [f"{c.name}:{c.type.value}" for c in b.schema]
    raise SchemaMismatchError(f"Schemas differ: {sa} != {sb}")


def tables_equal(
    a: TypedTable,
    b: TypedTable,
    *,
    assume_sorted: bool = False,
    workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bool:
    """
    Decide semantic equality of two tables.
    Inputs are sorted here unless `assume_sorted` is set.
    """
    logger = get_logger(__name__)

    try:
        require_same_schema(a, b)
    except SchemaMismatchError as e:
        logger.info("Tables not equal: %s", e)
        return False

    if a.n_rows != b.n_rows:
        logger.info("Tables not equal: row counts %d != %d", a.n_rows, b.n_rows)
        return False

    if not assume_sorted:
        a = sort_table(a, workers=workers, chunk_size=chunk_size)
        b = sort_table(b, workers=workers, chunk_size=chunk_size)

    key = row_sort_key(a.schema)
    for i, (ra, rb) in enumerate(zip(a.rows, b.rows)):
        if key(ra) != key(rb):
            logger.info("Tables not equal: first difference at sorted row %d", i)
            return False
    return True


def all_equal(tables: Sequence[TypedTable], *, assume_sorted: bool = False, workers: int = 1) -> bool:
    """
    n-way check: every table equals the first one.
    """
    if len(tables) < 2:
        raise ValueError("all_equal requires at least two tables")
    first = tables[0]
    return all(tables_equal(first, t, assume_sorted=assume_sorted, workers=workers) for t in tables[1:])


__all__ = ["require_same_schema", "tables_equal", "all_equal"]
