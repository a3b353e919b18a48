# dfhash/core/sorting.py
"""
Canonical Sorter — total, deterministic row order over a TypedTable

Ordering rule
- Rows are compared lexicographically across *all* columns in schema order
  (first column is the primary key, the next one breaks ties, ...).
- Per-column policy (fixed):
  - null / missing sorts before every present value
  - INTEGER, FLOAT: ascending numeric; -0.0 == 0.0; NaN sorts after +Infinity
    and all NaNs are equal to each other
  - STRING: code-point order (identical to UTF-8 byte order)
  - BOOLEAN: False < True
- Duplicate rows are kept with full multiplicity.

Execution
- workers == 1 (or a table smaller than one chunk): a single stable sort.
- workers > 1: rows are cut into contiguous chunks, every chunk is sorted on a
  ThreadPoolExecutor, and the sorted chunks are combined with a stable k-way
  merge (heapq.merge prefers earlier chunks on ties). A stable merge of stable
  chunk sorts equals the single stable sort, so the output is identical for any
  worker count.

Failure modes
- A value whose Python type does not match its column type raises
  IncomparableValueError (cannot happen for tables built via from_rows()).
"""

from __future__ import annotations

import heapq
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Sequence, Tuple

from dfhash.core.table import Column, ColumnType, Row, TypedTable
from dfhash.utils.errors import IncomparableValueError
from dfhash.utils.logging import get_logger

DEFAULT_CHUNK_SIZE = 100_000

SortKey = Tuple[Tuple[Any, ...], ...]

# Null sorts first: its key is shorter and smaller than any (1, ...) key.
_NULL_KEY: Tuple[int, ...] = (0,)
_NAN_KEY: Tuple[int, int, float] = (1, 1, 0.0)


def _column_key_fn(col: Column) -> Callable[[Any], Tuple[Any, ...]]:
    name = col.name
    t = col.type

    if t is ColumnType.INTEGER:
        def key(v: Any) -> Tuple[Any, ...]:
            if v is None:
                return _NULL_KEY
            if type(v) is not int:
                raise IncomparableValueError(name, v, t.value)
            return (1, v)

    elif t is ColumnType.FLOAT:
        def key(v: Any) -> Tuple[Any, ...]:
            if v is None:
                return _NULL_KEY
            if not isinstance(v, float):
                raise IncomparableValueError(name, v, t.value)
            if math.isnan(v):
                return _NAN_KEY
            return (1, 0, v)

    elif t is ColumnType.BOOLEAN:
        def key(v: Any) -> Tuple[Any, ...]:
            if v is None:
                return _NULL_KEY
            if type(v) is not bool:
                raise IncomparableValueError(name, v, t.value)
            return (1, int(v))

    elif t is ColumnType.STRING:
        def key(v: Any) -> Tuple[Any, ...]:
            if v is None:
                return _NULL_KEY
            if not isinstance(v, str):
                raise IncomparableValueError(name, v, t.value)
            return (1, v)

    elif t is ColumnType.NULL:
        def key(v: Any) -> Tuple[Any, ...]:
            if v is not None:
                raise IncomparableValueError(name, v, t.value)
            return _NULL_KEY

    else:
        raise IncomparableValueError(name, None, str(t))

    return key


def row_sort_key(schema: Sequence[Column]) -> Callable[[Row], SortKey]:
    """
    Build the composite key function for rows of the given schema.
    Equal keys mean the rows are interchangeable for hashing and equality.
    """
    fns = [_column_key_fn(c) for c in schema]

    def key(row: Row) -> SortKey:
        return tuple(f(v) for f, v in zip(fns, row))

    return key


def _sort_chunk(rows: Sequence[Row], key: Callable[[Row], SortKey]) -> List[Row]:
    return sorted(rows, key=key)


def sort_table(
    table: TypedTable,
    *,
    workers: int = 1,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> TypedTable:
    """
    Return a new table with the same schema and rows in canonical order.
    The input table is left untouched.
    """
    if workers <= 0:
        raise ValueError("workers must be > 0")
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")

    logger = get_logger(__name__)
    key = row_sort_key(table.schema)
    rows = table.rows
    n = len(rows)

    if workers == 1 or n <= chunk_size:
        ordered = _sort_chunk(rows, key)
    else:
        chunks = [rows[i : i + chunk_size] for i in range(0, n, chunk_size)]
        logger.debug("Sorting %d rows in %d chunks (workers=%d)", n, len(chunks), workers)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            sorted_chunks = list(executor.map(lambda c: _sort_chunk(c, key), chunks))
        ordered = list(heapq.merge(*sorted_chunks, key=key))

    logger.debug("Sorted table: rows=%d cols=%d", n, table.n_cols)
    return table.with_rows(ordered)


def is_sorted(table: TypedTable) -> bool:
    """
    True when the rows are already in canonical order.
    """
    key = row_sort_key(table.schema)
    keys = [key(r) for r in table.rows]
    return all(a <= b for a, b in zip(keys, keys[1:]))


__all__ = ["DEFAULT_CHUNK_SIZE", "row_sort_key", "sort_table", "is_sorted"]
