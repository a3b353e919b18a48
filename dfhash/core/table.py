# dfhash/core/table.py
"""
Typed Table — explicit data model consumed by the canonicalization core

Intent
- Give the sorter / serializer / comparator a small, fully explicit table type
  instead of delegating typing and ordering to a dataframe engine.
- Normalize every cell to a native Python value once, at construction time,
  so later stages never see numpy / pandas / arrow scalars.

Model
- ColumnType: INTEGER | FLOAT | BOOLEAN | STRING | NULL
- Column(name, type): schema entry; column *position* is its identity.
- TypedTable(schema, rows): immutable; rows are tuples of native values or None.

Guarantees
- Row width always equals len(schema) (checked on every construction).
- from_rows() / from_dataframe() / from_arrow() additionally check that every
  present value matches its column type:
    INTEGER -> int, FLOAT -> float, BOOLEAN -> bool, STRING -> str, NULL -> None only
- Tables are never mutated; with_rows() returns a new table sharing the schema.

Column mapping (Arrow types; DataFrames are converted to Arrow first)
- integer -> INTEGER, floating -> FLOAT, boolean -> BOOLEAN,
  string / large_string -> STRING; dictionary columns map by value type
- null_count == length -> NULL, whatever the storage type
  (an empty CSV column and an all-null parquet column end up identical)
- null is read from the validity bitmap only: a NaN float is a value, so an
  all-NaN float column is FLOAT
- anything else (timestamps, decimals, nested, mixed object columns) ->
  UnsupportedColumnTypeError
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
import pyarrow as pa
from pandas.api import types as ptypes

from dfhash.utils.errors import SchemaError, UnsupportedColumnTypeError


class ColumnType(str, Enum):
    INTEGER = "int"
    FLOAT = "float"
    BOOLEAN = "bool"
    STRING = "str"
    NULL = "null"


@dataclass(frozen=True)
class Column:
    name: str
    type: ColumnType


Row = Tuple[Any, ...]
Schema = Tuple[Column, ...]
ArrowColumn = Union[pa.Array, pa.ChunkedArray]


@dataclass(frozen=True)
class TypedTable:
    schema: Schema
    rows: Tuple[Row, ...]

    def __post_init__(self) -> None:
        width = len(self.schema)
        for i, row in enumerate(self.rows):
            if len(row) != width:
                raise SchemaError(f"Row {i} has {len(row)} values; schema has {width} columns")

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.schema]

    @property
    def n_rows(self) -> int:
        return len(self.rows)

    @property
    def n_cols(self) -> int:
        return len(self.schema)

    def with_rows(self, rows: Iterable[Row]) -> "TypedTable":
        return TypedTable(schema=self.schema, rows=tuple(rows))

    @classmethod
    def from_rows(cls, schema: Sequence[Column], rows: Iterable[Sequence[Any]]) -> "TypedTable":
        """
        Build a validated table from plain Python rows.
        numpy / pandas scalars are converted to native values; pd.NA and None mean missing.
        """
        schema_t = tuple(schema)
        out: List[Row] = []
        for i, row in enumerate(rows):
            if len(row) != len(schema_t):
                raise SchemaError(f"Row {i} has {len(row)} values; schema has {len(schema_t)} columns")
            out.append(tuple(_normalize_value(v, col) for v, col in zip(row, schema_t)))
        return cls(schema=schema_t, rows=tuple(out))

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "TypedTable":
        """
        Build a table from a pandas DataFrame (pandas missing markers are null).
        Columns are converted through Arrow, so pd.ArrowDtype columns keep NaN.
        """
        if df.shape[1] == 0:
            return cls.from_rows([], [()] * int(df.shape[0]))

        names = [str(df.columns[pos]) for pos in range(df.shape[1])]
        arrays = [_series_to_arrow(name, df.iloc[:, pos]) for pos, name in enumerate(names)]
        return cls._from_arrow_columns(names, arrays, int(df.shape[0]))

    @classmethod
    def from_arrow(cls, table: pa.Table) -> "TypedTable":
        """
        Build a table from a pyarrow Table.
        Nulls come from the validity bitmap only: a NaN float stays NaN.
        """
        names = [table.schema.field(i).name for i in range(table.num_columns)]
        arrays = [table.column(i) for i in range(table.num_columns)]
        return cls._from_arrow_columns(names, arrays, table.num_rows)

    @classmethod
    def _from_arrow_columns(cls, names: Sequence[str], arrays: Sequence[ArrowColumn], n_rows: int) -> "TypedTable":
        schema: List[Column] = []
        columns: List[list] = []
        for name, arr in zip(names, arrays):
            col_type = arrow_column_type(name, arr)
            if pa.types.is_dictionary(arr.type):
                arr = arr.cast(arr.type.value_type)
            schema.append(Column(name=name, type=col_type))
            columns.append(arr.to_pylist())

        rows = zip(*columns) if columns else [()] * n_rows
        return cls.from_rows(schema, rows)


def arrow_column_type(name: str, arr: ArrowColumn) -> ColumnType:
    """
    Map an Arrow column to a ColumnType (see module docstring).
    """
    if arr.null_count == len(arr):
        return ColumnType.NULL

    t = arr.type
    if pa.types.is_dictionary(t):
        t = t.value_type

    if pa.types.is_boolean(t):
        return ColumnType.BOOLEAN
    if pa.types.is_integer(t):
        return ColumnType.INTEGER
    if pa.types.is_floating(t):
        return ColumnType.FLOAT
    if pa.types.is_string(t) or pa.types.is_large_string(t):
        return ColumnType.STRING

    raise UnsupportedColumnTypeError(name, str(arr.type))


def infer_column_type(name: str, series: pd.Series) -> ColumnType:
    return arrow_column_type(name, _series_to_arrow(name, series))


def _series_to_arrow(name: str, series: pd.Series) -> ArrowColumn:
    try:
        return pa.array(series, from_pandas=True)
    except (pa.ArrowInvalid, pa.ArrowTypeError, pa.ArrowNotImplementedError) as e:
        inferred = ptypes.infer_dtype(series, skipna=True)
        raise UnsupportedColumnTypeError(name, f"object({inferred})") from e


def _normalize_value(value: Any, col: Column) -> Optional[Any]:
    if value is None or value is pd.NA:
        return None

    t = col.type
    if t is ColumnType.BOOLEAN:
        if _is_bool(value):
            return bool(value)
    elif t is ColumnType.INTEGER:
        if isinstance(value, numbers.Integral) and not _is_bool(value):
            return int(value)
    elif t is ColumnType.FLOAT:
        if isinstance(value, numbers.Real) and not _is_bool(value):
            return float(value)
    elif t is ColumnType.STRING:
        if isinstance(value, str):
            return str(value)

    raise SchemaError(f"Value {value!r} does not match column {col.name!r} of type {t.value}")


def _is_bool(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_))


__all__ = [
    "ColumnType",
    "Column",
    "TypedTable",
    "Row",
    "Schema",
    "arrow_column_type",
    "infer_column_type",
]
