# dfhash/io/readers.py
"""
Reader (CSV/TSV/PSV, compressed or not, and Parquet) -> TypedTable

Intent
- Decode a file and hand it to the core as a TypedTable.
- Stay format-agnostic for the core: every supported format yields the same
  TypedTable for the same logical data.

External calls
- pandas.read_csv  (compression inferred from the suffix; .zst needs `zstandard`)
- pyarrow.parquet.read_table
- dfhash.core.table.TypedTable.from_dataframe / from_arrow

Format detection (by suffix, case-insensitive)
- optional outer compression: .gz | .zst | .zstd | .bz2 | .xz
- .parquet | .pq            -> parquet (outer compression not supported)
- .csv -> ","  .tsv -> "\\t"  .psv -> "|"  .txt -> ","
- anything else             -> csv

Key behaviors
- Delimited text is read with dtype_backend="numpy_nullable", so integer
  columns with gaps stay integers and missing cells are pd.NA.
- Delimited text: only an empty field is missing (keep_default_na=False);
  tokens like "NA" or "null" are ordinary strings.
- Delimited text: a column whose cells are all decimal numbers or the
  NaN / inf / infinity tokens (any case, optional sign on inf) is a float
  column; "NaN" there is the IEEE value, not a missing cell.
- Parquet is decoded straight to Arrow: null comes from the validity bitmap
  and NaN stays NaN.
- loader.delimiter in the parameters overrides the suffix-derived delimiter.

Error handling
- IO and decode failures (missing file, parser errors, corrupt compression,
  Arrow errors, unsupported column types) are raised as LoadError carrying
  the path, so the orchestrator can report the file and continue with the
  others. Anything else propagates unchanged.
"""

from __future__ import annotations

import lzma
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Literal, Optional, Union

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq
import zstandard
from pandas.api import types as ptypes

from dfhash.core.table import TypedTable
from dfhash.utils.config import LoaderConfig, ParametersConfig
from dfhash.utils.errors import DfHashError, LoadError
from dfhash.utils.logging import get_logger

PathLike = Union[str, Path]
FormatKind = Literal["delimited", "parquet"]

_COMPRESSIONS = {
    ".gz": "gzip",
    ".zst": "zstd",
    ".zstd": "zstd",
    ".bz2": "bz2",
    ".xz": "xz",
}

_DELIMS = {
    ".csv": ",",
    ".tsv": "\t",
    ".psv": "|",
    ".txt": ",",
}

_PARQUET_SUFFIXES = {".parquet", ".pq"}

_FLOAT_TOKENS = {
    "nan": math.nan,
    "inf": math.inf,
    "+inf": math.inf,
    "-inf": -math.inf,
    "infinity": math.inf,
    "+infinity": math.inf,
    "-infinity": -math.inf,
}

_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

_DECODE_ERRORS = (
    OSError,
    EOFError,
    ValueError,
    pd.errors.ParserError,
    lzma.LZMAError,
    zstandard.ZstdError,
    pa.ArrowException,
    DfHashError,
)


@dataclass(frozen=True)
class TableFormat:
    kind: FormatKind
    delimiter: str = ","
    compression: Optional[str] = None


def detect_format(path: PathLike) -> TableFormat:
    suffixes = [s.lower() for s in Path(path).suffixes]

    compression: Optional[str] = None
    if suffixes and suffixes[-1] in _COMPRESSIONS:
        compression = _COMPRESSIONS[suffixes[-1]]
        suffixes = suffixes[:-1]

    base = suffixes[-1] if suffixes else ""
    if base in _PARQUET_SUFFIXES:
        if compression is not None:
            raise ValueError(f"Compressed parquet is not supported ({compression})")
        return TableFormat(kind="parquet")

    return TableFormat(kind="delimited", delimiter=_DELIMS.get(base, ","), compression=compression)


def _require_file(p: Path) -> None:
    if not p.exists():
        raise FileNotFoundError(f"No such file or directory: {p}")


def read_frame(path: PathLike, loader: Optional[LoaderConfig] = None) -> pd.DataFrame:
    """
    Decode one delimited text file into a DataFrame (no TypedTable conversion).
    Columns of numbers mixed with NaN/inf tokens come back as double[pyarrow].
    """
    cfg = loader or LoaderConfig()
    p = Path(path)
    _require_file(p)

    fmt = detect_format(p)
    if fmt.kind != "delimited":
        raise ValueError(f"Not a delimited text file: {p}")

    df = pd.read_csv(
        p,
        sep=cfg.delimiter or fmt.delimiter,
        encoding=cfg.encoding,
        compression=fmt.compression,
        keep_default_na=False,
        na_values=[""],
        dtype_backend="numpy_nullable",
    )

    for pos in range(df.shape[1]):
        floats = _float_token_column(df.iloc[:, pos])
        if floats is not None:
            df.isetitem(pos, floats)
    return df


def read_parquet(path: PathLike) -> pa.Table:
    p = Path(path)
    _require_file(p)
    return pq.read_table(p)


def _float_token_column(series: pd.Series) -> Optional[pd.Series]:
    # Text column of decimals plus at least one NaN/inf token -> float column.
    if not (ptypes.is_object_dtype(series.dtype) or isinstance(series.dtype, pd.StringDtype)):
        return None

    values: List[Optional[float]] = []
    has_token = False
    for v in series.tolist():
        if not isinstance(v, str):
            if pd.isna(v):
                values.append(None)
                continue
            return None
        token = _FLOAT_TOKENS.get(v.lower())
        if token is not None:
            has_token = True
            values.append(token)
        elif _DECIMAL.fullmatch(v):
            values.append(float(v))
        else:
            return None

    if not has_token:
        return None

    # pa.array keeps NaN distinct from None (from_pandas=False)
    arr = pa.array(values, type=pa.float64())
    return pd.Series(pd.arrays.ArrowExtensionArray(arr), index=series.index, name=series.name)


def load_table(path: PathLike, params: Optional[ParametersConfig] = None) -> TypedTable:
    """
    Load a file into a TypedTable; IO and decode failures become LoadError(path, reason).
    """
    logger = get_logger(__name__)
    loader = params.loader if params is not None else None

    try:
        fmt = detect_format(path)
        if fmt.kind == "parquet":
            table = TypedTable.from_arrow(read_parquet(path))
        else:
            table = TypedTable.from_dataframe(read_frame(path, loader))
    except FileNotFoundError as e:
        raise LoadError(path, "No such file or directory") from e
    except _DECODE_ERRORS as e:
        reason = " ".join(str(e).split()) or type(e).__name__
        raise LoadError(path, reason) from e

    logger.info("Loaded %s (rows=%d, cols=%d)", str(path), table.n_rows, table.n_cols)
    return table


__all__ = ["TableFormat", "detect_format", "read_frame", "read_parquet", "load_table"]
