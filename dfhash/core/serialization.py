# dfhash/core/serialization.py
"""
Canonical Serializer — sorted TypedTable -> one exact byte sequence

Format (fixed, platform independent)
- Encoding UTF-8, delimiter ",", every line terminated by "\\n" (the last one too).
- Header line: one cell per column, "<name>:<type>" with type tokens
  int | float | bool | str | null. The name follows the string quoting rule.
- One line per row, values in schema order:
  - null     -> empty field
  - int      -> canonical decimal (str(int))
  - float    -> shortest round-trip repr ("1.0", "0.1", "1e+16");
                -0.0 -> "0.0"; NaN -> "NaN"; +/-inf -> "Infinity" / "-Infinity"
  - bool     -> "true" / "false"
  - str      -> bare, unless empty or containing , " \\r \\n; then wrapped in
                double quotes with inner quotes doubled. An empty string is
                therefore always '""' and never collides with null.

Equal tables (same schema, same multiset of rows, canonically sorted) produce
byte-identical output; values whose sort keys are equal (-0.0 / 0.0, NaN
payloads) render identically.

Failure modes
- A value that does not match its column type, or text that cannot be encoded
  as UTF-8 (lone surrogates), raises SerializationError.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Iterator, List

from dfhash.core.table import Column, ColumnType, TypedTable
from dfhash.utils.errors import SerializationError

DELIMITER = ","
LINE_TERMINATOR = "\n"
ENCODING = "utf-8"
QUOTE = '"'

_NEEDS_QUOTING = (DELIMITER, QUOTE, "\r", "\n")


def quote_string(s: str) -> str:
    if s == "" or any(ch in s for ch in _NEEDS_QUOTING):
        return QUOTE + s.replace(QUOTE, QUOTE + QUOTE) + QUOTE
    return s


def format_float(x: float) -> str:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    if x == 0.0:
        return "0.0"
    return repr(x)


def _formatter(col: Column) -> Callable[[Any], str]:
    t = col.type

    def fail(v: Any) -> SerializationError:
        return SerializationError(
            f"Cannot render {v!r} in column {col.name!r} of type {t.value}",
            column=col.name,
        )

    if t is ColumnType.INTEGER:
        def fmt(v: Any) -> str:
            if type(v) is not int:
                raise fail(v)
            return str(v)

    elif t is ColumnType.FLOAT:
        def fmt(v: Any) -> str:
            if not isinstance(v, float):
                raise fail(v)
            return format_float(v)

    elif t is ColumnType.BOOLEAN:
        def fmt(v: Any) -> str:
            if type(v) is not bool:
                raise fail(v)
            return "true" if v else "false"

    elif t is ColumnType.STRING:
        def fmt(v: Any) -> str:
            if not isinstance(v, str):
                raise fail(v)
            return quote_string(v)

    else:
        def fmt(v: Any) -> str:
            raise fail(v)

    return fmt


def _encode(line: str) -> bytes:
    try:
        return (line + LINE_TERMINATOR).encode(ENCODING)
    except UnicodeEncodeError as e:
        raise SerializationError(f"Text is not encodable as {ENCODING}: {e}") from e


def header_line(table: TypedTable) -> str:
    return DELIMITER.join(f"{quote_string(c.name)}:{c.type.value}" for c in table.schema)


def iter_serialized(table: TypedTable) -> Iterator[bytes]:
    """
    Yield the canonical representation line by line (header first).
    Joining the chunks gives exactly serialize(table).
    """
    yield _encode(header_line(table))

    formatters: List[Callable[[Any], str]] = [_formatter(c) for c in table.schema]
    for row in table.rows:
        cells = ["" if v is None else f(v) for f, v in zip(formatters, row)]
        yield _encode(DELIMITER.join(cells))


def serialize(table: TypedTable) -> bytes:
    return b"".join(iter_serialized(table))


__all__ = [
    "DELIMITER",
    "LINE_TERMINATOR",
    "ENCODING",
    "quote_string",
    "format_float",
    "header_line",
    "iter_serialized",
    "serialize",
]
