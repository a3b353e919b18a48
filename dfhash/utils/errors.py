# dfhash/utils/errors.py
"""
Error taxonomy (per-file failures)

Intent
- One place for the exceptions raised by the loader, the canonicalization core
  and the hasher, so the orchestrator can report each file independently.

Hierarchy
- DfHashError
  - LoadError                 file missing / unreadable / undecodable
  - SchemaError               table violates the typed-table invariants
    - UnsupportedColumnTypeError
  - IncomparableValueError    a value cannot take part in the total order
  - SchemaMismatchError       two tables are not comparable (equality mode)
  - SerializationError        a value cannot be rendered canonically
  - HashError                 digest computation failed
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class DfHashError(Exception):
    """Base class for all dfhash errors."""


class LoadError(DfHashError):
    def __init__(self, path: Union[str, Path], reason: str) -> None:
        super().__init__(reason)
        self.path = str(path)
        self.reason = reason


class SchemaError(DfHashError):
    pass


class UnsupportedColumnTypeError(SchemaError):
    def __init__(self, column: str, dtype: str) -> None:
        super().__init__(f"Unsupported column type for {column!r}: {dtype}")
        self.column = column
        self.dtype = dtype


class IncomparableValueError(DfHashError):
    def __init__(self, column: str, value: object, expected: str) -> None:
        super().__init__(
            f"Value {value!r} in column {column!r} cannot be ordered as {expected}"
        )
        self.column = column
        self.value = value
        self.expected = expected


class SchemaMismatchError(DfHashError):
    pass


class SerializationError(DfHashError):
    def __init__(self, message: str, *, column: Optional[str] = None) -> None:
        super().__init__(message)
        self.column = column


class HashError(DfHashError):
    pass


__all__ = [
    "DfHashError",
    "LoadError",
    "SchemaError",
    "UnsupportedColumnTypeError",
    "IncomparableValueError",
    "SchemaMismatchError",
    "SerializationError",
    "HashError",
]
