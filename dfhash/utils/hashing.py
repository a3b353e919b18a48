# dfhash/utils/hashing.py
"""
Hashing utilities (deterministic)

Intent
- Reduce the canonical byte sequence of a table to a fixed-size digest.
- Keep all digest logic in one place to avoid drift.

Notes
- SHA-256, lowercase hex (64 chars).
- Pure function of the input bytes: no path or metadata is mixed in.
- sha256_chunks() consumes an iterable in a single pass, so a table can be
  hashed straight from the serializer without building a second buffer.
"""

from __future__ import annotations

from hashlib import sha256
from typing import Iterable

from dfhash.core.serialization import iter_serialized
from dfhash.core.table import TypedTable
from dfhash.utils.errors import DfHashError, HashError

DIGEST_HEX_LEN = 64


def sha256_bytes(data: bytes) -> str:
    """
    SHA-256 hex digest of a byte string.
    """
    return sha256_chunks([data])


def sha256_chunks(chunks: Iterable[bytes]) -> str:
    """
    SHA-256 hex digest of the concatenation of `chunks`.
    """
    h = sha256()
    try:
        for chunk in chunks:
            h.update(chunk)
    except DfHashError:
        raise
    except (TypeError, ValueError, MemoryError) as e:
        raise HashError(f"Digest computation failed: {e}") from e
    return h.hexdigest()


def hash_table(table: TypedTable) -> str:
    """
    Digest of the canonical serialization of an (already sorted) table.
    """
    return sha256_chunks(iter_serialized(table))


__all__ = ["DIGEST_HEX_LEN", "sha256_bytes", "sha256_chunks", "hash_table"]
