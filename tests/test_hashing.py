# tests/test_hashing.py

from __future__ import annotations

import hashlib

import pytest

from dfhash.core.serialization import serialize
from dfhash.core.sorting import sort_table
from dfhash.core.table import Column, ColumnType, TypedTable
from dfhash.utils.errors import HashError
from dfhash.utils.hashing import DIGEST_HEX_LEN, hash_table, sha256_bytes, sha256_chunks


def _ab(rows) -> TypedTable:
    schema = [Column("a", ColumnType.INTEGER), Column("b", ColumnType.INTEGER)]
    return sort_table(TypedTable.from_rows(schema, rows))


def test_sha256_bytes_known_vector():
    assert sha256_bytes(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_sha256_chunks_is_single_pass_over_concatenation():
    assert sha256_chunks([b"ab", b"", b"c"]) == sha256_bytes(b"abc") == hashlib.sha256(b"abc").hexdigest()
    assert sha256_chunks(iter([b"abc"])) == sha256_bytes(b"abc")


def test_hash_table_matches_serialized_bytes():
    t = _ab([(1, 2), (3, 4)])
    h = hash_table(t)
    assert h == sha256_bytes(serialize(t))
    assert len(h) == DIGEST_HEX_LEN
    assert h == h.lower()
    int(h, 16)


def test_hash_is_order_invariant():
    assert hash_table(_ab([(1, 2), (3, 4)])) == hash_table(_ab([(3, 4), (1, 2)]))


def test_hash_changes_on_single_cell():
    assert hash_table(_ab([(1, 2), (3, 4)])) != hash_table(_ab([(1, 2), (9, 9)]))
    assert hash_table(_ab([(1, 2), (3, 4)])) != hash_table(_ab([(1, 2), (3, None)]))


def test_duplicate_row_changes_hash():
    assert hash_table(_ab([(1, 2), (3, 4)])) != hash_table(_ab([(1, 2), (3, 4), (3, 4)]))


def test_non_bytes_chunk_raises_hash_error():
    with pytest.raises(HashError):
        sha256_chunks(["not bytes"])  # type: ignore[list-item]
