"""Unit tests for content identity digests."""

from __future__ import annotations

import hashlib

import pytest

from core.errors import MrfValidationError
from transforms.content_identity import build_row_hash, hash_file


def test_hash_file_matches_sha256_of_bytes(tmp_path) -> None:
    """The file digest should equal SHA-256 of its bytes."""
    file_path = tmp_path / "data.bin"
    payload = b"x" * (3 * 1024 * 1024 + 17)
    file_path.write_bytes(payload)

    assert hash_file(file_path) == hashlib.sha256(payload).hexdigest()


def test_hash_file_raises_for_missing_file(tmp_path) -> None:
    """An unreadable file should raise a validation error."""
    with pytest.raises(MrfValidationError):
        hash_file(tmp_path / "missing.parquet")


def test_row_hash_layout() -> None:
    """The row digest should cover the row number and NUL-separated values."""
    expected = hashlib.sha256(
        (5).to_bytes(8, "little") + b"Office visit\x00\x0099213\x00"
    ).digest()

    assert build_row_hash(5, [" Office visit ", None, "99213"]) == expected
