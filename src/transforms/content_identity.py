"""Content identity digests.

This module computes the whole-file digest used to register a source
file exactly once, and the per-row digest used for staging uniqueness.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterable

from core.constants import FILE_HASH_CHUNK_SIZE, HASH_ALGORITHM
from core.errors import MrfValidationError


def hash_file(file_path: str | Path) -> str:
    """Hash a file's bytes with the configured digest algorithm.

    Reads in fixed-size chunks so memory use does not grow with file size.

    Args:
        file_path: Path to the source file.

    Returns:
        Hex digest string.

    Raises:
        MrfValidationError: If the file cannot be read.
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    try:
        with open(file_path, "rb") as handle:
            for chunk in iter(lambda: handle.read(FILE_HASH_CHUNK_SIZE), b""):
                hasher.update(chunk)
    except OSError as error:
        raise MrfValidationError(
            f"Failed to read source file at {file_path} for hashing: {error}. "
            "Provide a readable file path."
        ) from error
    return hasher.hexdigest()


def build_row_hash(row_number: int, values: Iterable[str | None]) -> bytes:
    """Build a stable digest over a row's identifying values.

    The row number is encoded as 8 little-endian bytes, then each value
    is trimmed and followed by a NUL separator. ``None`` hashes as empty.

    Args:
        row_number: One-based source row number.
        values: Identifying field values in a fixed order.

    Returns:
        Raw digest bytes.
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(row_number.to_bytes(8, "little", signed=False))
    for value in values:
        hasher.update((value or "").strip().encode("utf-8"))
        hasher.update(b"\x00")
    return hasher.digest()
