"""Parquet charge file reader and schema gate.

This module streams wide charge rows from a Parquet file in fixed-size
batches and checks the file's columns before any row is read.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

import pyarrow as pa
import pyarrow.parquet as pq

from core.code_types import code_type_columns
from core.constants import DEFAULT_READ_BATCH_SIZE, REQUIRED_SOURCE_FIELDS
from core.errors import MrfValidationError
from core.types import SchemaCheck


class ParquetChargeReader:
    """Streaming reader over one Parquet charge file.

    Column names are lowercased on read so downstream lookups match the
    case-insensitive schema gate.
    """

    def __init__(self, file_path: str) -> None:
        self._file_path = Path(file_path).expanduser()
        try:
            self._parquet_file = pq.ParquetFile(str(self._file_path))
        except (OSError, pa.ArrowException) as error:
            raise MrfValidationError(
                f"Failed to open Parquet file at {self._file_path}: {error}. "
                "Provide a readable MRF Parquet file."
            ) from error

    @property
    def field_names(self) -> tuple[str, ...]:
        """Return source column names in file order."""
        return tuple(self._parquet_file.schema_arrow.names)

    @property
    def num_rows(self) -> int:
        """Return the row count declared by the file metadata."""
        return int(self._parquet_file.metadata.num_rows)

    def iter_batches(
        self, batch_size: int = DEFAULT_READ_BATCH_SIZE
    ) -> Iterator[list[dict[str, object]]]:
        """Yield source rows in order, ``batch_size`` rows at a time.

        Raises:
            MrfValidationError: If a row group cannot be decoded.
        """
        try:
            for record_batch in self._parquet_file.iter_batches(batch_size=batch_size):
                yield [_lowercase_keys(row) for row in record_batch.to_pylist()]
        except (OSError, pa.ArrowException) as error:
            raise MrfValidationError(
                f"Failed to read rows from {self._file_path}: {error}. "
                "The file may be truncated or corrupt."
            ) from error

    def read_first_row(self) -> dict[str, object] | None:
        """Return the first source row, or ``None`` for an empty file."""
        for batch in self.iter_batches(batch_size=1):
            if batch:
                return batch[0]
        return None

    def close(self) -> None:
        """Release the underlying file handle."""
        self._parquet_file.close()

    def __enter__(self) -> "ParquetChargeReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def validate_schema(field_names: Iterable[str]) -> SchemaCheck:
    """Check a source's columns without inspecting row contents.

    Args:
        field_names: Column names declared by the source.

    Returns:
        Structured check result. Fails when a required field is absent
        or when no recognized code column is present.
    """
    present = {name.lower() for name in field_names}
    missing_required = tuple(name for name in REQUIRED_SOURCE_FIELDS if name not in present)
    present_code_columns = tuple(column for column in code_type_columns() if column in present)
    problems: list[str] = []
    if missing_required:
        problems.append(f"missing required fields: {', '.join(missing_required)}")
    if not present_code_columns:
        problems.append("no recognized code columns present")
    return SchemaCheck(
        ok=not problems,
        missing_required=missing_required,
        present_code_columns=present_code_columns,
        message="; ".join(problems),
    )


def require_valid_schema(field_names: Iterable[str], file_path: str) -> SchemaCheck:
    """Run the schema gate and raise when it fails.

    Raises:
        MrfValidationError: If the check does not pass.
    """
    check = validate_schema(field_names)
    if not check.ok:
        raise MrfValidationError(
            f"Invalid MRF schema in {file_path}: {check.message}. "
            "Expected description, hospital_name and at least one code column."
        )
    return check


def _lowercase_keys(row: dict[str, object]) -> dict[str, object]:
    """Lowercase a row's column names."""
    return {str(name).lower(): value for name, value in row.items()}
