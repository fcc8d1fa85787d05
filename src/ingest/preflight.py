"""Preflight phase.

This module resolves everything the later phases need before any row
is staged: content digest, schema check, source entity, file record,
and a fresh ingest batch id.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping
from uuid import uuid4

from sqlalchemy import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from core.config import IngestConfig
from core.errors import MrfConnectionError, MrfLoadError, MrfValidationError
from core.file_status import FileStatus
from core.logging_config import get_logger
from core.types import PreflightResult
from ingest.source_reader import ParquetChargeReader, require_valid_schema
from store.file_registry import (
    FileRegistration,
    HospitalMetadata,
    find_file,
    find_hospital_id,
    insert_hospital,
    register_file,
    set_file_status,
)
from transforms.content_identity import hash_file
from transforms.row_normalizer import optional_text, parse_date

_LOGGER = get_logger(__name__)


def run_preflight(engine: Engine, config: IngestConfig, file_path: str) -> PreflightResult:
    """Validate a source file and register it with the store.

    Args:
        engine: Store engine.
        config: Run configuration; ``force`` controls re-import.
        file_path: Path to the Parquet file.

    Returns:
        Resolved preflight context. ``already_loaded`` is true when the
        same content is already transformed or active and ``force`` is off.

    Raises:
        MrfValidationError: If the file is unreadable, empty, or has an
            invalid schema.
        MrfConnectionError: If the store cannot be reached.
        MrfLoadError: If another store operation fails.
    """
    file_sha256 = hash_file(file_path)
    file_size = _file_size(file_path)
    with ParquetChargeReader(file_path) as reader:
        require_valid_schema(reader.field_names, file_path)
        num_rows = reader.num_rows
        first_row = reader.read_first_row()
    if first_row is None:
        raise MrfValidationError(
            f"Source file {file_path} contains no rows. Provide a non-empty MRF file."
        )
    _LOGGER.info(
        "preflight_complete",
        file=Path(file_path).name,
        sha256=file_sha256,
        rows=num_rows,
        hospital=first_row.get("hospital_name"),
    )
    try:
        hospital_id = resolve_hospital(engine, _hospital_metadata(first_row))
        mrf_file_id, already_loaded = register_or_lookup(
            engine,
            _file_registration(hospital_id, file_path, file_sha256, file_size, first_row),
            config.force,
        )
    except OperationalError as error:
        raise MrfConnectionError(
            f"Lost store connection during preflight: {error}. Check the store and retry."
        ) from error
    except SQLAlchemyError as error:
        raise MrfLoadError(
            f"Failed to register {file_path} in the store: {error}. "
            "Run migrate if the schema is missing."
        ) from error
    return PreflightResult(
        file_path=file_path,
        file_sha256=file_sha256,
        file_size=file_size,
        hospital_id=hospital_id,
        mrf_file_id=mrf_file_id,
        ingest_batch_id=uuid4(),
        num_rows=num_rows,
        already_loaded=already_loaded,
        first_row=first_row,
    )


def resolve_hospital(engine: Engine, hospital: HospitalMetadata) -> int:
    """Find a source entity by exact name or create it.

    A failed insert falls back to a second lookup so concurrent runs
    creating the same entity do not crash.
    """
    hospital_id = find_hospital_id(engine, hospital.hospital_name)
    if hospital_id is not None:
        return hospital_id
    try:
        return insert_hospital(engine, hospital)
    except SQLAlchemyError:
        hospital_id = find_hospital_id(engine, hospital.hospital_name)
        if hospital_id is None:
            raise
        return hospital_id


def register_or_lookup(
    engine: Engine,
    registration: FileRegistration,
    force: bool,
) -> tuple[int, bool]:
    """Register a file record, falling back to the existing one.

    Args:
        engine: Store engine.
        registration: File attributes for a new record.
        force: Re-import content that is already loaded.

    Returns:
        File id and the already-loaded flag.

    Raises:
        MrfLoadError: If the conflicting record cannot be found.
    """
    mrf_file_id = register_file(engine, registration)
    if mrf_file_id is not None:
        return mrf_file_id, False
    record = find_file(engine, registration.hospital_id, registration.source_file_sha256)
    if record is None:
        raise MrfLoadError(
            f"File registration for sha256 {registration.source_file_sha256} conflicted "
            "but no existing record was found. Retry the ingest."
        )
    if record.status.is_loaded and not force:
        _LOGGER.info(
            "file_already_loaded",
            mrf_file_id=record.mrf_file_id,
            status=record.status.value,
        )
        return record.mrf_file_id, True
    # Re-import starts over from pending regardless of the prior status.
    set_file_status(engine, record.mrf_file_id, FileStatus.PENDING)
    _LOGGER.info(
        "file_reimport",
        mrf_file_id=record.mrf_file_id,
        previous_status=record.status.value,
        force=force,
    )
    return record.mrf_file_id, False


def _file_size(file_path: str) -> int:
    """Return the source size in bytes, mapping stat errors to validation errors."""
    try:
        return os.path.getsize(file_path)
    except OSError as error:
        raise MrfValidationError(
            f"Failed to stat source file at {file_path}: {error}. Provide a readable file path."
        ) from error


def _hospital_metadata(first_row: Mapping[str, object]) -> HospitalMetadata:
    """Build source entity attributes from the first row."""
    return HospitalMetadata(
        hospital_name=str(first_row.get("hospital_name") or ""),
        hospital_location=optional_text(first_row.get("hospital_location")),
        hospital_address=optional_text(first_row.get("hospital_address")),
        license_number=optional_text(first_row.get("license_number")),
        license_state=optional_text(first_row.get("license_state")),
    )


def _file_registration(
    hospital_id: int,
    file_path: str,
    file_sha256: str,
    file_size: int,
    first_row: Mapping[str, object],
) -> FileRegistration:
    """Build the file record attributes from the first row."""
    affirmation = first_row.get("affirmation")
    return FileRegistration(
        hospital_id=hospital_id,
        source_file_name=Path(file_path).name,
        source_file_sha256=file_sha256,
        file_size_bytes=file_size,
        version=optional_text(first_row.get("version")),
        last_updated_on=parse_date(first_row.get("last_updated_on")),
        affirmation=None if affirmation is None else bool(affirmation),
    )
