"""Source entity and file record operations.

This module resolves hospitals by exact name and registers MRF files
by content digest. A conflicting registration reports ``None`` so the
caller can fall back to lookup instead of failing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import Connection, Engine, and_, insert, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import IntegrityError

from core.file_status import FileStatus, parse_file_status
from store.schema import hospitals, mrf_files


@dataclass(frozen=True)
class HospitalMetadata:
    """Source entity attributes taken from a file's first row."""

    hospital_name: str
    hospital_location: str | None = None
    hospital_address: str | None = None
    license_number: str | None = None
    license_state: str | None = None


@dataclass(frozen=True)
class FileRegistration:
    """Attributes written when a file is first registered."""

    hospital_id: int
    source_file_name: str
    source_file_sha256: str
    file_size_bytes: int
    version: str | None = None
    last_updated_on: date | None = None
    affirmation: bool | None = None


@dataclass(frozen=True)
class FileRecord:
    """Persisted file record state."""

    mrf_file_id: int
    hospital_id: int
    source_file_sha256: str
    status: FileStatus
    is_active: bool


def find_hospital_id(engine: Engine, hospital_name: str) -> int | None:
    """Return the first hospital id with exactly this name, if any."""
    statement = (
        select(hospitals.c.hospital_id)
        .where(hospitals.c.hospital_name == hospital_name)
        .order_by(hospitals.c.hospital_id)
        .limit(1)
    )
    with engine.connect() as connection:
        return connection.execute(statement).scalar_one_or_none()


def insert_hospital(engine: Engine, hospital: HospitalMetadata) -> int:
    """Insert a hospital and return its id."""
    statement = insert(hospitals).values(
        hospital_name=hospital.hospital_name,
        hospital_location=hospital.hospital_location,
        hospital_address=hospital.hospital_address,
        license_number=hospital.license_number,
        license_state=hospital.license_state,
    )
    with engine.begin() as connection:
        result = connection.execute(statement)
        return int(result.inserted_primary_key[0])


def register_file(engine: Engine, registration: FileRegistration) -> int | None:
    """Insert a pending file record.

    Args:
        engine: Store engine.
        registration: File attributes.

    Returns:
        New file id, or ``None`` when a record for the same hospital and
        digest already exists.
    """
    statement = insert(mrf_files).values(
        hospital_id=registration.hospital_id,
        source_file_name=registration.source_file_name,
        source_file_sha256=registration.source_file_sha256,
        version=registration.version,
        last_updated_on=registration.last_updated_on,
        affirmation=registration.affirmation,
        file_size_bytes=registration.file_size_bytes,
        status=FileStatus.PENDING.value,
        is_active=False,
    )
    try:
        with engine.begin() as connection:
            result = connection.execute(statement)
            return int(result.inserted_primary_key[0])
    except IntegrityError:
        return None


def find_file(engine: Engine, hospital_id: int, file_sha256: str) -> FileRecord | None:
    """Look up the file record for a hospital and content digest."""
    statement = select(mrf_files).where(
        and_(
            mrf_files.c.hospital_id == hospital_id,
            mrf_files.c.source_file_sha256 == file_sha256,
        )
    )
    with engine.connect() as connection:
        row = connection.execute(statement).mappings().one_or_none()
    return None if row is None else _file_record_from_row(row)


def get_file(engine: Engine, mrf_file_id: int) -> FileRecord | None:
    """Load a file record by id."""
    statement = select(mrf_files).where(mrf_files.c.mrf_file_id == mrf_file_id)
    with engine.connect() as connection:
        row = connection.execute(statement).mappings().one_or_none()
    return None if row is None else _file_record_from_row(row)


def set_file_status(engine: Engine, mrf_file_id: int, status: FileStatus) -> int:
    """Persist a file status and return the affected row count."""
    statement = (
        update(mrf_files)
        .where(mrf_files.c.mrf_file_id == mrf_file_id)
        .values(status=status.value)
    )
    with engine.begin() as connection:
        return connection.execute(statement).rowcount


def deactivate_other_versions(connection: Connection, hospital_id: int, mrf_file_id: int) -> int:
    """Clear the active flag on every other file of the hospital.

    Returns:
        Number of file records deactivated.
    """
    statement = (
        update(mrf_files)
        .where(
            and_(
                mrf_files.c.hospital_id == hospital_id,
                mrf_files.c.mrf_file_id != mrf_file_id,
                mrf_files.c.is_active.is_(True),
            )
        )
        .values(is_active=False)
    )
    return connection.execute(statement).rowcount


def activate_version(connection: Connection, mrf_file_id: int) -> int:
    """Mark a file record active and return the affected row count."""
    statement = (
        update(mrf_files)
        .where(mrf_files.c.mrf_file_id == mrf_file_id)
        .values(is_active=True, status=FileStatus.ACTIVE.value)
    )
    return connection.execute(statement).rowcount


def _file_record_from_row(mapping: RowMapping) -> FileRecord:
    """Map a ``mrf_files`` result row to a ``FileRecord``."""
    return FileRecord(
        mrf_file_id=int(mapping["mrf_file_id"]),
        hospital_id=int(mapping["hospital_id"]),
        source_file_sha256=str(mapping["source_file_sha256"]),
        status=parse_file_status(str(mapping["status"])),
        is_active=bool(mapping["is_active"]),
    )
