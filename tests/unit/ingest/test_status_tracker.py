"""Unit tests for persisted file status transitions."""

from __future__ import annotations

import pytest

from core.errors import MrfStateError
from core.file_status import FileStatus
from ingest.status_tracker import FileStatusTracker
from store.file_registry import (
    FileRegistration,
    HospitalMetadata,
    get_file,
    insert_hospital,
    register_file,
)


def _file_id(store_engine) -> int:
    hospital_id = insert_hospital(store_engine, HospitalMetadata(hospital_name="General"))
    return register_file(
        store_engine,
        FileRegistration(
            hospital_id=hospital_id,
            source_file_name="mrf.parquet",
            source_file_sha256="c" * 64,
            file_size_bytes=1,
        ),
    )


def test_advance_persists_valid_transitions(store_engine) -> None:
    """Each allowed step should be written to the file record."""
    file_id = _file_id(store_engine)
    tracker = FileStatusTracker(store_engine, file_id)

    tracker.advance(FileStatus.STAGING)
    tracker.advance(FileStatus.STAGED)

    assert tracker.current is FileStatus.STAGED
    assert get_file(store_engine, file_id).status is FileStatus.STAGED


def test_advance_rejects_invalid_transition(store_engine) -> None:
    """Skipping ahead should raise and persist nothing."""
    file_id = _file_id(store_engine)
    tracker = FileStatusTracker(store_engine, file_id)

    with pytest.raises(MrfStateError):
        tracker.advance(FileStatus.TRANSFORMED)

    assert get_file(store_engine, file_id).status is FileStatus.PENDING


def test_mark_failed_is_skipped_for_terminal_status(store_engine) -> None:
    """A failure after activation should not overwrite the active status."""
    file_id = _file_id(store_engine)
    tracker = FileStatusTracker(store_engine, file_id, initial=FileStatus.ACTIVE)

    tracker.mark_failed()

    assert tracker.current is FileStatus.ACTIVE
    assert get_file(store_engine, file_id).status is FileStatus.PENDING
