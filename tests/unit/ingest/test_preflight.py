"""Unit tests for the preflight phase."""

from __future__ import annotations

import pytest

from core.config import IngestConfig
from core.errors import MrfValidationError
from core.file_status import FileStatus
from ingest.preflight import run_preflight
from store.file_registry import get_file, set_file_status
from transforms.content_identity import hash_file


def test_preflight_registers_new_file(store_engine, write_charge_file, make_row) -> None:
    """A new file should be registered as pending and not already loaded."""
    file_path = write_charge_file([make_row(cpt_code="99213"), make_row(cpt_code="99214")])

    result = run_preflight(store_engine, IngestConfig(), str(file_path))

    assert result.already_loaded is False
    assert result.num_rows == 2
    assert result.file_sha256 == hash_file(file_path)
    assert result.first_row["hospital_name"] == "General Hospital"
    assert get_file(store_engine, result.mrf_file_id).status is FileStatus.PENDING


def test_preflight_reports_already_loaded(store_engine, write_charge_file, make_row) -> None:
    """A transformed file should be skipped without force."""
    file_path = write_charge_file([make_row(cpt_code="99213")])
    first = run_preflight(store_engine, IngestConfig(), str(file_path))
    set_file_status(store_engine, first.mrf_file_id, FileStatus.TRANSFORMED)

    second = run_preflight(store_engine, IngestConfig(), str(file_path))

    assert second.already_loaded is True
    assert second.mrf_file_id == first.mrf_file_id
    assert second.hospital_id == first.hospital_id


def test_preflight_force_resets_status(store_engine, write_charge_file, make_row) -> None:
    """Forcing a loaded file should reset it to pending with a new batch."""
    file_path = write_charge_file([make_row(cpt_code="99213")])
    first = run_preflight(store_engine, IngestConfig(), str(file_path))
    set_file_status(store_engine, first.mrf_file_id, FileStatus.ACTIVE)

    forced = run_preflight(store_engine, IngestConfig(force=True), str(file_path))

    assert forced.already_loaded is False
    assert forced.ingest_batch_id != first.ingest_batch_id
    assert get_file(store_engine, forced.mrf_file_id).status is FileStatus.PENDING


def test_preflight_retries_failed_file_without_force(
    store_engine, write_charge_file, make_row
) -> None:
    """A file that failed earlier should be re-imported without force."""
    file_path = write_charge_file([make_row(cpt_code="99213")])
    first = run_preflight(store_engine, IngestConfig(), str(file_path))
    set_file_status(store_engine, first.mrf_file_id, FileStatus.FAILED)

    retry = run_preflight(store_engine, IngestConfig(), str(file_path))

    assert retry.already_loaded is False
    assert get_file(store_engine, retry.mrf_file_id).status is FileStatus.PENDING


def test_preflight_rejects_empty_file(store_engine, write_charge_file) -> None:
    """A file with no rows should fail validation."""
    file_path = write_charge_file([])

    with pytest.raises(MrfValidationError, match="no rows"):
        run_preflight(store_engine, IngestConfig(), str(file_path))
