"""Unit tests for staging table operations."""

from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from store.schema import stage_charge_rows
from store.staging_store import (
    append_staging_rows,
    delete_staging_batch,
    delete_staging_by_file,
    staging_row_values,
)
from transforms.row_normalizer import normalize_row


def _count_rows(store_engine) -> int:
    with store_engine.connect() as connection:
        return connection.execute(select(func.count()).select_from(stage_charge_rows)).scalar_one()


def test_staging_row_values_flattens_codes(make_row) -> None:
    """Code values should become one column each."""
    staged = normalize_row(make_row(cpt_code="99213"), uuid4(), 1, 1, False)

    values = staging_row_values(staged)

    assert values["cpt_code"] == "99213"
    assert values["ndc_code"] is None
    assert "codes" not in values


def test_duplicate_row_hash_in_batch_is_rejected(store_engine, make_row) -> None:
    """The same row content twice in one batch should violate uniqueness."""
    staged = normalize_row(make_row(cpt_code="99213"), uuid4(), 1, 1, False)

    with pytest.raises(IntegrityError):
        with store_engine.begin() as connection:
            append_staging_rows(connection, [staged, staged])

    assert _count_rows(store_engine) == 0


def test_deletes_are_scoped(store_engine, make_row) -> None:
    """Batch and file deletes should not touch other batches or files."""
    batch_a, batch_b, batch_c = uuid4(), uuid4(), uuid4()
    rows = [
        normalize_row(make_row(cpt_code="1"), batch_a, 1, 1, False),
        normalize_row(make_row(cpt_code="2"), batch_b, 1, 1, False),
        normalize_row(make_row(cpt_code="3"), batch_c, 2, 1, False),
    ]
    with store_engine.begin() as connection:
        append_staging_rows(connection, rows)

    assert delete_staging_by_file(store_engine, 1, keep_batch_id=batch_b) == 1
    assert delete_staging_batch(store_engine, batch_b) == 1
    assert _count_rows(store_engine) == 1
