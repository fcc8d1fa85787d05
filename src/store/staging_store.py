"""Staging table operations.

This module appends normalized wide rows to the staging table and
deletes them by batch or by file. All writes are scoped so concurrent
runs against other batches are never touched.
"""

from __future__ import annotations

from typing import Sequence
from uuid import UUID

from sqlalchemy import Connection, Engine, delete, insert

from core.code_types import ALL_CODE_TYPES
from core.types import StagingRow
from store.schema import stage_charge_rows

_SCALAR_FIELDS = (
    "ingest_batch_id",
    "mrf_file_id",
    "source_row_number",
    "source_row_hash",
    "hospital_name",
    "hospital_location",
    "hospital_address",
    "license_number",
    "license_state",
    "version",
    "last_updated_on",
    "affirmation",
    "description",
    "setting",
    "billing_class",
    "payer_name",
    "payer_name_norm",
    "plan_name",
    "plan_name_norm",
    "gross_charge_cents",
    "discounted_cash_cents",
    "negotiated_dollar_cents",
    "negotiated_percentage_bps",
    "estimated_amount_cents",
    "min_charge_cents",
    "max_charge_cents",
    "methodology",
    "negotiated_algorithm",
    "drug_unit",
    "drug_unit_type",
    "modifiers",
    "additional_generic_notes",
    "additional_payer_notes",
)


def staging_row_values(row: StagingRow) -> dict[str, object]:
    """Flatten a staging row into table column values."""
    values: dict[str, object] = {name: getattr(row, name) for name in _SCALAR_FIELDS}
    for code_type in ALL_CODE_TYPES:
        values[code_type.column] = row.codes.get(code_type.column)
    return values


def append_staging_rows(connection: Connection, rows: Sequence[StagingRow]) -> int:
    """Bulk-insert staging rows inside the caller's transaction.

    A repeated ``(ingest_batch_id, source_row_hash)`` pair violates the
    staging unique key and raises ``IntegrityError``.

    Returns:
        Number of rows appended.
    """
    if not rows:
        return 0
    connection.execute(insert(stage_charge_rows), [staging_row_values(row) for row in rows])
    return len(rows)


def delete_staging_batch(engine: Engine, batch_id: UUID) -> int:
    """Delete staging rows for one batch and return the deleted count."""
    statement = delete(stage_charge_rows).where(stage_charge_rows.c.ingest_batch_id == batch_id)
    with engine.begin() as connection:
        return connection.execute(statement).rowcount


def delete_staging_by_file(
    engine: Engine,
    mrf_file_id: int,
    keep_batch_id: UUID | None = None,
) -> int:
    """Delete staging rows left by earlier batches of a file.

    Args:
        engine: Store engine.
        mrf_file_id: File whose staging rows are removed.
        keep_batch_id: Batch to leave untouched, usually the current run.

    Returns:
        Number of staging rows deleted.
    """
    statement = delete(stage_charge_rows).where(stage_charge_rows.c.mrf_file_id == mrf_file_id)
    if keep_batch_id is not None:
        statement = statement.where(stage_charge_rows.c.ingest_batch_id != keep_batch_id)
    with engine.begin() as connection:
        return connection.execute(statement).rowcount
