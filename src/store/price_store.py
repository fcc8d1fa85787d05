"""Serving table operations.

This module pages staged rows with their resolved dimension ids, writes
long-form price records, and refreshes planner statistics.
"""

from __future__ import annotations

from typing import Mapping, Sequence
from uuid import UUID

from sqlalchemy import Connection, Engine, and_, delete, insert, select, text
from sqlalchemy.exc import SQLAlchemyError

from core.logging_config import get_logger
from store.schema import payers, plans, prices_by_code, stage_charge_rows

_LOGGER = get_logger(__name__)


def delete_prices_by_file(connection: Connection, mrf_file_id: int) -> int:
    """Delete every price record of a file and return the deleted count."""
    statement = delete(prices_by_code).where(prices_by_code.c.mrf_file_id == mrf_file_id)
    return connection.execute(statement).rowcount


def fetch_staged_page(
    connection: Connection,
    batch_id: UUID,
    after_stage_row_id: int,
    page_size: int,
) -> list[dict[str, object]]:
    """Load one page of staged rows for a batch, ordered by staging id.

    Payer and plan ids are resolved with outer joins, so rows without a
    matching dimension carry ``None`` ids.

    Args:
        connection: Open store connection.
        batch_id: Batch to read.
        after_stage_row_id: Exclusive lower bound on ``stage_row_id``.
        page_size: Maximum rows returned.

    Returns:
        Row dictionaries keyed by staging column name plus ``payer_id``
        and ``plan_id``.
    """
    stage = stage_charge_rows
    source = stage.outerjoin(payers, payers.c.payer_name_norm == stage.c.payer_name_norm).outerjoin(
        plans,
        and_(
            plans.c.payer_id == payers.c.payer_id,
            plans.c.plan_name_norm == stage.c.plan_name_norm,
        ),
    )
    statement = (
        select(stage, payers.c.payer_id, plans.c.plan_id)
        .select_from(source)
        .where(
            stage.c.ingest_batch_id == batch_id,
            stage.c.stage_row_id > after_stage_row_id,
        )
        .order_by(stage.c.stage_row_id)
        .limit(page_size)
    )
    return [dict(row) for row in connection.execute(statement).mappings()]


def insert_price_records(connection: Connection, records: Sequence[Mapping[str, object]]) -> int:
    """Bulk-insert price records inside the caller's transaction."""
    if not records:
        return 0
    connection.execute(insert(prices_by_code), [dict(record) for record in records])
    return len(records)


def analyze_serving(engine: Engine) -> bool:
    """Refresh planner statistics for the serving table.

    Failures are logged and reported, never raised.

    Returns:
        Whether statistics were refreshed.
    """
    if engine.dialect.name == "postgresql":
        statement = text(f"ANALYZE {prices_by_code.fullname}")
    else:
        statement = text("ANALYZE")
    try:
        with engine.begin() as connection:
            connection.execute(statement)
    except SQLAlchemyError as error:
        _LOGGER.warning("analyze_skipped", table=prices_by_code.fullname, error=str(error))
        return False
    return True
