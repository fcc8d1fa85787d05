"""Payer and plan dimension upserts.

Both operations insert only names not already present, so rerunning
them for the same batch affects zero additional rows and never changes
existing ids. Inserts skip unique-key conflicts, so concurrent runs that
discover the same new payer or plan both succeed.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Connection, Select, Table, and_, exists, func, select
from sqlalchemy.dialects import postgresql, sqlite

from store.schema import payers, plans, stage_charge_rows


def upsert_payers(connection: Connection, batch_id: UUID) -> int:
    """Insert distinct normalized payer names seen in a batch.

    Rows without a normalized payer name are skipped.

    Returns:
        Number of payers inserted.
    """
    stage = stage_charge_rows
    already_known = exists(
        select(payers.c.payer_id).where(payers.c.payer_name_norm == stage.c.payer_name_norm)
    )
    source = (
        select(stage.c.payer_name_norm, func.min(stage.c.payer_name))
        .where(
            stage.c.ingest_batch_id == batch_id,
            stage.c.payer_name_norm.is_not(None),
            ~already_known,
        )
        .group_by(stage.c.payer_name_norm)
    )
    statement = _insert_skipping_conflicts(
        connection, payers, ["payer_name_norm", "payer_name"], source
    )
    return connection.execute(statement).rowcount


def upsert_plans(connection: Connection, batch_id: UUID) -> int:
    """Insert distinct (payer, normalized plan) pairs seen in a batch.

    Must run after ``upsert_payers`` for the same batch. Rows with a
    payer but no plan are skipped.

    Returns:
        Number of plans inserted.
    """
    stage = stage_charge_rows
    already_known = exists(
        select(plans.c.plan_id).where(
            and_(
                plans.c.payer_id == payers.c.payer_id,
                plans.c.plan_name_norm == stage.c.plan_name_norm,
            )
        )
    )
    source = (
        select(payers.c.payer_id, stage.c.plan_name_norm, func.min(stage.c.plan_name))
        .select_from(
            stage.join(payers, payers.c.payer_name_norm == stage.c.payer_name_norm)
        )
        .where(
            stage.c.ingest_batch_id == batch_id,
            stage.c.plan_name_norm.is_not(None),
            ~already_known,
        )
        .group_by(payers.c.payer_id, stage.c.plan_name_norm)
    )
    statement = _insert_skipping_conflicts(
        connection, plans, ["payer_id", "plan_name_norm", "plan_name"], source
    )
    return connection.execute(statement).rowcount


def _insert_skipping_conflicts(
    connection: Connection,
    table: Table,
    names: list[str],
    source: Select,
) -> postgresql.Insert | sqlite.Insert:
    """Build ``INSERT ... SELECT ... ON CONFLICT DO NOTHING`` for the bound dialect."""
    if connection.dialect.name == "postgresql":
        statement = postgresql.insert(table)
    else:
        statement = sqlite.insert(table)
    return statement.from_select(names, source).on_conflict_do_nothing()
