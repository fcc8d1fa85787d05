"""Dimension resolution phase.

Upserts the payers and plans seen in one batch. Payers go first
because plans reference payer ids.
"""

from __future__ import annotations

import time
from uuid import UUID

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import MrfTransformError
from core.logging_config import get_logger
from core.types import DimensionResult
from store.dimension_store import upsert_payers, upsert_plans

_LOGGER = get_logger(__name__)


def upsert_dimensions(engine: Engine, batch_id: UUID) -> DimensionResult:
    """Insert payers and plans observed in a batch that are not yet known.

    Rerunning for the same batch inserts nothing and keeps existing ids.

    Args:
        engine: Store engine.
        batch_id: Ingest batch to scan.

    Returns:
        Inserted payer and plan counts with elapsed time.

    Raises:
        MrfTransformError: If either upsert fails.
    """
    started = time.perf_counter()
    try:
        with engine.begin() as connection:
            payers_upserted = upsert_payers(connection, batch_id)
            plans_upserted = upsert_plans(connection, batch_id)
    except SQLAlchemyError as error:
        raise MrfTransformError(
            f"Failed to upsert payer and plan dimensions for batch {batch_id}: {error}"
        ) from error
    duration = time.perf_counter() - started
    _LOGGER.info(
        "dimensions_upserted",
        batch_id=str(batch_id),
        payers=payers_upserted,
        plans=plans_upserted,
        duration_seconds=round(duration, 3),
    )
    return DimensionResult(
        payers_upserted=payers_upserted,
        plans_upserted=plans_upserted,
        duration_seconds=duration,
    )
