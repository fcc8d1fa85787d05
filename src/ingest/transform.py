"""Wide-to-long transform phase.

Pages staged rows of one batch in staging-id order, explodes each into
price records, and inserts them into the serving table. The whole
phase runs in one transaction.
"""

from __future__ import annotations

from collections import Counter
import time
from typing import Iterable
from uuid import UUID

from sqlalchemy import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from core.code_types import CodeType, select_code_types
from core.constants import DEFAULT_TRANSFORM_PAGE_SIZE
from core.errors import MrfTransformError
from core.logging_config import get_logger
from core.types import TransformResult
from store.price_store import fetch_staged_page, insert_price_records
from transforms.wide_to_long import explode_staged_row

_LOGGER = get_logger(__name__)


def transform_batch(
    engine: Engine,
    batch_id: UUID,
    code_types: Iterable[str] = (),
    hospital_id: int | None = None,
    page_size: int = DEFAULT_TRANSFORM_PAGE_SIZE,
) -> TransformResult:
    """Explode every staged row of a batch into the serving table.

    Callers must clear earlier price records for the file first; running
    twice over the same batch inserts duplicates.

    Args:
        engine: Store engine.
        batch_id: Ingest batch to transform.
        code_types: Allow-list of code type names; empty means all.
        hospital_id: Source entity id stamped on each record.
        page_size: Staged rows fetched per page.

    Returns:
        Inserted record count, per-code-type counts, and elapsed time.

    Raises:
        MrfTransformError: If reading staged rows or inserting fails.
    """
    started = time.perf_counter()
    selected = select_code_types(tuple(code_types))
    try:
        with engine.begin() as connection:
            counts = _transform_pages(connection, batch_id, selected, hospital_id, page_size)
    except SQLAlchemyError as error:
        raise MrfTransformError(
            f"Wide-to-long transform failed for batch {batch_id}: {error}. "
            "No price records were written; rerun with --force."
        ) from error
    duration = time.perf_counter() - started
    rows_inserted = sum(counts.values())
    _LOGGER.info(
        "transform_complete",
        batch_id=str(batch_id),
        rows_inserted=rows_inserted,
        code_types=len(selected),
        duration_seconds=round(duration, 3),
    )
    return TransformResult(
        rows_inserted=rows_inserted,
        rows_by_code_type=dict(counts),
        duration_seconds=duration,
    )


def _transform_pages(
    connection: Connection,
    batch_id: UUID,
    code_types: tuple[CodeType, ...],
    hospital_id: int | None,
    page_size: int,
) -> Counter[str]:
    """Page through staged rows by id and insert their price records."""
    counts: Counter[str] = Counter()
    last_stage_row_id = 0
    while True:
        page = fetch_staged_page(connection, batch_id, last_stage_row_id, page_size)
        if not page:
            return counts
        records = []
        for staged_row in page:
            records.extend(explode_staged_row(staged_row, code_types, hospital_id))
        insert_price_records(connection, records)
        counts.update(str(record["code_type"]) for record in records)
        last_stage_row_id = int(page[-1]["stage_row_id"])
