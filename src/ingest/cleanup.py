"""Staging cleanup."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import MrfLoadError
from core.logging_config import get_logger
from store.staging_store import delete_staging_batch

_LOGGER = get_logger(__name__)


def cleanup_batch(engine: Engine, batch_id: UUID) -> int:
    """Delete the staging rows of one batch.

    Returns:
        Number of staging rows deleted.

    Raises:
        MrfLoadError: If the delete fails.
    """
    try:
        deleted = delete_staging_batch(engine, batch_id)
    except SQLAlchemyError as error:
        raise MrfLoadError(
            f"Failed to delete staging rows for batch {batch_id}: {error}"
        ) from error
    _LOGGER.info("staging_cleaned", batch_id=str(batch_id), rows_deleted=deleted)
    return deleted
