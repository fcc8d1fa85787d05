"""Finalize phase.

Optionally makes a file the single active version for its source
entity, then refreshes serving table statistics.
"""

from __future__ import annotations

import time

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import MrfTransformError
from core.logging_config import get_logger
from core.types import FinalizeResult
from store.file_registry import activate_version, deactivate_other_versions
from store.price_store import analyze_serving

_LOGGER = get_logger(__name__)


def finalize_file(
    engine: Engine,
    hospital_id: int,
    mrf_file_id: int,
    activate: bool,
) -> FinalizeResult:
    """Activate a transformed file when requested and analyze the serving table.

    Deactivating the other versions and activating this one happen in one
    transaction, so a source entity never has two active files.

    Raises:
        MrfTransformError: If activation fails.
    """
    started = time.perf_counter()
    deactivated_count = 0
    if activate:
        try:
            with engine.begin() as connection:
                deactivated_count = deactivate_other_versions(connection, hospital_id, mrf_file_id)
                activate_version(connection, mrf_file_id)
        except SQLAlchemyError as error:
            raise MrfTransformError(
                f"Failed to activate file {mrf_file_id}: {error}. "
                "The file is marked failed and the previous version stays active; "
                "rerun the ingest."
            ) from error
        _LOGGER.info(
            "version_activated",
            hospital_id=hospital_id,
            mrf_file_id=mrf_file_id,
            deactivated=deactivated_count,
        )
    analyze_serving(engine)
    return FinalizeResult(
        activated=activate,
        deactivated_count=deactivated_count,
        duration_seconds=time.perf_counter() - started,
    )
