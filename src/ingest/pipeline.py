"""Ingest orchestration for one MRF file.

This module runs the preflight, stage, dimensions, transform, and
finalize phases in order, moving the file record through its status
state machine and tagging any failure with the phase it happened in.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, TypeVar

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.config import IngestConfig
from core.errors import MrfLoadError, MrfStagingError, MrfTransformError, PipelineError
from core.file_status import FileStatus
from core.logging_config import get_logger
from core.types import (
    DimensionResult,
    FinalizeResult,
    IngestSummary,
    PreflightResult,
    StageResult,
    TransformResult,
)
from ingest.cleanup import cleanup_batch
from ingest.dimensions import upsert_dimensions
from ingest.finalize import finalize_file
from ingest.preflight import run_preflight
from ingest.staging_streamer import stage_rows
from ingest.status_tracker import FileStatusTracker
from ingest.transform import transform_batch
from store.price_store import delete_prices_by_file
from store.staging_store import delete_staging_by_file

_LOGGER = get_logger(__name__)

T = TypeVar("T")


class IngestPipeline:
    """Stateful runner for one file ingest."""

    def __init__(
        self,
        engine: Engine,
        config: IngestConfig,
        file_path: str,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._engine = engine
        self._config = config
        self._file_path = file_path
        self._cancel_event = cancel_event or threading.Event()
        self._tracker: FileStatusTracker | None = None

    def cancel(self) -> None:
        """Ask a running staging phase to stop."""
        self._cancel_event.set()

    def run(self) -> IngestSummary:
        """Execute every phase and return the run summary.

        Raises:
            PipelineError: If any phase fails; ``phase`` names where.
        """
        started = time.perf_counter()
        preflight = self._run_phase(
            "preflight", lambda: run_preflight(self._engine, self._config, self._file_path)
        )
        if preflight.already_loaded:
            _LOGGER.info(
                "ingest_skipped",
                file=self._file_path,
                mrf_file_id=preflight.mrf_file_id,
                sha256=preflight.file_sha256,
            )
            return IngestSummary(
                file_path=self._file_path,
                file_sha256=preflight.file_sha256,
                mrf_file_id=preflight.mrf_file_id,
                ingest_batch_id=str(preflight.ingest_batch_id),
                already_loaded=True,
                duration_total_seconds=time.perf_counter() - started,
            )
        self._tracker = FileStatusTracker(self._engine, preflight.mrf_file_id)
        stage = self._run_phase("stage", lambda: self._stage(preflight))
        dimensions = None
        if self._config.include_payer_prices:
            dimensions = self._run_phase(
                "dimensions", lambda: upsert_dimensions(self._engine, preflight.ingest_batch_id)
            )
        transform = self._run_phase("transform", lambda: self._transform(preflight))
        finalize = self._run_phase("finalize", lambda: self._finalize(preflight))
        self._cleanup(preflight)
        summary = _build_summary(
            preflight, stage, dimensions, transform, finalize, time.perf_counter() - started
        )
        _log_ingest_completion(summary)
        return summary

    def _stage(self, preflight: PreflightResult) -> StageResult:
        """Purge earlier batches for the file, then stream rows into staging."""
        tracker = self._require_tracker()
        tracker.advance(FileStatus.STAGING)
        _purge(
            "staging rows",
            lambda: delete_staging_by_file(
                self._engine, preflight.mrf_file_id, preflight.ingest_batch_id
            ),
            MrfStagingError,
        )
        result = stage_rows(self._engine, self._config, preflight, self._cancel_event)
        tracker.advance(FileStatus.STAGED)
        return result

    def _transform(self, preflight: PreflightResult) -> TransformResult:
        """Purge prior serving rows, then explode the staged batch."""
        tracker = self._require_tracker()
        tracker.advance(FileStatus.TRANSFORMING)
        _purge(
            "price records",
            lambda: self._delete_prices(preflight.mrf_file_id),
            MrfTransformError,
        )
        _purge(
            "orphaned staging rows",
            lambda: delete_staging_by_file(
                self._engine, preflight.mrf_file_id, preflight.ingest_batch_id
            ),
            MrfTransformError,
        )
        result = transform_batch(
            self._engine,
            preflight.ingest_batch_id,
            self._config.code_types,
            hospital_id=preflight.hospital_id,
        )
        tracker.advance(FileStatus.TRANSFORMED)
        return result

    def _finalize(self, preflight: PreflightResult) -> FinalizeResult:
        """Activate the file when configured and refresh statistics."""
        result = finalize_file(
            self._engine,
            preflight.hospital_id,
            preflight.mrf_file_id,
            self._config.activate_version,
        )
        if result.activated:
            self._require_tracker().acknowledge(FileStatus.ACTIVE)
        return result

    def _cleanup(self, preflight: PreflightResult) -> None:
        """Drop this run's staging rows unless they are kept; failures only warn."""
        if self._config.keep_staging:
            _LOGGER.info("staging_kept", batch_id=str(preflight.ingest_batch_id))
            return
        try:
            cleanup_batch(self._engine, preflight.ingest_batch_id)
        except MrfLoadError as error:
            _LOGGER.warning(
                "staging_cleanup_failed",
                batch_id=str(preflight.ingest_batch_id),
                error=str(error),
            )

    def _delete_prices(self, mrf_file_id: int) -> int:
        """Delete serving rows for a file in their own transaction."""
        with self._engine.begin() as connection:
            return delete_prices_by_file(connection, mrf_file_id)

    def _run_phase(self, phase: str, action: Callable[[], T]) -> T:
        """Run one phase, marking the file failed on any error.

        Errors outside the ``MrfLoadError`` hierarchy are still tagged with
        the phase so callers see a single failure type.
        """
        try:
            return action()
        except Exception as error:
            if self._tracker is not None:
                self._tracker.mark_failed()
            _LOGGER.error(
                "phase_failed",
                phase=phase,
                file=self._file_path,
                error=str(error),
                error_type=type(error).__name__,
            )
            raise PipelineError(phase, error) from error

    def _require_tracker(self) -> FileStatusTracker:
        """Return the status tracker, which exists once preflight succeeds."""
        if self._tracker is None:
            raise MrfLoadError("File status tracker used before preflight completed.")
        return self._tracker


def run_ingest(
    engine: Engine,
    config: IngestConfig,
    file_path: str,
    cancel_event: threading.Event | None = None,
) -> IngestSummary:
    """Run the full ingest pipeline for one file.

    Args:
        engine: Store engine.
        config: Validated run configuration.
        file_path: Path to the MRF Parquet file.
        cancel_event: Optional signal that stops staging when set.

    Returns:
        Run summary; ``already_loaded`` marks a skipped run.

    Raises:
        PipelineError: If any phase fails.
    """
    return IngestPipeline(engine, config, file_path, cancel_event).run()


def _purge(
    label: str,
    action: Callable[[], int],
    error_type: type[MrfLoadError],
) -> None:
    """Run a scoped delete, wrapping store errors in the phase error type."""
    try:
        deleted = action()
    except SQLAlchemyError as error:
        raise error_type(f"Failed to purge prior {label}: {error}") from error
    if deleted:
        _LOGGER.info("prior_rows_purged", target=label, rows_deleted=deleted)


def _build_summary(
    preflight: PreflightResult,
    stage: StageResult,
    dimensions: DimensionResult | None,
    transform: TransformResult,
    finalize: FinalizeResult,
    duration_total: float,
) -> IngestSummary:
    """Combine per-phase results into the run summary."""
    return IngestSummary(
        file_path=preflight.file_path,
        file_sha256=preflight.file_sha256,
        mrf_file_id=preflight.mrf_file_id,
        ingest_batch_id=str(preflight.ingest_batch_id),
        rows_read=stage.rows_read,
        rows_staged=stage.rows_staged,
        rows_rejected=stage.rows_rejected,
        rows_inserted_serving=transform.rows_inserted,
        rows_by_code_type=transform.rows_by_code_type,
        duration_stage_seconds=stage.duration_seconds,
        duration_dimensions_seconds=0.0 if dimensions is None else dimensions.duration_seconds,
        duration_transform_seconds=transform.duration_seconds,
        duration_finalize_seconds=finalize.duration_seconds,
        duration_total_seconds=duration_total,
    )


def _log_ingest_completion(summary: IngestSummary) -> None:
    """Emit the ``ingest_completed`` event for a finished run."""
    _LOGGER.info(
        "ingest_completed",
        file=summary.file_path,
        mrf_file_id=summary.mrf_file_id,
        batch_id=summary.ingest_batch_id,
        rows_read=summary.rows_read,
        rows_staged=summary.rows_staged,
        rows_rejected=summary.rows_rejected,
        rows_inserted=summary.rows_inserted_serving,
        duration_seconds=round(summary.duration_total_seconds, 3),
    )
