"""Staging phase.

A producer thread reads the source in fixed-size batches, normalizes
each row, and feeds a bounded channel. The calling thread drains the
channel and bulk-appends rows to the staging table inside a single
transaction, so any failure leaves no staged rows behind.
"""

from __future__ import annotations

from dataclasses import dataclass
import threading
import time

from sqlalchemy import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.config import IngestConfig
from core.errors import MrfLoadError, MrfStagingError, RowRejectedError
from core.logging_config import get_logger
from core.types import PreflightResult, StageResult, StagingRow
from ingest.row_channel import BoundedRowChannel
from ingest.source_reader import ParquetChargeReader
from store.staging_store import append_staging_rows
from transforms.row_normalizer import normalize_row

_LOGGER = get_logger(__name__)


@dataclass
class _ProducerCounters:
    rows_read: int = 0
    rows_rejected: int = 0


def stage_rows(
    engine: Engine,
    config: IngestConfig,
    preflight: PreflightResult,
    cancel_event: threading.Event | None = None,
) -> StageResult:
    """Stream every source row into the staging table.

    Args:
        engine: Store engine.
        config: Run configuration (batch, capacity, and chunk sizes).
        preflight: Context from the preflight phase.
        cancel_event: Optional run-scoped cancellation signal.

    Returns:
        Rows read, staged, and rejected, with elapsed time.

    Raises:
        MrfValidationError: If the source cannot be opened.
        MrfCancelledError: If cancellation is requested mid-stream.
        MrfStagingError: If reading or bulk-appending fails.
    """
    started = time.perf_counter()
    counters = _ProducerCounters()
    channel: BoundedRowChannel[StagingRow] = BoundedRowChannel(
        capacity=config.channel_capacity,
        cancel_event=cancel_event,
    )
    reader = ParquetChargeReader(preflight.file_path)
    producer = threading.Thread(
        target=_produce_rows,
        args=(reader, channel, config, preflight, counters),
        name=f"stage-producer-{preflight.mrf_file_id}",
        daemon=True,
    )
    producer.start()
    try:
        with engine.begin() as connection:
            rows_staged = _consume_rows(connection, channel, config.insert_chunk_size)
    except MrfStagingError:
        raise
    except IntegrityError as error:
        raise MrfStagingError(
            f"Duplicate row content in batch {preflight.ingest_batch_id}: {error.orig}. "
            "The source contains rows with identical identifying fields."
        ) from error
    except SQLAlchemyError as error:
        raise MrfStagingError(
            f"Bulk append to staging failed for {preflight.file_path}: {error}. "
            "No rows were staged; rerun the ingest."
        ) from error
    except MrfLoadError as error:
        raise MrfStagingError(
            f"Source read failed while staging {preflight.file_path}: {error}"
        ) from error
    finally:
        channel.abort()
        producer.join()
        reader.close()
    duration = time.perf_counter() - started
    _LOGGER.info(
        "staging_complete",
        mrf_file_id=preflight.mrf_file_id,
        rows_read=counters.rows_read,
        rows_staged=rows_staged,
        rows_rejected=counters.rows_rejected,
        duration_seconds=round(duration, 3),
    )
    return StageResult(
        rows_read=counters.rows_read,
        rows_staged=rows_staged,
        rows_rejected=counters.rows_rejected,
        duration_seconds=duration,
    )


def _consume_rows(
    connection: Connection,
    channel: BoundedRowChannel[StagingRow],
    chunk_size: int,
) -> int:
    """Drain the channel into chunked appends and return the staged count."""
    rows_staged = 0
    chunk: list[StagingRow] = []
    for staging_row in channel:
        chunk.append(staging_row)
        if len(chunk) >= chunk_size:
            rows_staged += append_staging_rows(connection, chunk)
            chunk = []
    rows_staged += append_staging_rows(connection, chunk)
    return rows_staged


def _produce_rows(
    reader: ParquetChargeReader,
    channel: BoundedRowChannel[StagingRow],
    config: IngestConfig,
    preflight: PreflightResult,
    counters: _ProducerCounters,
) -> None:
    """Read, normalize, and enqueue rows; always closes the channel."""
    try:
        for batch in reader.iter_batches(config.read_batch_size):
            for raw_row in batch:
                counters.rows_read += 1
                try:
                    staging_row = normalize_row(
                        raw_row,
                        preflight.ingest_batch_id,
                        preflight.mrf_file_id,
                        counters.rows_read,
                        config.include_payer_prices,
                    )
                except RowRejectedError as error:
                    counters.rows_rejected += 1
                    _LOGGER.warning(
                        "row_rejected",
                        row_number=error.row_number,
                        reason=error.reason,
                    )
                    continue
                channel.put(staging_row)
    except Exception as error:
        channel.close(error)
        return
    channel.close()
