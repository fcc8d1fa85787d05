"""Result and row models passed between ingest phases.

Each phase returns a frozen dataclass so the pipeline can assemble the
run summary without reaching back into the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping
from uuid import UUID


@dataclass(frozen=True)
class StagingRow:
    """Normalized, store-ready representation of one wide charge line.

    Money values are integer cents and percentages integer basis points.

    Attributes:
        ingest_batch_id: Batch that produced this row.
        mrf_file_id: Owning file record id.
        source_row_number: One-based row number in the source file.
        source_row_hash: Digest over the row's identifying fields.
        description: Service description, always present.
        codes: Normalized code values keyed by code column name.
    """

    ingest_batch_id: UUID
    mrf_file_id: int
    source_row_number: int
    source_row_hash: bytes
    hospital_name: str
    description: str
    hospital_location: str | None = None
    hospital_address: str | None = None
    license_number: str | None = None
    license_state: str | None = None
    version: str | None = None
    last_updated_on: date | None = None
    affirmation: bool = False
    setting: str | None = None
    billing_class: str | None = None
    codes: Mapping[str, str | None] = field(default_factory=dict)
    payer_name: str | None = None
    payer_name_norm: str | None = None
    plan_name: str | None = None
    plan_name_norm: str | None = None
    gross_charge_cents: int | None = None
    discounted_cash_cents: int | None = None
    negotiated_dollar_cents: int | None = None
    negotiated_percentage_bps: int | None = None
    estimated_amount_cents: int | None = None
    min_charge_cents: int | None = None
    max_charge_cents: int | None = None
    methodology: str | None = None
    negotiated_algorithm: str | None = None
    drug_unit: float | None = None
    drug_unit_type: str | None = None
    modifiers: str | None = None
    additional_generic_notes: str | None = None
    additional_payer_notes: str | None = None


@dataclass(frozen=True)
class SchemaCheck:
    """Structured result of the source schema gate.

    Attributes:
        ok: Whether the source may be ingested.
        missing_required: Required fields absent from the source.
        present_code_columns: Recognized code columns found in the source.
        message: Human-readable reason when ``ok`` is false.
    """

    ok: bool
    missing_required: tuple[str, ...]
    present_code_columns: tuple[str, ...]
    message: str = ""


@dataclass(frozen=True)
class PreflightResult:
    """Context resolved before any rows are staged.

    Attributes:
        file_path: Source file path.
        file_sha256: Whole-file content digest.
        file_size: Size in bytes.
        hospital_id: Resolved source entity id.
        mrf_file_id: Registered file record id.
        ingest_batch_id: Fresh batch id for this run.
        num_rows: Row count declared by the source.
        already_loaded: Whether later phases must be skipped.
        first_row: First source row, used for entity metadata.
    """

    file_path: str
    file_sha256: str
    file_size: int
    hospital_id: int
    mrf_file_id: int
    ingest_batch_id: UUID
    num_rows: int
    already_loaded: bool
    first_row: Mapping[str, object]


@dataclass(frozen=True)
class StageResult:
    """Metrics from the staging phase."""

    rows_read: int
    rows_staged: int
    rows_rejected: int
    duration_seconds: float


@dataclass(frozen=True)
class DimensionResult:
    """Rows affected by payer and plan upserts."""

    payers_upserted: int
    plans_upserted: int
    duration_seconds: float


@dataclass(frozen=True)
class TransformResult:
    """Metrics from the wide-to-long transform."""

    rows_inserted: int
    rows_by_code_type: Mapping[str, int]
    duration_seconds: float


@dataclass(frozen=True)
class FinalizeResult:
    """Outcome of version activation."""

    activated: bool
    deactivated_count: int
    duration_seconds: float


@dataclass(frozen=True)
class IngestSummary:
    """Metrics from a single file ingest run.

    Attributes:
        already_loaded: True when the run was skipped as a no-op.
        rows_by_code_type: Serving rows inserted per code type.
    """

    file_path: str
    file_sha256: str
    mrf_file_id: int
    ingest_batch_id: str
    already_loaded: bool = False
    rows_read: int = 0
    rows_staged: int = 0
    rows_rejected: int = 0
    rows_inserted_serving: int = 0
    rows_by_code_type: Mapping[str, int] = field(default_factory=dict)
    duration_stage_seconds: float = 0.0
    duration_dimensions_seconds: float = 0.0
    duration_transform_seconds: float = 0.0
    duration_finalize_seconds: float = 0.0
    duration_total_seconds: float = 0.0


@dataclass(frozen=True)
class CodeTypeProjection:
    """Sampled and projected serving rows for one code type."""

    code_type: str
    sampled_count: int
    projected_rows: int


@dataclass(frozen=True)
class PlanReport:
    """Read-only dry-run report for a source file."""

    file_path: str
    file_sha256: str
    file_size: int
    total_rows: int
    hospital_name: str
    sampled_rows: int
    projections: tuple[CodeTypeProjection, ...]

    @property
    def projected_total(self) -> int:
        """Return the projected serving row count across code types."""
        return sum(projection.projected_rows for projection in self.projections)
