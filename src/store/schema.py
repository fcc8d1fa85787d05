"""Relational store table definitions.

This module declares the reference, ingest, and serving tables with
SQLAlchemy Core. Tables are listed in dependency order for migrations.
"""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)

from core.code_types import ALL_CODE_TYPES
from core.constants import INGEST_SCHEMA, REF_SCHEMA, SERVING_SCHEMA
from core.file_status import FileStatus

# SQLite only autoincrements INTEGER primary keys.
_ID_TYPE = BigInteger().with_variant(Integer(), "sqlite")

metadata = MetaData()

hospitals = Table(
    "hospitals",
    metadata,
    Column("hospital_id", _ID_TYPE, primary_key=True, autoincrement=True),
    Column("hospital_name", Text, nullable=False, index=True),
    Column("hospital_location", Text),
    Column("hospital_address", Text),
    Column("license_number", Text),
    Column("license_state", Text),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    schema=REF_SCHEMA,
)

payers = Table(
    "payers",
    metadata,
    Column("payer_id", _ID_TYPE, primary_key=True, autoincrement=True),
    Column("payer_name_norm", Text, nullable=False, unique=True),
    Column("payer_name", Text),
    schema=REF_SCHEMA,
)

plans = Table(
    "plans",
    metadata,
    Column("plan_id", _ID_TYPE, primary_key=True, autoincrement=True),
    Column("payer_id", _ID_TYPE, ForeignKey(payers.c.payer_id), nullable=False),
    Column("plan_name_norm", Text, nullable=False),
    Column("plan_name", Text),
    UniqueConstraint("payer_id", "plan_name_norm", name="uq_plans_payer_plan"),
    schema=REF_SCHEMA,
)

mrf_files = Table(
    "mrf_files",
    metadata,
    Column("mrf_file_id", _ID_TYPE, primary_key=True, autoincrement=True),
    Column("hospital_id", _ID_TYPE, ForeignKey(hospitals.c.hospital_id), nullable=False),
    Column("source_file_name", Text, nullable=False),
    Column("source_file_sha256", String(64), nullable=False),
    Column("version", Text),
    Column("last_updated_on", Date),
    Column("affirmation", Boolean),
    Column("file_size_bytes", BigInteger),
    Column("status", String(16), nullable=False, default=FileStatus.PENDING.value),
    Column("is_active", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    UniqueConstraint("hospital_id", "source_file_sha256", name="uq_mrf_files_hospital_sha"),
    schema=INGEST_SCHEMA,
)


def _code_columns() -> list[Column]:
    """Build one nullable text column per billing code type."""
    return [Column(code_type.column, Text) for code_type in ALL_CODE_TYPES]


stage_charge_rows = Table(
    "stage_charge_rows",
    metadata,
    Column("stage_row_id", _ID_TYPE, primary_key=True, autoincrement=True),
    Column("ingest_batch_id", Uuid, nullable=False),
    Column("mrf_file_id", BigInteger, nullable=False),
    Column("source_row_number", BigInteger, nullable=False),
    Column("source_row_hash", LargeBinary, nullable=False),
    Column("hospital_name", Text, nullable=False),
    Column("hospital_location", Text),
    Column("hospital_address", Text),
    Column("license_number", Text),
    Column("license_state", Text),
    Column("version", Text),
    Column("last_updated_on", Date),
    Column("affirmation", Boolean),
    Column("description", Text, nullable=False),
    Column("setting", Text),
    Column("billing_class", Text),
    *_code_columns(),
    Column("payer_name", Text),
    Column("payer_name_norm", Text),
    Column("plan_name", Text),
    Column("plan_name_norm", Text),
    Column("gross_charge_cents", BigInteger),
    Column("discounted_cash_cents", BigInteger),
    Column("negotiated_dollar_cents", BigInteger),
    Column("negotiated_percentage_bps", Integer),
    Column("estimated_amount_cents", BigInteger),
    Column("min_charge_cents", BigInteger),
    Column("max_charge_cents", BigInteger),
    Column("methodology", Text),
    Column("negotiated_algorithm", Text),
    Column("drug_unit", Float),
    Column("drug_unit_type", Text),
    Column("modifiers", Text),
    Column("additional_generic_notes", Text),
    Column("additional_payer_notes", Text),
    UniqueConstraint("ingest_batch_id", "source_row_hash", name="uq_stage_batch_row_hash"),
    Index("ix_stage_charge_rows_mrf_file_id", "mrf_file_id"),
    schema=INGEST_SCHEMA,
)

prices_by_code = Table(
    "prices_by_code",
    metadata,
    Column("price_id", _ID_TYPE, primary_key=True, autoincrement=True),
    Column("mrf_file_id", BigInteger, nullable=False),
    Column("hospital_id", BigInteger),
    Column("ingest_batch_id", Uuid, nullable=False),
    Column("source_row_number", BigInteger, nullable=False),
    Column("code_type", String(16), nullable=False),
    Column("code_raw", Text, nullable=False),
    Column("code_norm", Text, nullable=False),
    Column("description", Text, nullable=False),
    Column("setting", Text),
    Column("billing_class", Text),
    Column("payer_id", BigInteger),
    Column("plan_id", BigInteger),
    Column("payer_name_raw", Text),
    Column("plan_name_raw", Text),
    Column("gross_charge_cents", BigInteger),
    Column("discounted_cash_cents", BigInteger),
    Column("negotiated_dollar_cents", BigInteger),
    Column("negotiated_percentage_bps", Integer),
    Column("estimated_amount_cents", BigInteger),
    Column("min_charge_cents", BigInteger),
    Column("max_charge_cents", BigInteger),
    Column("methodology", Text),
    Column("negotiated_algorithm", Text),
    Column("drug_unit", Float),
    Column("drug_unit_type", Text),
    Column("modifiers", Text),
    Column("additional_generic_notes", Text),
    Column("additional_payer_notes", Text),
    Index("ix_prices_by_code_mrf_file_id", "mrf_file_id"),
    Index("ix_prices_by_code_type_norm", "code_type", "code_norm"),
    schema=SERVING_SCHEMA,
)

MIGRATION_ORDER = (hospitals, payers, plans, mrf_files, stage_charge_rows, prices_by_code)
