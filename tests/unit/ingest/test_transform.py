"""Unit tests for dimensions, transform, finalize, and cleanup."""

from __future__ import annotations

from sqlalchemy import select

from core.config import IngestConfig
from core.file_status import FileStatus
from ingest.cleanup import cleanup_batch
from ingest.dimensions import upsert_dimensions
from ingest.finalize import finalize_file
from ingest.preflight import run_preflight
from ingest.staging_streamer import stage_rows
from ingest.transform import transform_batch
from store.file_registry import get_file, set_file_status
from store.schema import prices_by_code


def _stage_file(store_engine, write_charge_file, rows, config=None, name="mrf.parquet"):
    config = config or IngestConfig()
    file_path = write_charge_file(rows, name=name)
    preflight = run_preflight(store_engine, config, str(file_path))
    stage_rows(store_engine, config, preflight)
    return preflight


def _price_rows(store_engine) -> list[dict[str, object]]:
    statement = select(prices_by_code).order_by(prices_by_code.c.price_id)
    with store_engine.connect() as connection:
        return [dict(row) for row in connection.execute(statement).mappings()]


def test_transform_emits_one_record_per_populated_code(
    store_engine, write_charge_file, make_row
) -> None:
    """Record count should equal the number of populated code cells."""
    rows = [
        make_row(cpt_code="70551", hcpcs_code="A9579", ndc_code="0001-2345-67"),
        make_row(description="Lab", cpt_code="80053"),
        make_row(description="Supply", local_code="--"),
    ]
    preflight = _stage_file(store_engine, write_charge_file, rows)

    result = transform_batch(
        store_engine, preflight.ingest_batch_id, hospital_id=preflight.hospital_id, page_size=2
    )

    prices = _price_rows(store_engine)
    assert result.rows_inserted == 4 == len(prices)
    assert result.rows_by_code_type == {"CPT": 2, "HCPCS": 1, "NDC": 1}
    assert {price["hospital_id"] for price in prices} == {preflight.hospital_id}
    ndc = next(price for price in prices if price["code_type"] == "NDC")
    assert ndc["code_norm"] == "0001234567"


def test_transform_respects_allow_list(store_engine, write_charge_file, make_row) -> None:
    """Only allow-listed code types should be exploded."""
    row = make_row(
        cpt_code="70551",
        hcpcs_code="A9579",
        ndc_code="0001234567",
        rc_code="0610",
        local_code="L1",
    )
    preflight = _stage_file(store_engine, write_charge_file, [row])

    result = transform_batch(store_engine, preflight.ingest_batch_id, ("CPT", "HCPCS"))

    assert result.rows_inserted == 2
    assert {price["code_type"] for price in _price_rows(store_engine)} == {"CPT", "HCPCS"}


def test_transform_resolves_payer_and_plan_ids(store_engine, write_charge_file, make_row) -> None:
    """Records should reference the upserted payer and plan."""
    config = IngestConfig(include_payer_prices=True)
    row = make_row(
        cpt_code="99213", payer_name="Aetna", plan_name="Gold PPO", negotiated_dollar=80.0
    )
    preflight = _stage_file(store_engine, write_charge_file, [row], config)

    dimensions = upsert_dimensions(store_engine, preflight.ingest_batch_id)
    transform_batch(store_engine, preflight.ingest_batch_id)

    price = _price_rows(store_engine)[0]
    assert (dimensions.payers_upserted, dimensions.plans_upserted) == (1, 1)
    assert price["payer_id"] is not None and price["plan_id"] is not None
    assert price["payer_name_raw"] == "Aetna"
    assert price["negotiated_dollar_cents"] == 8000


def test_finalize_activation_keeps_one_active_file(
    store_engine, write_charge_file, make_row
) -> None:
    """Activating file B should deactivate file A for the same hospital."""
    file_a = _stage_file(
        store_engine, write_charge_file, [make_row(cpt_code="1")], name="a.parquet"
    )
    file_b = _stage_file(
        store_engine, write_charge_file, [make_row(cpt_code="2")], name="b.parquet"
    )
    for preflight in (file_a, file_b):
        set_file_status(store_engine, preflight.mrf_file_id, FileStatus.TRANSFORMED)
    finalize_file(store_engine, file_a.hospital_id, file_a.mrf_file_id, activate=True)

    result = finalize_file(store_engine, file_b.hospital_id, file_b.mrf_file_id, activate=True)

    assert result.activated is True and result.deactivated_count == 1
    assert get_file(store_engine, file_a.mrf_file_id).is_active is False
    assert get_file(store_engine, file_b.mrf_file_id).status is FileStatus.ACTIVE


def test_finalize_without_activation_leaves_status(
    store_engine, write_charge_file, make_row
) -> None:
    """Without activation the file should stay transformed."""
    preflight = _stage_file(store_engine, write_charge_file, [make_row(cpt_code="1")])
    set_file_status(store_engine, preflight.mrf_file_id, FileStatus.TRANSFORMED)

    result = finalize_file(store_engine, preflight.hospital_id, preflight.mrf_file_id, False)

    assert result.activated is False
    assert get_file(store_engine, preflight.mrf_file_id).status is FileStatus.TRANSFORMED


def test_cleanup_batch_deletes_staged_rows(store_engine, write_charge_file, make_row) -> None:
    """Cleanup should remove exactly the batch's staged rows."""
    preflight = _stage_file(
        store_engine, write_charge_file, [make_row(cpt_code="1"), make_row(cpt_code="2")]
    )

    assert cleanup_batch(store_engine, preflight.ingest_batch_id) == 2
    assert cleanup_batch(store_engine, preflight.ingest_batch_id) == 0
