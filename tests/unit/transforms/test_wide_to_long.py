"""Unit tests for wide-to-long explosion."""

from __future__ import annotations

from core.code_types import ALL_CODE_TYPES, select_code_types
from transforms.wide_to_long import explode_staged_row


def _staged_row(**codes: object) -> dict[str, object]:
    row: dict[str, object] = {
        "stage_row_id": 1,
        "mrf_file_id": 3,
        "source_row_number": 1,
        "description": "MRI brain",
        "setting": "outpatient",
        "gross_charge_cents": 120000,
        "payer_name": "Aetna",
        "payer_id": 11,
        "plan_id": None,
    }
    row.update(codes)
    return row


def test_three_codes_produce_three_records_sharing_fields() -> None:
    """A row with CPT, HCPCS, and NDC should yield exactly three records."""
    staged = _staged_row(cpt_code="70551", hcpcs_code="A9579", ndc_code="0001234567")

    records = explode_staged_row(staged, ALL_CODE_TYPES, hospital_id=9)

    assert [record["code_type"] for record in records] == ["CPT", "HCPCS", "NDC"]
    shared = {
        key: value
        for key, value in records[0].items()
        if key not in ("code_type", "code_raw", "code_norm")
    }
    for record in records:
        assert {key: record[key] for key in shared} == shared
    assert records[0]["hospital_id"] == 9
    assert records[0]["payer_id"] == 11
    assert records[0]["payer_name_raw"] == "Aetna"


def test_allow_list_restricts_records() -> None:
    """An allow-list of two code types should keep only those two."""
    staged = _staged_row(
        cpt_code="70551",
        hcpcs_code="A9579",
        ndc_code="0001234567",
        rc_code="0610",
        local_code="L1",
    )

    restricted = explode_staged_row(staged, select_code_types(("CPT", "HCPCS")))
    unrestricted = explode_staged_row(staged, select_code_types(()))

    assert len(restricted) == 2
    assert len(unrestricted) == 5


def test_row_without_codes_produces_nothing() -> None:
    """A row with no populated codes should produce zero records."""
    assert explode_staged_row(_staged_row(cpt_code="  ", ndc_code=None), ALL_CODE_TYPES) == []


def test_code_norm_is_recomputed_from_raw() -> None:
    """Unnormalized staged codes should still get a normalized code_norm."""
    records = explode_staged_row(_staged_row(cpt_code="99.213-a"), ALL_CODE_TYPES)

    assert records[0]["code_raw"] == "99.213-a"
    assert records[0]["code_norm"] == "99213A"
