"""Wide-to-long price explosion.

This module turns one staged wide row into one price record per
populated code column, copying every non-code field verbatim.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from core.code_types import CodeType
from transforms.row_normalizer import normalize_code

PRICE_COPY_FIELDS = (
    "mrf_file_id",
    "ingest_batch_id",
    "source_row_number",
    "description",
    "setting",
    "billing_class",
    "gross_charge_cents",
    "discounted_cash_cents",
    "negotiated_dollar_cents",
    "negotiated_percentage_bps",
    "estimated_amount_cents",
    "min_charge_cents",
    "max_charge_cents",
    "methodology",
    "negotiated_algorithm",
    "drug_unit",
    "drug_unit_type",
    "modifiers",
    "additional_generic_notes",
    "additional_payer_notes",
)


def explode_staged_row(
    staged_row: Mapping[str, object],
    code_types: Iterable[CodeType],
    hospital_id: int | None = None,
) -> list[dict[str, object]]:
    """Explode one staged row into long-form price records.

    Args:
        staged_row: Staging row values keyed by column name, optionally
            carrying resolved ``payer_id`` and ``plan_id``.
        code_types: Code types to emit, in output order.
        hospital_id: Owning source entity id copied onto each record.

    Returns:
        One record per code column that is non-empty after normalization.
    """
    shared_fields = {name: staged_row.get(name) for name in PRICE_COPY_FIELDS}
    shared_fields["hospital_id"] = hospital_id
    shared_fields["payer_id"] = staged_row.get("payer_id")
    shared_fields["plan_id"] = staged_row.get("plan_id")
    shared_fields["payer_name_raw"] = staged_row.get("payer_name")
    shared_fields["plan_name_raw"] = staged_row.get("plan_name")
    records: list[dict[str, object]] = []
    for code_type in code_types:
        code_raw = staged_row.get(code_type.column)
        code_norm = normalize_code(code_raw)
        if code_norm is None:
            continue
        records.append(
            {
                **shared_fields,
                "code_type": code_type.name,
                "code_raw": str(code_raw),
                "code_norm": code_norm,
            }
        )
    return records
