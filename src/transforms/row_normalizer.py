"""Row normalization transform.

This module converts one raw wide charge row into a staging row:
money to integer cents, percentages to basis points, codes and payer
names to canonical form, plus the row content digest. No I/O.
"""

from __future__ import annotations

from datetime import date, datetime
import math
import re
from typing import Mapping
from uuid import UUID

from core.code_types import ALL_CODE_TYPES
from core.constants import SOURCE_DATE_FORMATS
from core.errors import RowRejectedError
from core.types import StagingRow
from transforms.content_identity import build_row_hash

_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]")
_WHITESPACE_RUN = re.compile(r"\s+")


def dollars_to_cents(value: float | None) -> int | None:
    """Convert nullable dollars to nullable integer cents."""
    return _scale_by_hundred(value)


def percent_to_basis_points(value: float | None) -> int | None:
    """Convert a nullable percentage to basis points, e.g. 12.34 -> 1234."""
    return _scale_by_hundred(value)


def normalize_code(value: object) -> str | None:
    """Trim, uppercase, and strip every non-alphanumeric character.

    Args:
        value: Raw code value.

    Returns:
        Canonical code, or ``None`` when nothing remains.
    """
    text = optional_text(value)
    if text is None:
        return None
    normalized = _NON_ALPHANUMERIC.sub("", text.upper())
    return normalized or None


def normalize_name(value: object) -> str | None:
    """Lowercase a payer or plan name and collapse whitespace runs."""
    text = optional_text(value)
    if text is None:
        return None
    return _WHITESPACE_RUN.sub(" ", text.lower())


def parse_date(value: object) -> date | None:
    """Parse a source date in any of the common MRF formats.

    Args:
        value: Raw date string or date.

    Returns:
        Parsed date, or ``None`` when empty or unparseable.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = optional_text(value)
    if text is None:
        return None
    for date_format in SOURCE_DATE_FORMATS:
        try:
            return datetime.strptime(text, date_format).date()
        except ValueError:
            continue
    return None


def optional_text(value: object) -> str | None:
    """Return trimmed text, mapping ``None`` and blank strings to ``None``."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_row(
    raw_row: Mapping[str, object],
    batch_id: UUID,
    mrf_file_id: int,
    row_number: int,
    include_payer_prices: bool,
) -> StagingRow:
    """Convert one raw source row into a staging row.

    Args:
        raw_row: Source row keyed by column name; missing keys read as absent.
        batch_id: Ingest batch id for the run.
        mrf_file_id: Owning file record id.
        row_number: One-based row number.
        include_payer_prices: Populate payer/plan and negotiated fields.

    Returns:
        Normalized staging row.

    Raises:
        RowRejectedError: If the row has no description or a non-numeric amount.
    """
    if optional_text(raw_row.get("description")) is None:
        raise RowRejectedError(row_number, "description is required")
    try:
        return _build_staging_row(
            raw_row, batch_id, mrf_file_id, row_number, include_payer_prices
        )
    except (TypeError, ValueError, OverflowError) as error:
        raise RowRejectedError(row_number, f"invalid numeric value: {error}") from error


def _build_staging_row(
    raw_row: Mapping[str, object],
    batch_id: UUID,
    mrf_file_id: int,
    row_number: int,
    include_payer_prices: bool,
) -> StagingRow:
    """Assemble the staging row; numeric conversion errors propagate."""
    codes = {
        code_type.column: normalize_code(raw_row.get(code_type.column))
        for code_type in ALL_CODE_TYPES
    }
    payer_fields = _payer_fields(raw_row) if include_payer_prices else {}
    return StagingRow(
        ingest_batch_id=batch_id,
        mrf_file_id=mrf_file_id,
        source_row_number=row_number,
        source_row_hash=build_row_hash(row_number, _identifying_values(raw_row)),
        hospital_name=str(raw_row.get("hospital_name") or ""),
        description=str(raw_row.get("description")),
        hospital_location=optional_text(raw_row.get("hospital_location")),
        hospital_address=optional_text(raw_row.get("hospital_address")),
        license_number=optional_text(raw_row.get("license_number")),
        license_state=optional_text(raw_row.get("license_state")),
        version=optional_text(raw_row.get("version")),
        last_updated_on=parse_date(raw_row.get("last_updated_on")),
        affirmation=bool(raw_row.get("affirmation")),
        setting=optional_text(raw_row.get("setting")),
        billing_class=optional_text(raw_row.get("billing_class")),
        codes=codes,
        gross_charge_cents=dollars_to_cents(_optional_float(raw_row.get("gross_charge"))),
        discounted_cash_cents=dollars_to_cents(_optional_float(raw_row.get("discounted_cash"))),
        min_charge_cents=dollars_to_cents(_optional_float(raw_row.get("min_charge"))),
        max_charge_cents=dollars_to_cents(_optional_float(raw_row.get("max_charge"))),
        drug_unit=_optional_float(raw_row.get("drug_unit_of_measurement")),
        drug_unit_type=optional_text(raw_row.get("drug_type_of_measurement")),
        modifiers=optional_text(raw_row.get("modifiers")),
        additional_generic_notes=optional_text(raw_row.get("additional_generic_notes")),
        **payer_fields,
    )


def _payer_fields(raw_row: Mapping[str, object]) -> dict[str, object]:
    """Build payer/plan and negotiated-price fields for opted-in runs."""
    return {
        "payer_name": optional_text(raw_row.get("payer_name")),
        "payer_name_norm": normalize_name(raw_row.get("payer_name")),
        "plan_name": optional_text(raw_row.get("plan_name")),
        "plan_name_norm": normalize_name(raw_row.get("plan_name")),
        "negotiated_dollar_cents": dollars_to_cents(
            _optional_float(raw_row.get("negotiated_dollar"))
        ),
        "negotiated_percentage_bps": percent_to_basis_points(
            _optional_float(raw_row.get("negotiated_percentage"))
        ),
        "estimated_amount_cents": dollars_to_cents(
            _optional_float(raw_row.get("estimated_amount"))
        ),
        "methodology": optional_text(raw_row.get("methodology")),
        "negotiated_algorithm": optional_text(raw_row.get("negotiated_algorithm")),
        "additional_payer_notes": optional_text(raw_row.get("additional_payer_notes")),
    }


def _identifying_values(raw_row: Mapping[str, object]) -> list[str | None]:
    """Collect the ordered field values covered by the row digest."""
    values = [
        _raw_text(raw_row.get("description")),
        _raw_text(raw_row.get("setting")),
        _raw_text(raw_row.get("payer_name")),
        _raw_text(raw_row.get("plan_name")),
    ]
    values.extend(_raw_text(raw_row.get(code_type.column)) for code_type in ALL_CODE_TYPES)
    return values


def _raw_text(value: object) -> str | None:
    """Render a raw value for hashing without trimming it."""
    return None if value is None else str(value)


def _optional_float(value: object) -> float | None:
    """Parse a nullable amount; NaN reads as absent, infinities are invalid."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    number = float(value)  # type: ignore[arg-type]
    if math.isnan(number):
        return None
    if math.isinf(number):
        raise ValueError(f"non-finite amount {value!r}")
    return number


def _scale_by_hundred(value: float | None) -> int | None:
    """Scale by 100 and round half away from zero."""
    if value is None:
        return None
    scaled = value * 100
    return int(math.copysign(math.floor(abs(scaled) + 0.5), scaled))
