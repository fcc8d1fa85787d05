"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Iterator

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


_STRING_FIELDS = (
    "hospital_name",
    "hospital_location",
    "hospital_address",
    "license_number",
    "license_state",
    "version",
    "last_updated_on",
    "description",
    "setting",
    "billing_class",
    "payer_name",
    "plan_name",
    "methodology",
    "negotiated_algorithm",
    "drug_type_of_measurement",
    "modifiers",
    "additional_generic_notes",
    "additional_payer_notes",
)
_FLOAT_FIELDS = (
    "gross_charge",
    "discounted_cash",
    "negotiated_dollar",
    "negotiated_percentage",
    "estimated_amount",
    "min_charge",
    "max_charge",
    "drug_unit_of_measurement",
)


def _charge_schema() -> Any:
    import pyarrow as pa

    from core.code_types import code_type_columns

    fields = [pa.field(name, pa.string()) for name in _STRING_FIELDS]
    fields.extend(pa.field(column, pa.string()) for column in code_type_columns())
    fields.extend(pa.field(name, pa.float64()) for name in _FLOAT_FIELDS)
    fields.append(pa.field("affirmation", pa.bool_()))
    return pa.schema(fields)


@pytest.fixture
def make_row() -> Callable[..., dict[str, object]]:
    """Build one wide source row with sensible defaults."""

    def _make_row(**overrides: object) -> dict[str, object]:
        row: dict[str, object] = {
            "hospital_name": "General Hospital",
            "hospital_location": "Springfield",
            "license_number": "H-100",
            "license_state": "IL",
            "version": "2.0.0",
            "last_updated_on": "2024-07-01",
            "affirmation": True,
            "description": "Office visit",
            "setting": "outpatient",
            "gross_charge": 150.99,
        }
        row.update(overrides)
        return row

    return _make_row


@pytest.fixture
def write_charge_file(tmp_path: Path) -> Callable[..., Path]:
    """Write wide rows to a Parquet file under ``tmp_path``."""
    import pyarrow as pa
    import pyarrow.parquet as pq

    def _write(rows: list[dict[str, object]], name: str = "mrf.parquet") -> Path:
        schema = _charge_schema()
        table = pa.Table.from_pylist(
            [{field: row.get(field) for field in schema.names} for row in rows],
            schema=schema,
        )
        file_path = tmp_path / name
        pq.write_table(table, file_path)
        return file_path

    return _write


@pytest.fixture
def store_engine(tmp_path: Path) -> Iterator[Any]:
    """Yield a migrated SQLite store engine."""
    from store.database import create_store_engine
    from store.migrations import apply_migrations

    engine = create_store_engine(f"sqlite:///{tmp_path / 'store.db'}")
    apply_migrations(engine)
    yield engine
    engine.dispose()
