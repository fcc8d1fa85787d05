"""Ingest command wiring for the mrfload CLI."""

from __future__ import annotations

import argparse
from typing import Any

from core.config import IngestConfig
from core.exit_codes import SUCCESS
from ingest.pipeline import run_ingest
from store.database import create_store_engine


def add_ingest_command(subparsers: Any) -> None:
    """Register ingest subcommand."""
    parser = subparsers.add_parser("ingest", help="Ingest a Parquet file into the store")
    parser.add_argument("--file", required=True, help="Path to MRF Parquet file")
    parser.add_argument(
        "--activate-version",
        action="store_true",
        help="Mark this file version as active for its hospital",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Re-import even if the file content is already loaded",
    )
    parser.add_argument(
        "--keep-staging",
        action="store_true",
        help="Keep staging rows after transform",
    )
    parser.add_argument(
        "--include-payer-prices",
        action="store_true",
        help="Include payer/plan names and negotiated price fields",
    )
    parser.add_argument(
        "--code-types",
        help="Comma-separated code types to load, e.g. CPT,HCPCS (default: all)",
    )


def run_ingest_command(config: IngestConfig, args: argparse.Namespace) -> int:
    """Execute ingest and print the run summary."""
    engine = create_store_engine(config.require_database_url())
    try:
        summary = run_ingest(engine, config, args.file)
    finally:
        engine.dispose()
    if summary.already_loaded:
        print(
            f"File already imported (mrf_file_id={summary.mrf_file_id}, "
            f"sha256={summary.file_sha256}); use --force to re-import."
        )
        return SUCCESS
    print(
        f"Ingest complete: {summary.rows_staged} rows staged, "
        f"{summary.rows_inserted_serving} rows in serving table "
        f"({summary.duration_total_seconds:.1f}s)"
    )
    if summary.rows_rejected:
        print(f"Rejected rows: {summary.rows_rejected}")
    return SUCCESS
