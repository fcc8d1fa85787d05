"""Dry-run plan command wiring for the mrfload CLI."""

from __future__ import annotations

import argparse
import sys
from typing import Any

from core.constants import DEFAULT_PLAN_SAMPLE_SIZE
from core.exit_codes import SUCCESS
from ingest.plan_report import build_plan_report, render_plan_report


def add_plan_command(subparsers: Any) -> None:
    """Register plan subcommand."""
    parser = subparsers.add_parser("plan", help="Dry-run validation and row projections")
    parser.add_argument("--file", required=True, help="Path to MRF Parquet file")
    parser.add_argument(
        "--sample-size",
        type=int,
        default=DEFAULT_PLAN_SAMPLE_SIZE,
        help="Leading rows sampled for projections",
    )


def run_plan_command(args: argparse.Namespace) -> int:
    """Build the plan report and print it; never touches the store."""
    report = build_plan_report(args.file, sample_size=args.sample_size)
    render_plan_report(report, sys.stdout)
    return SUCCESS
