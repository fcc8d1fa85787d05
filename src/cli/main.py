"""mrfload CLI entry points.

This module parses global flags, builds one immutable run config, and
dispatches to the ``ingest``, ``plan``, and ``migrate`` commands.
Failures print a single phase-attributed line and map to exit codes.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import sys
from typing import NoReturn, Sequence

from cli.ingest_command import add_ingest_command, run_ingest_command
from cli.migrate_command import add_migrate_command, run_migrate_command
from cli.plan_command import add_plan_command, run_plan_command
from core.config import IngestConfig, load_code_types_file, parse_code_types_option
from core.constants import SUPPORTED_LOG_FORMATS
from core.errors import MrfLoadError, PipelineError
from core.exit_codes import USAGE_ERROR, exit_code_for_error
from core.logging_config import configure_logging, get_logger

_LOGGER = get_logger(__name__)


class _UsageErrorParser(argparse.ArgumentParser):
    """Argument parser that reports bad flags with the usage exit code."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(USAGE_ERROR, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = _UsageErrorParser(
        prog="mrfload",
        description="Hospital MRF Parquet to relational store bulk loader",
    )
    parser.add_argument(
        "--dsn",
        help="Store connection URL (default: MRFLOAD_DATABASE_URL or DATABASE_URL)",
    )
    parser.add_argument(
        "--log-format",
        choices=SUPPORTED_LOG_FORMATS,
        help="Log format (default: MRFLOAD_LOG_FORMAT or text)",
    )
    parser.add_argument("--config", help="YAML file with a code_types allow-list")
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_ingest_command(subparsers)
    add_plan_command(subparsers)
    add_migrate_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the mrfload CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = build_config(args)
        configure_logging(config.log_format)
        if args.command == "ingest":
            return run_ingest_command(config, args)
        if args.command == "plan":
            return run_plan_command(args)
        if args.command == "migrate":
            return run_migrate_command(config)
    except MrfLoadError as error:
        _report_failure(args.command, error)
        return exit_code_for_error(error)
    parser.error(f"Unsupported command: {args.command}")


def run() -> None:
    """Console script entry point."""
    raise SystemExit(main())


def build_config(args: argparse.Namespace) -> IngestConfig:
    """Merge environment defaults, the YAML config file, and CLI flags.

    Flags win over the config file, which wins over the environment.

    Raises:
        MrfConfigError: If any value is invalid.
    """
    config = IngestConfig.from_env()
    overrides: dict[str, object] = {}
    if args.dsn:
        overrides["database_url"] = args.dsn
    if args.log_format:
        overrides["log_format"] = args.log_format
    if args.config:
        overrides["code_types"] = load_code_types_file(args.config)
    cli_code_types = parse_code_types_option(getattr(args, "code_types", None))
    if cli_code_types:
        overrides["code_types"] = cli_code_types
    for flag in ("activate_version", "force", "keep_staging", "include_payer_prices"):
        if getattr(args, flag, False):
            overrides[flag] = True
    return replace(config, **overrides)


def _report_failure(command: str, error: MrfLoadError) -> None:
    """Print a one-line failure summary to stderr and log the error."""
    if isinstance(error, PipelineError):
        _LOGGER.error(f"{command}_failed", phase=error.phase, error=str(error.cause))
        print(f"{command} failed in {error.phase} phase: {error.cause}", file=sys.stderr)
        return
    _LOGGER.error(f"{command}_failed", error=str(error))
    print(f"{command} failed: {error}", file=sys.stderr)
