"""Migrate command wiring for the mrfload CLI."""

from __future__ import annotations

from typing import Any

from core.config import IngestConfig
from core.exit_codes import SUCCESS
from store.database import create_store_engine
from store.migrations import apply_migrations


def add_migrate_command(subparsers: Any) -> None:
    """Register migrate subcommand."""
    subparsers.add_parser("migrate", help="Apply store schema migrations")


def run_migrate_command(config: IngestConfig) -> int:
    """Apply migrations and print each checked table."""
    engine = create_store_engine(config.require_database_url())
    try:
        applied = apply_migrations(engine)
    finally:
        engine.dispose()
    for table_name in applied:
        print(table_name)
    return SUCCESS
