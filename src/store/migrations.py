"""Idempotent schema provisioning.

This module creates store schemas and tables in a fixed order.
Every step checks for existing objects, so it is safe to rerun.
"""

from __future__ import annotations

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from core.constants import STORE_SCHEMAS
from core.errors import MrfLoadError
from core.logging_config import get_logger
from store.schema import MIGRATION_ORDER

_LOGGER = get_logger(__name__)


def apply_migrations(engine: Engine) -> list[str]:
    """Create schemas and tables that do not exist yet.

    Args:
        engine: Store engine.

    Returns:
        Qualified names of tables, in the order they were checked.

    Raises:
        MrfLoadError: If a DDL statement fails.
    """
    applied: list[str] = []
    try:
        with engine.begin() as connection:
            if connection.dialect.name == "postgresql":
                for schema in STORE_SCHEMAS:
                    connection.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{schema}"'))
            for table in MIGRATION_ORDER:
                _LOGGER.info("applying_migration", table=table.fullname)
                table.create(connection, checkfirst=True)
                applied.append(table.fullname)
    except SQLAlchemyError as error:
        raise MrfLoadError(
            f"Failed to apply schema migrations: {error}. "
            "Check store permissions and rerun migrate."
        ) from error
    _LOGGER.info("migrations_applied", count=len(applied))
    return applied
