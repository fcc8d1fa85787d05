"""Runtime configuration model for mrfload.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Iterable, cast

import yaml

from core.code_types import code_type_by_name
from core.constants import (
    DATABASE_URL_ENV_VARS,
    DEFAULT_CHANNEL_CAPACITY,
    DEFAULT_INSERT_CHUNK_SIZE,
    DEFAULT_LOG_FORMAT,
    DEFAULT_READ_BATCH_SIZE,
    LOG_FORMAT_ENV_VAR,
    SUPPORTED_LOG_FORMATS,
)
from core.errors import MrfConfigError


@dataclass(frozen=True)
class IngestConfig:
    """Validated, immutable run configuration.

    One instance is built per command and passed into every phase.
    Validation runs once, at construction.

    Attributes:
        database_url: SQLAlchemy URL of the relational store.
        log_format: ``text`` or ``json``.
        activate_version: Mark the loaded file as the active version.
        force: Re-import even when the file digest is already loaded.
        keep_staging: Keep staging rows after transform.
        include_payer_prices: Populate payer/plan and negotiated fields.
        code_types: Code types to explode; empty means all.
        read_batch_size: Source rows read per batch.
        channel_capacity: Bounded queue capacity between reader and loader.
        insert_chunk_size: Staging rows per bulk insert statement.
    """

    database_url: str | None = None
    log_format: str = DEFAULT_LOG_FORMAT
    activate_version: bool = False
    force: bool = False
    keep_staging: bool = False
    include_payer_prices: bool = False
    code_types: tuple[str, ...] = ()
    read_batch_size: int = DEFAULT_READ_BATCH_SIZE
    channel_capacity: int = DEFAULT_CHANNEL_CAPACITY
    insert_chunk_size: int = DEFAULT_INSERT_CHUNK_SIZE

    def __post_init__(self) -> None:
        object.__setattr__(self, "code_types", normalize_code_type_names(self.code_types))
        if self.log_format not in SUPPORTED_LOG_FORMATS:
            raise MrfConfigError(
                f"Invalid log format '{self.log_format}'. "
                f"Use one of: {', '.join(SUPPORTED_LOG_FORMATS)}."
            )
        for name in ("read_batch_size", "channel_capacity", "insert_chunk_size"):
            value = getattr(self, name)
            if value < 1:
                raise MrfConfigError(f"Invalid {name}: expected positive integer, got {value}.")

    @classmethod
    def from_env(cls) -> "IngestConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            MrfConfigError: If environment values are invalid.
        """
        return cls(
            database_url=_read_database_url(),
            log_format=os.getenv(LOG_FORMAT_ENV_VAR, DEFAULT_LOG_FORMAT),
        )

    def require_database_url(self) -> str:
        """Return the store URL or fail with a usage error."""
        if not self.database_url:
            env_names = " or ".join(DATABASE_URL_ENV_VARS)
            raise MrfConfigError(f"--dsn or {env_names} is required for this command.")
        return self.database_url


def normalize_code_type_names(names: Iterable[str]) -> tuple[str, ...]:
    """Validate code type names against the catalogue.

    Args:
        names: Requested code type names.

    Returns:
        Deduplicated names in request order.

    Raises:
        MrfConfigError: If any name is not a recognized code type.
    """
    normalized: list[str] = []
    for raw_name in names:
        name = str(raw_name).strip().upper()
        if not name:
            continue
        if code_type_by_name(name) is None:
            raise MrfConfigError(
                f"Unknown code type '{raw_name}'. Use CMS code type names such as CPT or HCPCS."
            )
        if name not in normalized:
            normalized.append(name)
    return tuple(normalized)


def load_code_types_file(config_path: str) -> tuple[str, ...]:
    """Load the ``code_types`` allow-list from a YAML config file.

    Args:
        config_path: Path to YAML file.

    Returns:
        Validated code type names; empty when the list is empty or absent.

    Raises:
        MrfConfigError: If the file is unreadable or malformed.
    """
    config_file = Path(config_path).expanduser()
    try:
        payload = cast(object, yaml.safe_load(config_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise MrfConfigError(
            f"Failed to read config file at {config_file}: {error}. Check the --config path."
        ) from error
    except yaml.YAMLError as error:
        raise MrfConfigError(
            f"Failed to parse YAML config at {config_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        return ()
    if not isinstance(payload, dict):
        raise MrfConfigError(f"Invalid config at {config_file}: expected a mapping at the root.")
    raw_code_types = payload.get("code_types") or []
    if not isinstance(raw_code_types, list):
        raise MrfConfigError(f"Invalid config at {config_file}: 'code_types' must be a list.")
    return normalize_code_type_names(str(name) for name in raw_code_types)


def parse_code_types_option(raw_value: str | None) -> tuple[str, ...]:
    """Parse a comma-separated ``--code-types`` value."""
    if not raw_value:
        return ()
    return normalize_code_type_names(raw_value.split(","))


def _read_database_url() -> str | None:
    """Return the store URL from the environment, if set."""
    for env_name in DATABASE_URL_ENV_VARS:
        value = os.getenv(env_name)
        if value:
            return value
    return None
