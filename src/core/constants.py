"""Core constants used across mrfload modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_LOG_FORMAT = "text"
SUPPORTED_LOG_FORMATS = ("text", "json")
DATABASE_URL_ENV_VARS = ("MRFLOAD_DATABASE_URL", "DATABASE_URL")
LOG_FORMAT_ENV_VAR = "MRFLOAD_LOG_FORMAT"
HASH_ALGORITHM = "sha256"
FILE_HASH_CHUNK_SIZE = 1024 * 1024
DEFAULT_READ_BATCH_SIZE = 1024
DEFAULT_CHANNEL_CAPACITY = 1024
DEFAULT_INSERT_CHUNK_SIZE = 1024
DEFAULT_TRANSFORM_PAGE_SIZE = 2048
DEFAULT_PLAN_SAMPLE_SIZE = 1000
CHANNEL_POLL_INTERVAL_SECONDS = 0.1
REQUIRED_SOURCE_FIELDS = ("description", "hospital_name")
REF_SCHEMA = "ref"
INGEST_SCHEMA = "ingest"
SERVING_SCHEMA = "mrf"
STORE_SCHEMAS = (REF_SCHEMA, INGEST_SCHEMA, SERVING_SCHEMA)
SOURCE_DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S",
)
