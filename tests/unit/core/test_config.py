"""Unit tests for core config parsing."""

from __future__ import annotations

from dataclasses import replace

import pytest

from core.config import (
    IngestConfig,
    load_code_types_file,
    normalize_code_type_names,
    parse_code_types_option,
)
from core.errors import MrfConfigError


def test_from_env_prefers_mrfload_database_url(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should read the tool-specific URL before the generic one."""
    monkeypatch.setenv("MRFLOAD_DATABASE_URL", "sqlite:///primary.db")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///fallback.db")

    config = IngestConfig.from_env()

    assert config.database_url == "sqlite:///primary.db"


def test_from_env_falls_back_to_database_url(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should use DATABASE_URL when no tool-specific URL is set."""
    monkeypatch.delenv("MRFLOAD_DATABASE_URL", raising=False)
    monkeypatch.setenv("DATABASE_URL", "sqlite:///fallback.db")

    config = IngestConfig.from_env()

    assert config.database_url == "sqlite:///fallback.db"


def test_from_env_raises_for_invalid_log_format(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for an unsupported log format."""
    monkeypatch.setenv("MRFLOAD_LOG_FORMAT", "xml")

    with pytest.raises(MrfConfigError):
        IngestConfig.from_env()


def test_code_types_are_normalized_at_construction() -> None:
    """Code type names should be trimmed, uppercased, and deduplicated."""
    config = IngestConfig(code_types=(" cpt", "HCPCS", "Cpt"))

    assert config.code_types == ("CPT", "HCPCS")


def test_unknown_code_type_is_rejected_before_any_io() -> None:
    """Unrecognized code type names should fail config validation."""
    with pytest.raises(MrfConfigError, match="BOGUS"):
        IngestConfig(code_types=("CPT", "BOGUS"))


def test_replace_revalidates_sizes() -> None:
    """Overrides applied with replace should be validated too."""
    with pytest.raises(MrfConfigError):
        replace(IngestConfig(), channel_capacity=0)


def test_require_database_url_raises_when_missing() -> None:
    """Commands needing the store should fail with a usage error."""
    with pytest.raises(MrfConfigError, match="--dsn"):
        IngestConfig().require_database_url()


def test_parse_code_types_option_splits_commas() -> None:
    """The CLI option should accept a comma-separated list."""
    assert parse_code_types_option("cpt, ndc,") == ("CPT", "NDC")
    assert parse_code_types_option(None) == ()


def test_normalize_code_type_names_accepts_hyphenated_names() -> None:
    """DRG variants should be matched by their catalogue names."""
    assert normalize_code_type_names(["ms-drg", "APR-DRG"]) == ("MS-DRG", "APR-DRG")


def test_load_code_types_file_reads_yaml_list(tmp_path) -> None:
    """The YAML config should provide the code type allow-list."""
    config_path = tmp_path / "mrfload.yaml"
    config_path.write_text("code_types:\n  - CPT\n  - hcpcs\n", encoding="utf-8")

    assert load_code_types_file(str(config_path)) == ("CPT", "HCPCS")


def test_load_code_types_file_raises_for_bad_yaml(tmp_path) -> None:
    """Malformed YAML should surface as a config error."""
    config_path = tmp_path / "broken.yaml"
    config_path.write_text("code_types: [CPT\n", encoding="utf-8")

    with pytest.raises(MrfConfigError, match="YAML"):
        load_code_types_file(str(config_path))


def test_load_code_types_file_raises_for_missing_file(tmp_path) -> None:
    """A missing config file should surface as a config error."""
    with pytest.raises(MrfConfigError):
        load_code_types_file(str(tmp_path / "absent.yaml"))
