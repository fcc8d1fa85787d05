"""Public SDK surface for mrfload.

This module provides a stable import path for library users.
It re-exports the pipeline entry points and typed result models.
"""

from __future__ import annotations

from core.config import IngestConfig
from core.errors import MrfLoadError, PipelineError
from core.file_status import FileStatus
from core.logging_config import configure_logging
from core.types import IngestSummary, PlanReport
from ingest.pipeline import IngestPipeline, run_ingest
from ingest.plan_report import build_plan_report, render_plan_report
from store.database import create_store_engine
from store.migrations import apply_migrations

__all__ = [
    "FileStatus",
    "IngestConfig",
    "IngestPipeline",
    "IngestSummary",
    "MrfLoadError",
    "PipelineError",
    "PlanReport",
    "apply_migrations",
    "build_plan_report",
    "configure_logging",
    "create_store_engine",
    "run_ingest",
    "render_plan_report",
]
