"""mrfload exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each pipeline phase raises a specific error type for debuggability.
"""

from __future__ import annotations


class MrfLoadError(Exception):
    """Base exception for all mrfload failures."""


class MrfConfigError(MrfLoadError):
    """Raised for invalid runtime configuration or command-line usage."""


class MrfValidationError(MrfLoadError):
    """Raised when a source file is unreadable or has an invalid schema."""


class MrfConnectionError(MrfLoadError):
    """Raised when the relational store cannot be reached."""


class MrfStagingError(MrfLoadError):
    """Raised for producer or bulk-load failures while staging rows."""


class MrfTransformError(MrfLoadError):
    """Raised for wide-to-long explosion, dimension, and finalize failures."""


class MrfPartialSuccessError(MrfLoadError):
    """Reserved for partial-acceptance ingest modes."""


class MrfStateError(MrfLoadError):
    """Raised for an invalid file status transition."""


class MrfCancelledError(MrfStagingError):
    """Raised when a run-scoped cancellation signal stops staging."""


class RowRejectedError(MrfLoadError):
    """Raised by row normalization for a row that cannot be staged."""

    def __init__(self, row_number: int, reason: str) -> None:
        super().__init__(f"row {row_number}: {reason}")
        self.row_number = row_number
        self.reason = reason


class PipelineError(MrfLoadError):
    """Pipeline failure tagged with the phase where it occurred."""

    def __init__(self, phase: str, cause: Exception) -> None:
        super().__init__(f"{phase}: {cause}")
        self.phase = phase
        self.cause = cause
