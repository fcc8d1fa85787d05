"""Process exit codes for the mrfload CLI.

This module maps error types and pipeline phases onto the
enumerated exit codes documented for operators.
"""

from __future__ import annotations

from core.errors import (
    MrfConfigError,
    MrfConnectionError,
    MrfPartialSuccessError,
    MrfStagingError,
    MrfValidationError,
    PipelineError,
)

SUCCESS = 0
USAGE_ERROR = 1
VALIDATION_ERROR = 2
CONNECTION_ERROR = 3
STAGING_ERROR = 4
TRANSFORM_ERROR = 5
PARTIAL_SUCCESS = 6

_PHASE_EXIT_CODES = {
    "preflight": VALIDATION_ERROR,
    "stage": STAGING_ERROR,
    "dimensions": TRANSFORM_ERROR,
    "transform": TRANSFORM_ERROR,
    "finalize": TRANSFORM_ERROR,
}


def exit_code_for_error(error: Exception) -> int:
    """Return the exit code for a failure raised by a command.

    Pipeline failures map by phase, except that an unreachable store
    always maps to the connection exit code.

    Args:
        error: Raised exception.

    Returns:
        Process exit code.
    """
    if isinstance(error, PipelineError):
        if isinstance(error.cause, MrfConnectionError):
            return CONNECTION_ERROR
        return _PHASE_EXIT_CODES.get(error.phase, TRANSFORM_ERROR)
    if isinstance(error, MrfConfigError):
        return USAGE_ERROR
    if isinstance(error, MrfValidationError):
        return VALIDATION_ERROR
    if isinstance(error, MrfConnectionError):
        return CONNECTION_ERROR
    if isinstance(error, MrfStagingError):
        return STAGING_ERROR
    if isinstance(error, MrfPartialSuccessError):
        return PARTIAL_SUCCESS
    return TRANSFORM_ERROR
