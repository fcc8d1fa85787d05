"""File record status state machine.

This module defines the closed set of statuses an MRF file record moves
through and the transitions the pipeline is allowed to make.
"""

from __future__ import annotations

from enum import Enum

from core.errors import MrfStateError


class FileStatus(str, Enum):
    """Lifecycle status persisted on ``ingest.mrf_files``."""

    PENDING = "pending"
    STAGING = "staging"
    STAGED = "staged"
    TRANSFORMING = "transforming"
    TRANSFORMED = "transformed"
    ACTIVE = "active"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Return whether no further pipeline transition leaves this status."""
        return self in (FileStatus.ACTIVE, FileStatus.FAILED)

    @property
    def is_loaded(self) -> bool:
        """Return whether a file in this status needs no re-import."""
        return self in (FileStatus.ACTIVE, FileStatus.TRANSFORMED)

    def can_transition_to(self, target: "FileStatus") -> bool:
        """Return whether the pipeline may move from this status to ``target``."""
        if target is FileStatus.FAILED:
            return not self.is_terminal
        return target in ALLOWED_TRANSITIONS[self]


ALLOWED_TRANSITIONS: dict[FileStatus, frozenset[FileStatus]] = {
    FileStatus.PENDING: frozenset({FileStatus.STAGING}),
    FileStatus.STAGING: frozenset({FileStatus.STAGED}),
    FileStatus.STAGED: frozenset({FileStatus.TRANSFORMING}),
    FileStatus.TRANSFORMING: frozenset({FileStatus.TRANSFORMED}),
    FileStatus.TRANSFORMED: frozenset({FileStatus.ACTIVE}),
    FileStatus.ACTIVE: frozenset(),
    FileStatus.FAILED: frozenset(),
}


def parse_file_status(raw_value: str) -> FileStatus:
    """Parse a persisted status string.

    Args:
        raw_value: Status column value.

    Returns:
        Matching status member.

    Raises:
        MrfStateError: If the value is not a known status.
    """
    try:
        return FileStatus(raw_value)
    except ValueError as error:
        supported = ", ".join(status.value for status in FileStatus)
        raise MrfStateError(
            f"Unknown file status '{raw_value}'. Expected one of: {supported}."
        ) from error


def require_transition(current: FileStatus, target: FileStatus) -> FileStatus:
    """Validate a transition and return the target status.

    Raises:
        MrfStateError: If the transition is not allowed.
    """
    if not current.can_transition_to(target):
        raise MrfStateError(
            f"Invalid file status transition {current.value} -> {target.value}."
        )
    return target
