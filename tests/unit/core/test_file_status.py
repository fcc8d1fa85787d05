"""Unit tests for the file status state machine."""

from __future__ import annotations

import pytest

from core.errors import MrfStateError
from core.file_status import FileStatus, parse_file_status, require_transition


def test_success_chain_is_allowed_step_by_step() -> None:
    """Each status should advance only to its successor."""
    chain = [
        FileStatus.PENDING,
        FileStatus.STAGING,
        FileStatus.STAGED,
        FileStatus.TRANSFORMING,
        FileStatus.TRANSFORMED,
        FileStatus.ACTIVE,
    ]

    for current, target in zip(chain, chain[1:]):
        assert current.can_transition_to(target)


def test_skipping_a_status_is_rejected() -> None:
    """The pipeline should not jump from pending straight to staged."""
    with pytest.raises(MrfStateError):
        require_transition(FileStatus.PENDING, FileStatus.STAGED)


def test_failed_is_reachable_from_non_terminal_statuses() -> None:
    """Any in-progress status should be able to fail."""
    for status in FileStatus:
        assert status.can_transition_to(FileStatus.FAILED) is not status.is_terminal


def test_terminal_statuses_have_no_exits() -> None:
    """Active and failed files should accept no further transitions."""
    assert not FileStatus.ACTIVE.can_transition_to(FileStatus.PENDING)
    assert not FileStatus.FAILED.can_transition_to(FileStatus.STAGING)


def test_loaded_statuses() -> None:
    """Transformed and active files count as already loaded."""
    loaded = {status for status in FileStatus if status.is_loaded}

    assert loaded == {FileStatus.TRANSFORMED, FileStatus.ACTIVE}


def test_parse_file_status_rejects_unknown_value() -> None:
    """Unknown persisted values should raise a state error."""
    assert parse_file_status("staged") is FileStatus.STAGED
    with pytest.raises(MrfStateError):
        parse_file_status("exploded")
