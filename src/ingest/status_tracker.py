"""Persisted file status transitions for one pipeline run."""

from __future__ import annotations

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import MrfLoadError
from core.file_status import FileStatus, require_transition
from core.logging_config import get_logger
from store.file_registry import set_file_status

_LOGGER = get_logger(__name__)


class FileStatusTracker:
    """Validate and persist status changes for a single file record.

    The tracker starts from ``pending``, the status preflight leaves a
    file in, and refuses any transition the state machine does not allow.
    """

    def __init__(
        self,
        engine: Engine,
        mrf_file_id: int,
        initial: FileStatus = FileStatus.PENDING,
    ) -> None:
        self._engine = engine
        self._mrf_file_id = mrf_file_id
        self._current = initial

    @property
    def current(self) -> FileStatus:
        return self._current

    def advance(self, target: FileStatus) -> None:
        """Move to ``target`` and persist it.

        Raises:
            MrfStateError: If the transition is not allowed.
            MrfLoadError: If the status update fails.
        """
        require_transition(self._current, target)
        try:
            set_file_status(self._engine, self._mrf_file_id, target)
        except SQLAlchemyError as error:
            raise MrfLoadError(
                f"Failed to set file {self._mrf_file_id} status to {target.value}: {error}"
            ) from error
        _LOGGER.debug(
            "file_status_changed",
            mrf_file_id=self._mrf_file_id,
            previous=self._current.value,
            status=target.value,
        )
        self._current = target

    def acknowledge(self, target: FileStatus) -> None:
        """Record a transition another operation already persisted.

        Raises:
            MrfStateError: If the transition is not allowed.
        """
        require_transition(self._current, target)
        self._current = target

    def mark_failed(self) -> None:
        """Persist ``failed`` when allowed; store errors are logged, not raised."""
        if not self._current.can_transition_to(FileStatus.FAILED):
            return
        try:
            set_file_status(self._engine, self._mrf_file_id, FileStatus.FAILED)
        except SQLAlchemyError as error:
            _LOGGER.error(
                "mark_failed_error",
                mrf_file_id=self._mrf_file_id,
                error=str(error),
            )
            return
        self._current = FileStatus.FAILED
