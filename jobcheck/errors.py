"""Failure taxonomy for the change-detection pipeline."""
from __future__ import annotations


class JobCheckError(Exception):
    """Base class for every error raised by jobcheck."""


class SearchUnavailable(JobCheckError):
    """Raised when the search provider credential is not configured."""


class SearchProviderError(JobCheckError):
    """Raised when the search provider answers with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(JobCheckError):
    """Raised when a tracked person cannot be read or written."""


class NotificationError(JobCheckError):
    """Raised when a change alert could not be delivered."""


class RunAlreadyInProgress(JobCheckError):
    """Signals that a run is already in flight; callers turn it into a skip."""


class RunLockUnavailable(JobCheckError):
    """Raised when the run lock file cannot be created or opened."""
