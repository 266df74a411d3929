"""Reconciliation error taxonomy.

Resource-local errors are caught inside the executor loop and turned into
FAIL results. Only HardStopError escapes a run.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tunectl.core.executor import RunSummary


class ReconcileError(Exception):
    """Base exception for reconciliation errors."""


class SourceMissingError(ReconcileError):
    """Raised when the desired-state input of a resource is absent."""


class BackupFailedError(ReconcileError):
    """Raised when the previous content of a target cannot be saved."""


class MutationFailedError(ReconcileError):
    """Raised when writing a target or running a collaborator fails."""


class UnsafeSystemStateError(ReconcileError):
    """Raised when automatic mutation would risk an unbootable system."""


class HardStopError(ReconcileError):
    """Raised when the run must terminate before touching anything else.

    Attributes:
        remediation: What the operator must do before re-running.
        summary: What the run did before it stopped, once the executor has
            finished its pending triggers.
    """

    def __init__(self, message: str, remediation: str) -> None:
        super().__init__(message)
        self.remediation = remediation
        self.summary: RunSummary | None = None
