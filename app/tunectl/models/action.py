"""Action models for reconciliation runs.

This module defines the planned change for one resource (Action) and the
outcome of executing it (ExecutionResult). Actions are created fresh for
every run, consumed once by the executor, and discarded.
"""

from dataclasses import dataclass
from enum import Enum

from tunectl.models.resource import Resource, ResourceKind


class ActionType(str, Enum):
    """Type of planned change.

    Attributes:
        CREATE: Target is absent and will be created.
        UPDATE: Target is present but does not match and will be rewritten.
        REMOVE: Target must go away (packages marked absent).
        SKIP: Nothing to do, or the resource is out of scope.
    """

    CREATE = "create"
    UPDATE = "update"
    REMOVE = "remove"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class Action:
    """Planned change for a single resource.

    Attributes:
        resource: The resource this action reconciles.
        action_type: What the executor will do.
        reason: Why this action was chosen.
        diff_text: Human-readable diff for operator visibility.
        requires_reboot: Change only becomes active after a reboot.
        requires_confirmation: Operator must confirm before it is applied.
        error: Set when the desired state itself could not be read; the
            action is then reported as a failure instead of applied.
    """

    resource: Resource
    action_type: ActionType
    reason: str
    diff_text: str | None = None
    requires_reboot: bool = False
    requires_confirmation: bool = False
    error: str | None = None

    @property
    def resource_id(self) -> str:
        """Id of the resource this action reconciles."""
        return self.resource.id

    @property
    def is_skip(self) -> bool:
        """Check if this action performs no mutation."""
        return self.action_type == ActionType.SKIP

    @property
    def is_mutating(self) -> bool:
        """Check if this action changes the system."""
        return self.action_type != ActionType.SKIP

    @property
    def is_destructive(self) -> bool:
        """Check if this action removes a package or masks a service."""
        if self.action_type == ActionType.REMOVE:
            return True
        return self.is_mutating and self.resource.kind == ResourceKind.SERVICE_MASK

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, object] = {
            "resource": self.resource_id,
            "kind": self.resource.kind.value,
            "target": self.resource.target,
            "action": self.action_type.value,
            "reason": self.reason,
            "requires_reboot": self.requires_reboot,
        }
        if self.diff_text:
            result["diff"] = self.diff_text
        if self.error:
            result["error"] = self.error
        return result


class Outcome(str, Enum):
    """Console status tag of a resource outcome."""

    OK = "OK"
    FAIL = "FAIL"
    INFO = "INFO"
    WARN = "WARN"


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Outcome of executing one action.

    Attributes:
        action: The action that was executed.
        outcome: Status tag shown on the console and in the run log.
        message: What happened.
        backup_path: Where the previous target content was saved, if any.
        output: Captured command output, if a command ran.
        dry_run: Whether the mutation was only simulated.
    """

    action: Action
    outcome: Outcome
    message: str
    backup_path: str | None = None
    output: str | None = None
    dry_run: bool = False

    @property
    def success(self) -> bool:
        """Check if the action did not fail."""
        return self.outcome != Outcome.FAIL

    @property
    def failed(self) -> bool:
        """Check if the action failed."""
        return self.outcome == Outcome.FAIL

    @property
    def applied(self) -> bool:
        """Check if the action actually mutated the system."""
        return self.outcome == Outcome.OK and self.action.is_mutating and not self.dry_run
