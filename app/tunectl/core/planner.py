"""Planning logic for reconciliation runs.

The planner compares the catalog against inspected system state and turns
every resource into exactly one Action. It never mutates the system;
running it twice against the same state yields the same plan.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from tunectl.core.catalog import Catalog, unmet_precondition
from tunectl.core.edits import render_text, unified_diff
from tunectl.core.errors import SourceMissingError
from tunectl.core.facts import SystemFacts
from tunectl.core.inspector import Presence, StateInspector, SystemFact, decode, read_source
from tunectl.models.action import Action, ActionType
from tunectl.models.resource import REBOOT_KINDS, Resource, ResourceKind

logger = logging.getLogger(__name__)

# Execution phases; packages before files, files before services, and
# destructive steps last
PHASE_PACKAGES_PRESENT = 0
PHASE_FILES = 1
PHASE_SERVICES_ENABLE = 2
PHASE_PACKAGES_ABSENT = 3
PHASE_SERVICES_MASK = 4

# Phases skipped when any file action failed
DESTRUCTIVE_PHASES = frozenset({PHASE_PACKAGES_ABSENT, PHASE_SERVICES_MASK})

REASON_MATCHES = "already in desired state"
REASON_UNKNOWN = "state unknown"


def phase_of(kind: ResourceKind) -> int:
    """Execution phase of a resource kind."""
    if kind == ResourceKind.PACKAGE_PRESENT:
        return PHASE_PACKAGES_PRESENT
    if kind.is_file:
        return PHASE_FILES
    if kind == ResourceKind.SERVICE_ENABLE:
        return PHASE_SERVICES_ENABLE
    if kind == ResourceKind.PACKAGE_ABSENT:
        return PHASE_PACKAGES_ABSENT
    return PHASE_SERVICES_MASK


@dataclass(frozen=True, slots=True)
class Plan:
    """Ordered actions for one run.

    Attributes:
        actions: One action per catalog resource, in execution order.
    """

    actions: tuple[Action, ...]

    def __iter__(self) -> Iterator[Action]:
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)

    @property
    def mutating(self) -> list[Action]:
        """Actions that change the system."""
        return [a for a in self.actions if a.is_mutating]

    @property
    def is_empty(self) -> bool:
        """Check if nothing needs to change."""
        return not self.mutating

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "actions": [a.to_dict() for a in self.mutating],
            "skipped": sum(1 for a in self.actions if a.is_skip),
        }


class Planner:
    """Turns catalog resources and system state into a Plan."""

    def __init__(self, inspector: StateInspector, facts: SystemFacts) -> None:
        """Initialize the planner.

        Args:
            inspector: Reads current state per resource.
            facts: Evaluates resource preconditions.
        """
        self._inspector = inspector
        self._facts = facts

    def plan(self, catalog: Catalog) -> Plan:
        """Plan every resource of a catalog.

        Args:
            catalog: Desired state.

        Returns:
            Plan with actions sorted by phase, stable within a phase.
        """
        actions = [self.plan_resource(resource) for resource in catalog]
        actions.sort(key=lambda a: phase_of(a.resource.kind))
        logger.debug(
            "Planned %d action(s), %d mutating",
            len(actions),
            sum(1 for a in actions if a.is_mutating),
        )
        return Plan(actions=tuple(actions))

    def plan_resource(self, resource: Resource) -> Action:
        """Decide the action for a single resource."""
        unmet = unmet_precondition(resource.preconditions, self._facts)
        if unmet is not None:
            return self._skip(resource, unmet)

        try:
            fact = self._inspector.inspect(resource)
        except SourceMissingError as e:
            logger.error("%s: %s", resource.id, e)
            return Action(resource, ActionType.SKIP, "source missing", error=str(e))

        if fact.is_unknown:
            return self._skip(resource, REASON_UNKNOWN)
        if fact.matches:
            return self._skip(resource, REASON_MATCHES)
        if fact.unsafe is not None:
            return self._skip(resource, fact.unsafe)

        if resource.kind == ResourceKind.PACKAGE_ABSENT:
            action_type = ActionType.REMOVE
            reason = "package installed"
        elif fact.presence == Presence.ABSENT:
            action_type = ActionType.CREATE
            reason = "target absent"
        else:
            action_type = ActionType.UPDATE
            reason = "target differs"

        try:
            diff_text = self._diff(resource, fact)
        except ValueError as e:
            return self._skip(resource, str(e))

        return Action(
            resource=resource,
            action_type=action_type,
            reason=reason,
            diff_text=diff_text,
            requires_reboot=resource.requires_reboot or resource.kind in REBOOT_KINDS,
            requires_confirmation=resource.confirm,
        )

    def _skip(self, resource: Resource, reason: str) -> Action:
        logger.debug("Skip %s: %s", resource.id, reason)
        return Action(
            resource,
            ActionType.SKIP,
            reason,
            requires_reboot=resource.requires_reboot or resource.kind in REBOOT_KINDS,
        )

    def _diff(self, resource: Resource, fact: SystemFact) -> str:
        """Diff text shown to the operator.

        Raises:
            ValueError: If the desired text cannot be rendered safely.
        """
        kind = resource.kind
        if kind == ResourceKind.FILE_COPY:
            new = decode(read_source(resource))
            return unified_diff(resource.target, fact.raw_value, new)
        if kind.is_file:
            new = render_text(resource, fact.raw_value)
            return unified_diff(resource.target, fact.raw_value, new)
        if kind.is_package:
            wanted = "installed" if kind == ResourceKind.PACKAGE_PRESENT else "not installed"
            return f"- {resource.target}: {fact.raw_value}\n+ {resource.target}: {wanted}"
        wanted = "masked" if kind == ResourceKind.SERVICE_MASK else "enabled"
        return f"- {resource.target}: {fact.raw_value}\n+ {resource.target}: {wanted}"
