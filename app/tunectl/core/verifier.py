"""Read-only verification passes.

The static pass re-inspects every catalog resource at configuration-file
level. The runtime pass reads live kernel, sysfs and service manager facts
that only reflect the catalog after the changes took effect, which for some
resources means after a reboot. Neither pass mutates anything.
"""

import logging
import re

from tunectl.core.catalog import Catalog, unmet_precondition
from tunectl.core.edits import (
    array_items,
    cmdline_tokens,
    find_mount,
    find_value,
    option_tokens,
)
from tunectl.core.errors import SourceMissingError
from tunectl.core.facts import SystemFacts
from tunectl.core.inspector import Presence, StateInspector, SystemFact
from tunectl.managers.base import ServiceManager
from tunectl.models.resource import REBOOT_KINDS, Resource, ResourceKind, RuntimeCheck
from tunectl.models.verification import VerificationResult, VerificationStatus

logger = logging.getLogger(__name__)

PENDING_REBOOT = "pending reboot"

_SELECTED = re.compile(r"\[([^\]]+)\]")


def expected_value(resource: Resource) -> str:
    """Short description of a resource's desired state."""
    kind = resource.kind
    if kind == ResourceKind.FILE_COPY:
        name = resource.source.name if resource.source else "source"
        return f"identical to {name}"
    if kind in (ResourceKind.TEXT_PATCH, ResourceKind.ENV_VAR):
        return f"{resource.key}={resource.desired_text}"
    if kind == ResourceKind.KERNEL_PARAM:
        return f"{resource.desired_text} in {resource.key}"
    if kind == ResourceKind.INITRAMFS_HOOK:
        return f"{resource.desired_text} in {resource.key}"
    if kind == ResourceKind.MOUNT_OPTIONS:
        return f"{resource.key} with {resource.desired_text}"
    if kind == ResourceKind.PACKAGE_PRESENT:
        return "installed"
    if kind == ResourceKind.PACKAGE_ABSENT:
        return "not installed"
    if kind == ResourceKind.SERVICE_MASK:
        return "masked"
    return "enabled"


def actual_value(resource: Resource, fact: SystemFact) -> str:
    """Short description of a resource's current state."""
    if fact.presence == Presence.ABSENT and resource.kind.is_file:
        return "absent"
    text = fact.raw_value or ""
    key = resource.key or ""
    kind = resource.kind
    if kind == ResourceKind.FILE_COPY:
        return "identical" if fact.matches else "differs"
    if kind in (ResourceKind.TEXT_PATCH, ResourceKind.ENV_VAR):
        value = find_value(text, key)
        return "unset" if value is None else f"{key}={value}"
    if kind == ResourceKind.KERNEL_PARAM:
        tokens = option_tokens(text, key)
        return "unset" if tokens is None else " ".join(tokens)
    if kind == ResourceKind.INITRAMFS_HOOK:
        items = array_items(text, key)
        return "unset" if items is None else " ".join(items)
    if kind == ResourceKind.MOUNT_OPTIONS:
        entry, unsafe = find_mount(text, key)
        return unsafe or ",".join(entry.options if entry else [])
    return fact.raw_value or "unknown"


def runtime_matches(check: RuntimeCheck, actual: str) -> bool:
    """Compare a live value against a runtime check.

    Example:
        >>> check = RuntimeCheck("sched", "/sys/block/nvme0n1/queue/scheduler", "none", "selected")
        >>> runtime_matches(check, "[none] mq-deadline kyber")
        True
    """
    value = actual.strip()
    if check.match == "contains":
        return check.expected in value
    if check.match == "selected":
        selected = _SELECTED.search(value)
        return selected is not None and selected.group(1) == check.expected
    return value == check.expected


class Verifier:
    """Compares the catalog against the system without mutating it."""

    def __init__(
        self,
        catalog: Catalog,
        inspector: StateInspector,
        facts: SystemFacts,
        services: ServiceManager,
        *,
        reboot_pending: bool = False,
    ) -> None:
        """Initialize the verifier.

        Args:
            catalog: Desired state.
            inspector: Reads configuration-level state.
            facts: Evaluates preconditions and reads live files.
            services: Queries unit runtime state.
            reboot_pending: Changes from this boot still await a reboot.
        """
        self._catalog = catalog
        self._inspector = inspector
        self._facts = facts
        self._services = services
        self._reboot_pending = reboot_pending

    # =========================================================================
    # Static pass
    # =========================================================================

    def verify_static(self) -> list[VerificationResult]:
        """Verify every resource at configuration-file level."""
        results: list[VerificationResult] = []
        for resource in self._catalog:
            results.extend(self._verify_resource(resource))
        logger.info(
            "Static verification: %d check(s), %d failed",
            len(results),
            sum(1 for r in results if r.failed),
        )
        return results

    def _verify_resource(self, resource: Resource) -> list[VerificationResult]:
        expected = expected_value(resource)
        unmet = unmet_precondition(resource.preconditions, self._facts)
        if unmet is not None:
            return [self._result(resource.id, expected, "-", VerificationStatus.SKIPPED, unmet)]

        try:
            fact = self._inspector.inspect(resource)
        except SourceMissingError as e:
            return [self._result(resource.id, expected, "-", VerificationStatus.FAIL, str(e))]

        if fact.is_unknown:
            return [
                self._result(resource.id, expected, "unknown", VerificationStatus.INFO, "state unknown")
            ]

        actual = actual_value(resource, fact)
        if not fact.matches and fact.unsafe is not None:
            return [
                self._result(resource.id, expected, actual, VerificationStatus.SKIPPED, fact.unsafe)
            ]

        status = VerificationStatus.PASS if fact.matches else VerificationStatus.FAIL
        results = [self._result(resource.id, expected, actual, status)]
        results.extend(self._verify_expectations(resource, fact))
        return results

    def _verify_expectations(
        self, resource: Resource, fact: SystemFact
    ) -> list[VerificationResult]:
        """Check the substrings a FILE_COPY target must contain."""
        results: list[VerificationResult] = []
        for substring in resource.expect:
            check_id = f"{resource.id}:{substring}"
            if fact.presence == Presence.ABSENT:
                status, actual = VerificationStatus.FAIL, "file absent"
            elif substring in (fact.raw_value or ""):
                status, actual = VerificationStatus.PASS, "present"
            else:
                status, actual = VerificationStatus.FAIL, "missing"
            results.append(self._result(check_id, substring, actual, status))
        return results

    # =========================================================================
    # Runtime pass
    # =========================================================================

    def verify_runtime(self) -> list[VerificationResult]:
        """Verify live kernel, service and hardware facts."""
        results: list[VerificationResult] = []
        results.extend(self._verify_cmdline())
        results.extend(self._verify_services())
        results.extend(self._verify_check(check) for check in self._catalog.runtime_checks)
        logger.info(
            "Runtime verification: %d check(s), %d failed",
            len(results),
            sum(1 for r in results if r.failed),
        )
        return results

    def _mismatch(self, requires_reboot: bool) -> tuple[VerificationStatus, str | None]:
        if requires_reboot and self._reboot_pending:
            return VerificationStatus.INFO, PENDING_REBOOT
        return VerificationStatus.FAIL, None

    def _verify_cmdline(self) -> list[VerificationResult]:
        params = [
            r
            for r in self._catalog.resources_for(ResourceKind.KERNEL_PARAM)
            if unmet_precondition(r.preconditions, self._facts) is None
        ]
        if not params:
            return []

        cmdline = self._facts.read_text("/proc/cmdline")
        results: list[VerificationResult] = []
        for resource in params:
            token = resource.desired_text
            if cmdline is None:
                results.append(
                    self._result(
                        resource.id, token, "-", VerificationStatus.INFO, "cannot read /proc/cmdline"
                    )
                )
                continue
            if token in cmdline_tokens(cmdline):
                results.append(self._result(resource.id, token, "active", VerificationStatus.PASS))
                continue
            reboot = resource.requires_reboot or resource.kind in REBOOT_KINDS
            status, detail = self._mismatch(reboot)
            results.append(self._result(resource.id, token, "not in cmdline", status, detail))
        return results

    def _verify_services(self) -> list[VerificationResult]:
        results: list[VerificationResult] = []
        for resource in self._catalog:
            if not resource.kind.is_service:
                continue
            if unmet_precondition(resource.preconditions, self._facts) is not None:
                continue

            masked = resource.kind == ResourceKind.SERVICE_MASK
            expected = "inactive" if masked else "active"
            actual = self._services.active_state(resource.target)
            if actual is None:
                results.append(
                    self._result(
                        resource.id,
                        expected,
                        "unknown",
                        VerificationStatus.INFO,
                        "service manager unavailable",
                    )
                )
                continue

            holds = actual != "active" if masked else actual == "active"
            if holds:
                results.append(self._result(resource.id, expected, actual, VerificationStatus.PASS))
            else:
                status, detail = self._mismatch(resource.requires_reboot)
                results.append(self._result(resource.id, expected, actual, status, detail))
        return results

    def _verify_check(self, check: RuntimeCheck) -> VerificationResult:
        unmet = unmet_precondition(check.preconditions, self._facts)
        if unmet is not None:
            return self._result(check.id, check.expected, "-", VerificationStatus.SKIPPED, unmet)

        actual = self._facts.read_text(check.path)
        if actual is not None and runtime_matches(check, actual):
            return self._result(check.id, check.expected, actual.strip(), VerificationStatus.PASS)

        status, detail = self._mismatch(check.requires_reboot)
        shown = "unreadable" if actual is None else actual.strip()
        return self._result(check.id, check.expected, shown, status, detail)

    @staticmethod
    def _result(
        check_id: str,
        expected: str,
        actual: str,
        status: VerificationStatus,
        detail: str | None = None,
    ) -> VerificationResult:
        return VerificationResult(
            check_id=check_id,
            expected=expected,
            actual=actual,
            status=status,
            detail=detail,
        )
