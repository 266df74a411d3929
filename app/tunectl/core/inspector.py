"""State inspection.

The StateInspector reads the current truth for a resource without
mutating anything. Query failures surface as ``Presence.UNKNOWN`` so
callers never mistake "could not tell" for "absent".
"""

import hashlib
import logging
from dataclasses import dataclass
from enum import Enum

from tunectl.core.edits import array_items, find_mount, text_matches
from tunectl.core.errors import SourceMissingError
from tunectl.managers.base import PackageManager, ServiceManager, ServiceState
from tunectl.models.resource import Resource, ResourceKind

logger = logging.getLogger(__name__)


class Presence(str, Enum):
    """Whether a resource's target currently exists."""

    PRESENT = "present"
    ABSENT = "absent"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class SystemFact:
    """Current state of one resource.

    Attributes:
        resource_id: Id of the inspected resource.
        presence: Whether the target exists (file, key, unit, package).
        matches: Whether the target already equals the desired state.
        raw_value: Current content or value, for diffs and reports.
        unsafe: Reason the target must not be edited automatically.
    """

    resource_id: str
    presence: Presence
    matches: bool
    raw_value: str | None = None
    unsafe: str | None = None

    @property
    def is_unknown(self) -> bool:
        """Check if the state could not be determined."""
        return self.presence == Presence.UNKNOWN


def read_source(resource: Resource) -> bytes:
    """Read the desired bytes of a FILE_COPY resource.

    Raises:
        SourceMissingError: If the source file is absent or unreadable.
    """
    if resource.source is None:
        raise SourceMissingError(f"{resource.id}: no source declared")
    try:
        return resource.source.read_bytes()
    except FileNotFoundError as e:
        raise SourceMissingError(f"source file missing: {resource.source}") from e
    except OSError as e:
        raise SourceMissingError(f"cannot read source {resource.source}: {e}") from e


def decode(data: bytes) -> str:
    """Decode file bytes for diffing."""
    return data.decode("utf-8", errors="replace")


class StateInspector:
    """Reads current system state per resource kind."""

    def __init__(self, packages: PackageManager, services: ServiceManager) -> None:
        """Initialize the inspector.

        Args:
            packages: Package manager for presence queries.
            services: Service manager for enablement queries.
        """
        self._packages = packages
        self._services = services

    def inspect(self, resource: Resource) -> SystemFact:
        """Inspect one resource.

        Args:
            resource: The resource to inspect.

        Returns:
            SystemFact describing the current state.

        Raises:
            SourceMissingError: If a FILE_COPY source cannot be read.
        """
        kind = resource.kind
        if kind == ResourceKind.FILE_COPY:
            return self._inspect_file_copy(resource)
        if kind.is_file:
            return self._inspect_text(resource)
        if kind.is_package:
            return self._inspect_package(resource)
        if kind.is_service:
            return self._inspect_service(resource)
        msg = f"Unhandled resource kind: {kind}"
        raise ValueError(msg)

    def _read_target(self, resource: Resource) -> bytes | None | Exception:
        try:
            return resource.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Cannot read %s: %s", resource.target, e)
            return e

    def _inspect_file_copy(self, resource: Resource) -> SystemFact:
        desired = read_source(resource)
        current = self._read_target(resource)

        if isinstance(current, Exception):
            return SystemFact(resource.id, Presence.UNKNOWN, matches=False)
        if current is None:
            return SystemFact(resource.id, Presence.ABSENT, matches=False)

        matches = hashlib.sha256(current).digest() == hashlib.sha256(desired).digest()
        return SystemFact(
            resource.id,
            Presence.PRESENT,
            matches=matches,
            raw_value=decode(current),
        )

    def _inspect_text(self, resource: Resource) -> SystemFact:
        current = self._read_target(resource)

        if isinstance(current, Exception):
            return SystemFact(resource.id, Presence.UNKNOWN, matches=False)
        if current is None:
            unsafe = None
            if resource.kind in (ResourceKind.MOUNT_OPTIONS, ResourceKind.INITRAMFS_HOOK):
                unsafe = f"{resource.target} does not exist"
            return SystemFact(resource.id, Presence.ABSENT, matches=False, unsafe=unsafe)

        text = decode(current)
        return SystemFact(
            resource.id,
            Presence.PRESENT,
            matches=text_matches(resource, text),
            raw_value=text,
            unsafe=self._unsafe_reason(resource, text),
        )

    def _unsafe_reason(self, resource: Resource, text: str) -> str | None:
        """Reason a present file must not be edited automatically."""
        if resource.kind == ResourceKind.MOUNT_OPTIONS:
            _, unsafe = find_mount(text, resource.key or "")
            return unsafe
        if resource.kind == ResourceKind.INITRAMFS_HOOK:
            if array_items(text, resource.key or "") is None:
                return f"no single-line {resource.key}=(...) array in {resource.target}"
        return None

    def _inspect_package(self, resource: Resource) -> SystemFact:
        installed = self._packages.is_installed(resource.target)
        if installed is None:
            return SystemFact(resource.id, Presence.UNKNOWN, matches=False)

        presence = Presence.PRESENT if installed else Presence.ABSENT
        wanted = resource.kind == ResourceKind.PACKAGE_PRESENT
        return SystemFact(
            resource.id,
            presence,
            matches=installed == wanted,
            raw_value="installed" if installed else "not installed",
        )

    def _inspect_service(self, resource: Resource) -> SystemFact:
        state = self._services.enablement_state(resource.target)
        if state is None:
            return SystemFact(resource.id, Presence.UNKNOWN, matches=False)

        if resource.kind == ResourceKind.SERVICE_MASK:
            matches = state == ServiceState.MASKED
        else:
            matches = state in (ServiceState.ENABLED, ServiceState.INDIRECT)

        presence = Presence.ABSENT if state == ServiceState.UNKNOWN else Presence.PRESENT
        return SystemFact(resource.id, presence, matches=matches, raw_value=state.value)
