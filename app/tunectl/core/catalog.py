"""Resource catalog.

The catalog is the immutable desired-state description. It is loaded once
at startup from a TOML file and passed explicitly to every component.
"""

import tomllib
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from tunectl.core.facts import SystemFacts
from tunectl.models.catalog import (
    CatalogFile,
    EntryBase,
    FileItem,
    HookItem,
    KernelParamItem,
    KeyValueItem,
    MountItem,
    PackageItem,
    RuntimeItem,
    ServiceItem,
)
from tunectl.models.resource import (
    Precondition,
    Resource,
    ResourceKind,
    RuntimeCheck,
    Trigger,
)


class CatalogError(Exception):
    """Base exception for catalog-related errors."""


class CatalogNotFoundError(CatalogError):
    """Raised when the catalog file is not found."""


class CatalogParseError(CatalogError):
    """Raised when the catalog file cannot be parsed."""


class CatalogValidationError(CatalogError):
    """Raised when catalog content is invalid."""


@dataclass(frozen=True, slots=True)
class Catalog:
    """Immutable set of desired resources and runtime checks.

    Attributes:
        name: Catalog name from the meta section.
        resources: Resources in declaration order.
        runtime_checks: Live facts verified by ``verify-runtime``.
    """

    name: str
    resources: tuple[Resource, ...]
    runtime_checks: tuple[RuntimeCheck, ...] = ()

    def __post_init__(self) -> None:
        """Validate that resource ids are unique."""
        ids = [r.id for r in self.resources] + [c.id for c in self.runtime_checks]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            msg = f"Duplicate ids in catalog: {duplicates}"
            raise ValueError(msg)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self.resources)

    def __len__(self) -> int:
        return len(self.resources)

    def resources_for(self, kind: ResourceKind) -> tuple[Resource, ...]:
        """Resources of one kind, in declaration order."""
        return tuple(r for r in self.resources if r.kind == kind)

    def get(self, resource_id: str) -> Resource | None:
        """Find a resource by id."""
        for resource in self.resources:
            if resource.id == resource_id:
                return resource
        return None


def unmet_precondition(
    preconditions: tuple[Precondition, ...],
    facts: SystemFacts,
) -> str | None:
    """Evaluate preconditions in order and report the first unmet one.

    Args:
        preconditions: Ordered predicates.
        facts: System facts to evaluate against.

    Returns:
        Reason for the first predicate that does not hold, or None if all
        hold. Undeterminable predicates count as unmet.
    """
    for precondition in preconditions:
        result = facts.evaluate(precondition)
        if result is None:
            return f"cannot determine {precondition.describe()}"
        if not result:
            return precondition.unmet_reason
    return None


def is_in_scope(resource: Resource, facts: SystemFacts) -> bool:
    """Check whether a resource's preconditions all hold on this system."""
    return unmet_precondition(resource.preconditions, facts) is None


# =============================================================================
# Loading
# =============================================================================


def _preconditions(entry: EntryBase) -> tuple[Precondition, ...]:
    return tuple(Precondition(kind=p.kind, argument=p.argument) for p in entry.preconditions)


def _triggers(entry: object) -> frozenset[Trigger]:
    return frozenset(getattr(entry, "triggers", ()))


def _package(entry: PackageItem, kind: ResourceKind) -> Resource:
    return Resource(
        id=entry.id,
        kind=kind,
        target=entry.name,
        preconditions=_preconditions(entry),
        requires_sudo=True,
        requires_reboot=entry.requires_reboot,
        description=entry.description,
    )


def _service(entry: ServiceItem, kind: ResourceKind) -> Resource:
    return Resource(
        id=entry.id,
        kind=kind,
        target=entry.unit,
        preconditions=_preconditions(entry),
        requires_sudo=True,
        requires_reboot=entry.requires_reboot,
        description=entry.description,
    )


def _file(entry: FileItem, source_dir: Path) -> Resource:
    return Resource(
        id=entry.id,
        kind=ResourceKind.FILE_COPY,
        target=entry.target,
        source=source_dir / entry.source,
        preconditions=_preconditions(entry),
        requires_sudo=entry.requires_sudo,
        requires_reboot=entry.requires_reboot,
        expect=tuple(entry.expect),
        triggers=_triggers(entry),
        description=entry.description,
    )


def _kernel_param(entry: KernelParamItem) -> Resource:
    return Resource(
        id=entry.id,
        kind=ResourceKind.KERNEL_PARAM,
        target=entry.config,
        key=entry.key,
        desired=entry.token,
        preconditions=_preconditions(entry),
        requires_sudo=entry.requires_sudo,
        requires_reboot=entry.requires_reboot,
        triggers=_triggers(entry),
        description=entry.description,
    )


def _key_value(entry: KeyValueItem, kind: ResourceKind) -> Resource:
    return Resource(
        id=entry.id,
        kind=kind,
        target=entry.target,
        key=entry.key,
        desired=entry.value,
        preconditions=_preconditions(entry),
        requires_sudo=entry.requires_sudo,
        requires_reboot=entry.requires_reboot,
        triggers=_triggers(entry),
        description=entry.description,
    )


def _mount(entry: MountItem) -> Resource:
    return Resource(
        id=entry.id,
        kind=ResourceKind.MOUNT_OPTIONS,
        target=entry.target,
        key=entry.mount_point,
        desired=",".join(entry.options),
        preconditions=_preconditions(entry),
        requires_sudo=entry.requires_sudo,
        requires_reboot=entry.requires_reboot,
        triggers=_triggers(entry),
        description=entry.description,
    )


def _hook(entry: HookItem) -> Resource:
    return Resource(
        id=entry.id,
        kind=ResourceKind.INITRAMFS_HOOK,
        target=entry.target,
        key=entry.key,
        desired=entry.hook,
        anchor=entry.before,
        confirm=entry.confirm,
        preconditions=_preconditions(entry),
        requires_sudo=entry.requires_sudo,
        requires_reboot=entry.requires_reboot,
        triggers=_triggers(entry),
        description=entry.description,
    )


def _runtime(entry: RuntimeItem) -> RuntimeCheck:
    return RuntimeCheck(
        id=entry.id,
        path=entry.path,
        expected=entry.expected,
        match=entry.match,
        preconditions=_preconditions(entry),
        requires_reboot=entry.requires_reboot,
    )


def build_catalog(data: CatalogFile, source_dir: Path) -> Catalog:
    """Convert a validated catalog file into an immutable Catalog.

    Args:
        data: Validated catalog file model.
        source_dir: Directory that file sources are resolved against.

    Returns:
        Catalog with resources in declaration order per section.
    """
    resources: list[Resource] = []
    resources.extend(_package(p, ResourceKind.PACKAGE_PRESENT) for p in data.packages.present)
    resources.extend(_file(f, source_dir) for f in data.files)
    resources.extend(_kernel_param(k) for k in data.kernel_params)
    resources.extend(_key_value(e, ResourceKind.ENV_VAR) for e in data.env)
    resources.extend(_key_value(t, ResourceKind.TEXT_PATCH) for t in data.text_patches)
    resources.extend(_mount(m) for m in data.mounts)
    resources.extend(_hook(h) for h in data.initramfs_hooks)
    resources.extend(_service(s, ResourceKind.SERVICE_ENABLE) for s in data.services.enable)
    resources.extend(_package(p, ResourceKind.PACKAGE_ABSENT) for p in data.packages.absent)
    resources.extend(_service(s, ResourceKind.SERVICE_MASK) for s in data.services.mask)

    return Catalog(
        name=data.meta.name,
        resources=tuple(resources),
        runtime_checks=tuple(_runtime(r) for r in data.runtime),
    )


def load_catalog(path: Path, source_dir: Path | None = None) -> Catalog:
    """Load and validate a catalog from a TOML file.

    Args:
        path: Path to the catalog file.
        source_dir: Directory for file sources. Defaults to ``files/`` next
            to the catalog.

    Returns:
        Validated, immutable Catalog.

    Raises:
        CatalogNotFoundError: If the catalog file doesn't exist.
        CatalogParseError: If the TOML syntax is invalid.
        CatalogValidationError: If the content doesn't match the schema.
    """
    if not path.exists():
        raise CatalogNotFoundError(f"Catalog not found: {path}")

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise CatalogParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise CatalogError(f"Failed to read catalog: {e}") from e

    try:
        model = CatalogFile.model_validate(data)
        return build_catalog(model, source_dir or path.parent / "files")
    except (ValidationError, ValueError) as e:
        raise CatalogValidationError(f"Invalid catalog content: {e}") from e
