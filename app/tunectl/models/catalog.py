"""Catalog file models.

This module defines the Pydantic models representing the catalog.toml
structure that describes the desired system state. The validated model is
converted into immutable Resource values by ``tunectl.core.catalog``.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tunectl.models.resource import PreconditionKind, Trigger

MatchMode = Literal["equals", "contains", "selected"]


class PreconditionEntry(BaseModel):
    """A precondition as written in the catalog file."""

    model_config = ConfigDict(extra="forbid")

    kind: Annotated[PreconditionKind, Field(description="Predicate to evaluate")]
    argument: Annotated[str | None, Field(description="Predicate argument")] = None


class EntryBase(BaseModel):
    """Fields shared by all resource entries.

    Attributes:
        id: Stable resource id.
        preconditions: Predicates that must hold before the resource is touched.
        requires_reboot: Change only becomes active after a reboot.
        description: Optional note shown in listings.
    """

    model_config = ConfigDict(extra="forbid")

    id: Annotated[str, Field(min_length=1, description="Stable resource id")]
    preconditions: Annotated[
        list[PreconditionEntry],
        Field(default_factory=list, description="Gating predicates"),
    ]
    requires_reboot: Annotated[bool, Field(description="Needs reboot to take effect")] = False
    description: Annotated[str | None, Field(description="Free-form note")] = None


class SystemEntryBase(EntryBase):
    """Entry that changes root-owned state."""

    requires_sudo: Annotated[bool, Field(description="Needs root privileges")] = True
    triggers: Annotated[
        list[Trigger],
        Field(default_factory=list, description="Collaborator calls after change"),
    ]


class PackageItem(EntryBase):
    """Package that must be installed or absent."""

    name: Annotated[str, Field(min_length=1, description="Package name")]


class PackageSection(BaseModel):
    """Packages organized by desired presence."""

    model_config = ConfigDict(extra="forbid")

    present: Annotated[list[PackageItem], Field(default_factory=list)]
    absent: Annotated[list[PackageItem], Field(default_factory=list)]

    @model_validator(mode="after")
    def validate_no_conflicts(self) -> "PackageSection":
        """Validate that no package is both present and absent."""
        conflicts = {p.name for p in self.present} & {p.name for p in self.absent}
        if conflicts:
            msg = f"Packages cannot be both present and absent: {sorted(conflicts)}"
            raise ValueError(msg)
        return self


class ServiceItem(EntryBase):
    """Unit that must be enabled or masked."""

    unit: Annotated[str, Field(min_length=1, description="systemd unit name")]


class ServiceSection(BaseModel):
    """Services organized by desired enablement."""

    model_config = ConfigDict(extra="forbid")

    enable: Annotated[list[ServiceItem], Field(default_factory=list)]
    mask: Annotated[list[ServiceItem], Field(default_factory=list)]


class FileItem(SystemEntryBase):
    """File copied verbatim from the source tree."""

    source: Annotated[str, Field(min_length=1, description="Path relative to source dir")]
    target: Annotated[str, Field(min_length=1, description="Absolute target path")]
    expect: Annotated[
        list[str],
        Field(default_factory=list, description="Substrings verified in the target"),
    ]


class KernelParamItem(SystemEntryBase):
    """Kernel command line token in the boot loader manager's option string."""

    token: Annotated[str, Field(min_length=1, description="Literal cmdline token")]
    config: Annotated[str, Field(description="File holding the option string")] = (
        "/etc/sdboot-manage.conf"
    )
    key: Annotated[str, Field(description="Variable holding the options")] = "LINUX_OPTIONS"
    requires_reboot: bool = True


class KeyValueItem(SystemEntryBase):
    """One ``KEY=value`` line inside a file."""

    target: Annotated[str, Field(min_length=1, description="File to patch")]
    key: Annotated[str, Field(min_length=1, description="Variable name")]
    value: Annotated[str, Field(description="Desired value")]


class EnvItem(KeyValueItem):
    """Environment variable; defaults to /etc/environment."""

    target: Annotated[str, Field(min_length=1, description="Environment file")] = (
        "/etc/environment"
    )


class MountItem(SystemEntryBase):
    """Options that an fstab entry must carry."""

    target: Annotated[str, Field(description="fstab path")] = "/etc/fstab"
    mount_point: Annotated[str, Field(min_length=1, description="Mount point")]
    options: Annotated[list[str], Field(min_length=1, description="Required options")]


class HookItem(SystemEntryBase):
    """One hook inside the initramfs ``HOOKS=(...)`` array."""

    target: Annotated[str, Field(description="mkinitcpio config")] = "/etc/mkinitcpio.conf"
    key: Annotated[str, Field(description="Array variable")] = "HOOKS"
    hook: Annotated[str, Field(min_length=1, description="Hook name")]
    before: Annotated[str | None, Field(description="Insert before this hook")] = None
    confirm: Annotated[bool, Field(description="Require operator confirmation")] = False
    requires_reboot: bool = True


class RuntimeItem(EntryBase):
    """Live kernel or hardware fact checked by ``verify-runtime``."""

    path: Annotated[str, Field(min_length=1, description="File under /sys or /proc")]
    expected: Annotated[str, Field(description="Expected value")]
    match: Annotated[MatchMode, Field(description="Comparison mode")] = "equals"
    requires_reboot: bool = True


class CatalogMeta(BaseModel):
    """Metadata section of the catalog."""

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, Field(description="Catalog name")] = "default"
    version: Annotated[str, Field(description="Catalog schema version")] = "1.0"
    description: Annotated[str | None, Field(description="What this catalog tunes")] = None


class CatalogFile(BaseModel):
    """Complete catalog file.

    Every entry across all sections must carry a distinct id.
    """

    model_config = ConfigDict(extra="forbid")

    meta: Annotated[CatalogMeta, Field(default_factory=CatalogMeta)]
    packages: Annotated[PackageSection, Field(default_factory=PackageSection)]
    files: Annotated[list[FileItem], Field(default_factory=list)]
    kernel_params: Annotated[list[KernelParamItem], Field(default_factory=list)]
    env: Annotated[list[EnvItem], Field(default_factory=list)]
    text_patches: Annotated[list[KeyValueItem], Field(default_factory=list)]
    mounts: Annotated[list[MountItem], Field(default_factory=list)]
    initramfs_hooks: Annotated[list[HookItem], Field(default_factory=list)]
    services: Annotated[ServiceSection, Field(default_factory=ServiceSection)]
    runtime: Annotated[list[RuntimeItem], Field(default_factory=list)]

    def all_ids(self) -> list[str]:
        """Ids of all entries in declaration order."""
        entries: list[EntryBase] = [
            *self.packages.present,
            *self.files,
            *self.kernel_params,
            *self.env,
            *self.text_patches,
            *self.mounts,
            *self.initramfs_hooks,
            *self.services.enable,
            *self.packages.absent,
            *self.services.mask,
            *self.runtime,
        ]
        return [e.id for e in entries]

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "CatalogFile":
        """Validate that ids are unique within the catalog."""
        seen: set[str] = set()
        duplicates: set[str] = set()
        for entry_id in self.all_ids():
            if entry_id in seen:
                duplicates.add(entry_id)
            seen.add(entry_id)
        if duplicates:
            msg = f"Duplicate ids in catalog: {sorted(duplicates)}"
            raise ValueError(msg)
        return self
