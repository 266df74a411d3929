"""Resource models for declarative system state.

A Resource is the unit of reconciliation: one desired piece of system
configuration (a file, a kernel parameter, a service state, a package).
Preconditions are tagged data evaluated uniformly by the catalog, never
special-cased by resource id.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class ResourceKind(str, Enum):
    """Kind of a catalog resource.

    Attributes:
        FILE_COPY: Copy source bytes verbatim to a target path.
        KERNEL_PARAM: One token inside the configured kernel option string.
        ENV_VAR: One ``KEY=value`` line in an environment file.
        SERVICE_MASK: Unit must be masked.
        SERVICE_ENABLE: Unit must be enabled.
        PACKAGE_PRESENT: Package must be installed.
        PACKAGE_ABSENT: Package must not be installed.
        TEXT_PATCH: One ``KEY=value`` line inside a multi-key file.
        MOUNT_OPTIONS: Options that an fstab entry must carry.
        INITRAMFS_HOOK: One hook inside the ``HOOKS=(...)`` array.
    """

    FILE_COPY = "file_copy"
    KERNEL_PARAM = "kernel_param"
    ENV_VAR = "env_var"
    SERVICE_MASK = "service_mask"
    SERVICE_ENABLE = "service_enable"
    PACKAGE_PRESENT = "package_present"
    PACKAGE_ABSENT = "package_absent"
    TEXT_PATCH = "text_patch"
    MOUNT_OPTIONS = "mount_options"
    INITRAMFS_HOOK = "initramfs_hook"

    @property
    def is_file(self) -> bool:
        """Check if this kind is reconciled by rewriting a file."""
        return self in FILE_KINDS

    @property
    def is_package(self) -> bool:
        """Check if this kind is reconciled by the package manager."""
        return self in (ResourceKind.PACKAGE_PRESENT, ResourceKind.PACKAGE_ABSENT)

    @property
    def is_service(self) -> bool:
        """Check if this kind is reconciled by the service manager."""
        return self in (ResourceKind.SERVICE_MASK, ResourceKind.SERVICE_ENABLE)


FILE_KINDS = frozenset(
    {
        ResourceKind.FILE_COPY,
        ResourceKind.KERNEL_PARAM,
        ResourceKind.ENV_VAR,
        ResourceKind.TEXT_PATCH,
        ResourceKind.MOUNT_OPTIONS,
        ResourceKind.INITRAMFS_HOOK,
    }
)

# Kinds that only take effect after the next boot
REBOOT_KINDS = frozenset({ResourceKind.KERNEL_PARAM, ResourceKind.INITRAMFS_HOOK})


class Trigger(str, Enum):
    """Collaborator call to run after a resource was changed.

    Attributes:
        UDEV_RELOAD: Reload udev rules and trigger devices.
        INITRAMFS: Rebuild all initramfs images.
        BOOTLOADER: Regenerate boot loader entries.
        DAEMON_RELOAD: Reload systemd unit files before toggling services.
    """

    UDEV_RELOAD = "udev_reload"
    INITRAMFS = "initramfs"
    BOOTLOADER = "bootloader"
    DAEMON_RELOAD = "daemon_reload"


class PreconditionKind(str, Enum):
    """Predicate over system facts that gates a resource."""

    PACKAGE_INSTALLED = "package_installed"
    PACKAGE_MISSING = "package_missing"
    PATH_EXISTS = "path_exists"
    PATH_MISSING = "path_missing"
    COMMAND_AVAILABLE = "command_available"
    LUKS_ROOT = "luks_root"
    NO_LUKS_ROOT = "no_luks_root"
    NO_LVM = "no_lvm"
    NOT_BTRFS_SUBVOL_ROOT = "not_btrfs_subvol_root"
    PCI_VENDOR = "pci_vendor"


# Kinds whose predicate needs an argument
_ARGUMENT_KINDS = frozenset(
    {
        PreconditionKind.PACKAGE_INSTALLED,
        PreconditionKind.PACKAGE_MISSING,
        PreconditionKind.PATH_EXISTS,
        PreconditionKind.PATH_MISSING,
        PreconditionKind.COMMAND_AVAILABLE,
        PreconditionKind.PCI_VENDOR,
    }
)


@dataclass(frozen=True, slots=True)
class Precondition:
    """A single predicate that must hold before a resource is touched.

    Attributes:
        kind: Which predicate to evaluate.
        argument: Package name, path, command or PCI vendor id, depending
            on the kind. None for argument-less kinds.
    """

    kind: PreconditionKind
    argument: str | None = None

    def __post_init__(self) -> None:
        """Validate that argument-taking kinds received an argument."""
        if self.kind in _ARGUMENT_KINDS and not self.argument:
            msg = f"Precondition {self.kind.value} requires an argument"
            raise ValueError(msg)

    @property
    def unmet_reason(self) -> str:
        """Human-readable reason recorded when this predicate does not hold."""
        arg = self.argument
        reasons = {
            PreconditionKind.PACKAGE_INSTALLED: f"package '{arg}' not installed",
            PreconditionKind.PACKAGE_MISSING: f"package '{arg}' installed",
            PreconditionKind.PATH_EXISTS: f"path {arg} missing",
            PreconditionKind.PATH_MISSING: f"path {arg} exists",
            PreconditionKind.COMMAND_AVAILABLE: f"command '{arg}' not available",
            PreconditionKind.LUKS_ROOT: "no LUKS root detected",
            PreconditionKind.NO_LUKS_ROOT: "LUKS root detected",
            PreconditionKind.NO_LVM: "LVM detected",
            PreconditionKind.NOT_BTRFS_SUBVOL_ROOT: "btrfs detected",
            PreconditionKind.PCI_VENDOR: f"no PCI device from vendor {arg}",
        }
        return reasons[self.kind]

    def describe(self) -> str:
        """Short label for tables, e.g. ``package_installed(iwd)``."""
        if self.argument is None:
            return self.kind.value
        return f"{self.kind.value}({self.argument})"


@dataclass(frozen=True, slots=True)
class Resource:
    """One declaratively desired piece of system configuration.

    Attributes:
        id: Stable key, unique within a catalog.
        kind: How the resource is inspected and applied.
        target: Path, unit name, or package name.
        desired: Token, value, hook name or comma-joined mount options.
            True for presence kinds; ignored for FILE_COPY (see ``source``).
        key: Variable holding the value (``KEY=`` line, option string,
            ``HOOKS``) or the mount point for MOUNT_OPTIONS.
        source: File holding the desired bytes of a FILE_COPY resource.
        preconditions: Ordered predicates that must all hold.
        requires_sudo: Target can only be changed with root privileges.
        requires_reboot: Change only becomes active after a reboot.
        confirm: Mutation needs explicit operator confirmation.
        anchor: Hook before which an INITRAMFS_HOOK is inserted.
        expect: Substrings the verifier looks for in a FILE_COPY target.
        triggers: Collaborator calls to run once the change is applied.
        description: Optional note shown in listings.
    """

    id: str
    kind: ResourceKind
    target: str
    desired: str | bool = True
    key: str | None = None
    source: Path | None = None
    preconditions: tuple[Precondition, ...] = ()
    requires_sudo: bool = False
    requires_reboot: bool = False
    confirm: bool = False
    anchor: str | None = None
    expect: tuple[str, ...] = ()
    triggers: frozenset[Trigger] = field(default_factory=frozenset)
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate resource data after initialization."""
        if not self.id:
            msg = "Resource id cannot be empty"
            raise ValueError(msg)
        if not self.target:
            msg = f"Resource {self.id}: target cannot be empty"
            raise ValueError(msg)
        if self.kind == ResourceKind.FILE_COPY and self.source is None:
            msg = f"Resource {self.id}: file_copy requires a source"
            raise ValueError(msg)
        if self.kind in _KEYED_KINDS and not self.key:
            msg = f"Resource {self.id}: {self.kind.value} requires a key"
            raise ValueError(msg)
        if self.kind in _KEYED_KINDS and not isinstance(self.desired, str):
            msg = f"Resource {self.id}: {self.kind.value} requires a string value"
            raise ValueError(msg)

    @property
    def path(self) -> Path:
        """Target as a filesystem path (file kinds only)."""
        return Path(self.target)

    @property
    def desired_text(self) -> str:
        """Desired value as a string (value kinds only)."""
        return str(self.desired)


_KEYED_KINDS = frozenset(
    {
        ResourceKind.TEXT_PATCH,
        ResourceKind.ENV_VAR,
        ResourceKind.KERNEL_PARAM,
        ResourceKind.MOUNT_OPTIONS,
        ResourceKind.INITRAMFS_HOOK,
    }
)


@dataclass(frozen=True, slots=True)
class RuntimeCheck:
    """A live kernel or hardware fact verified after the system rebooted.

    Attributes:
        id: Stable check id.
        path: File to read (usually under /sys or /proc).
        expected: Expected value.
        match: ``equals``, ``contains`` or ``selected`` (bracketed choice
            such as ``[none] mq-deadline``).
        preconditions: Predicates that must hold for the check to apply.
        requires_reboot: Mismatch is informational while a reboot is pending.
    """

    id: str
    path: str
    expected: str
    match: str = "equals"
    preconditions: tuple[Precondition, ...] = ()
    requires_reboot: bool = True

    def __post_init__(self) -> None:
        """Validate runtime check data after initialization."""
        if self.match not in ("equals", "contains", "selected"):
            msg = f"Runtime check {self.id}: unknown match mode '{self.match}'"
            raise ValueError(msg)
