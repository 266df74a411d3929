"""System facts used to evaluate resource preconditions.

SystemFacts reads hardware and disk layout facts lazily and caches them
for the lifetime of one run. All reads are relative to ``root`` so tests
can point it at a synthetic tree.
"""

import logging
from functools import cached_property
from pathlib import Path

from tunectl.core.runner import CommandRunner
from tunectl.managers.base import PackageManager
from tunectl.models.resource import Precondition, PreconditionKind
from tunectl.utils.shell import command_exists

logger = logging.getLogger(__name__)


def active_crypttab_entries(text: str) -> list[str]:
    """Names of non-comment crypttab entries."""
    names: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            names.append(stripped.split()[0])
    return names


class SystemFacts:
    """Lazily evaluated, cached facts about the running system.

    Attributes:
        root: Filesystem root used for /etc, /proc and /sys reads.
    """

    def __init__(
        self,
        packages: PackageManager,
        runner: CommandRunner,
        root: Path = Path("/"),
    ) -> None:
        """Initialize SystemFacts.

        Args:
            packages: Package manager used for package preconditions.
            runner: Command boundary for read-only queries.
            root: Filesystem root. Defaults to ``/``.
        """
        self._packages = packages
        self._runner = runner
        self.root = root
        self._package_cache: dict[str, bool | None] = {}

    def path(self, absolute: str) -> Path:
        """Resolve an absolute system path against ``root``."""
        return self.root / absolute.lstrip("/")

    def read_text(self, absolute: str) -> str | None:
        """Read a system file, or None if it doesn't exist or is unreadable."""
        try:
            return self.path(absolute).read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.debug("Cannot read %s: %s", absolute, e)
            return None

    @cached_property
    def luks_root(self) -> bool:
        """True if /etc/crypttab has at least one active entry."""
        text = self.read_text("/etc/crypttab")
        return bool(text and active_crypttab_entries(text))

    @cached_property
    def lvm_present(self) -> bool | None:
        """True if any block device is an LVM logical volume.

        None when lsblk is unavailable or fails.
        """
        result = self._runner.query(["lsblk", "-rno", "TYPE"])
        if not result.success:
            logger.warning("Cannot list block devices: %s", result.output)
            return None
        return "lvm" in result.stdout.split()

    @cached_property
    def btrfs_subvol_root(self) -> bool:
        """True if the fstab root entry mounts a btrfs subvolume."""
        text = self.read_text("/etc/fstab") or ""
        for line in text.splitlines():
            fields = line.split()
            if len(fields) >= 4 and not fields[0].startswith("#") and fields[1] == "/":
                if "subvol=" in fields[3] or "subvolid=" in fields[3]:
                    return True
        return False

    @cached_property
    def pci_vendors(self) -> frozenset[str]:
        """Lower-case PCI vendor ids (without ``0x``) of present devices."""
        devices = self.path("/sys/bus/pci/devices")
        vendors: set[str] = set()
        if not devices.is_dir():
            return frozenset()
        for vendor_file in devices.glob("*/vendor"):
            try:
                vendors.add(vendor_file.read_text().strip().lower().removeprefix("0x"))
            except OSError:
                continue
        return frozenset(vendors)

    def package_installed(self, name: str) -> bool | None:
        """Check (and cache) whether a package is installed."""
        if name not in self._package_cache:
            self._package_cache[name] = self._packages.is_installed(name)
        return self._package_cache[name]

    def evaluate(self, precondition: Precondition) -> bool | None:
        """Evaluate one precondition.

        Args:
            precondition: The predicate to evaluate.

        Returns:
            True if it holds, False if not, None if it cannot be determined.
        """
        kind = precondition.kind
        arg = precondition.argument or ""

        if kind == PreconditionKind.PACKAGE_INSTALLED:
            return self.package_installed(arg)
        if kind == PreconditionKind.PACKAGE_MISSING:
            installed = self.package_installed(arg)
            return None if installed is None else not installed
        if kind == PreconditionKind.PATH_EXISTS:
            return self.path(arg).exists()
        if kind == PreconditionKind.PATH_MISSING:
            return not self.path(arg).exists()
        if kind == PreconditionKind.COMMAND_AVAILABLE:
            return command_exists(arg)
        if kind == PreconditionKind.LUKS_ROOT:
            return self.luks_root
        if kind == PreconditionKind.NO_LUKS_ROOT:
            return not self.luks_root
        if kind == PreconditionKind.NO_LVM:
            lvm = self.lvm_present
            return None if lvm is None else not lvm
        if kind == PreconditionKind.NOT_BTRFS_SUBVOL_ROOT:
            return not self.btrfs_subvol_root
        if kind == PreconditionKind.PCI_VENDOR:
            return arg.lower().removeprefix("0x") in self.pci_vendors
        msg = f"Unhandled precondition kind: {kind}"
        raise ValueError(msg)
