"""Pytest configuration and shared fixtures.

This module contains in-memory collaborator fakes and factories used
across all test modules.
"""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
from tunectl.core.facts import SystemFacts
from tunectl.core.inspector import StateInspector
from tunectl.core.runner import CommandRunner
from tunectl.managers.base import PackageManager, ServiceManager, ServiceState
from tunectl.models.resource import Resource, ResourceKind
from tunectl.utils.shell import CommandResult


def _ok(*args: str) -> CommandResult:
    return CommandResult(stdout="", stderr="", returncode=0, args=args)


def _fail(*args: str) -> CommandResult:
    return CommandResult(stdout="", stderr="error: operation failed", returncode=1, args=args)


class FakePackageManager(PackageManager):
    """In-memory package manager."""

    def __init__(
        self,
        installed: set[str] | None = None,
        *,
        available: bool = True,
        fail: bool = False,
        dry_run: bool = False,
    ) -> None:
        super().__init__(CommandRunner(dry_run=dry_run))
        self.installed = set(installed or ())
        self.available = available
        self.fail = fail
        self.calls: list[tuple[str, list[str]]] = []

    def is_available(self) -> bool:
        return self.available

    def is_installed(self, name: str) -> bool | None:
        if not self.available:
            return None
        return name in self.installed

    def install(self, names: list[str]) -> CommandResult:
        self.calls.append(("install", names))
        if self.fail:
            return _fail("pacman", "-S", *names)
        if not self.runner.dry_run:
            self.installed.update(names)
        return _ok("pacman", "-S", *names)

    def remove(self, names: list[str]) -> CommandResult:
        self.calls.append(("remove", names))
        if self.fail:
            return _fail("pacman", "-Rns", *names)
        if not self.runner.dry_run:
            self.installed.difference_update(names)
        return _ok("pacman", "-Rns", *names)


class FakeServiceManager(ServiceManager):
    """In-memory service manager."""

    def __init__(
        self,
        states: dict[str, ServiceState] | None = None,
        active: dict[str, str] | None = None,
        *,
        available: bool = True,
        dry_run: bool = False,
    ) -> None:
        super().__init__(CommandRunner(dry_run=dry_run))
        self.states = dict(states or {})
        self.active = dict(active or {})
        self.available = available
        self.calls: list[tuple[str, list[str]]] = []

    def is_available(self) -> bool:
        return self.available

    def enablement_state(self, unit: str) -> ServiceState | None:
        if not self.available:
            return None
        return self.states.get(unit, ServiceState.UNKNOWN)

    def active_state(self, unit: str) -> str | None:
        if not self.available:
            return None
        return self.active.get(unit, "inactive")

    def mask(self, units: list[str]) -> CommandResult:
        self.calls.append(("mask", units))
        if not self.runner.dry_run:
            self.states.update(dict.fromkeys(units, ServiceState.MASKED))
            self.active.update(dict.fromkeys(units, "inactive"))
        return _ok("systemctl", "mask", "--now", *units)

    def enable(self, units: list[str]) -> CommandResult:
        self.calls.append(("enable", units))
        if not self.runner.dry_run:
            self.states.update(dict.fromkeys(units, ServiceState.ENABLED))
            self.active.update(dict.fromkeys(units, "active"))
        return _ok("systemctl", "enable", "--now", *units)

    def daemon_reload(self) -> CommandResult:
        self.calls.append(("daemon-reload", []))
        return _ok("systemctl", "daemon-reload")


@pytest.fixture
def packages() -> FakePackageManager:
    """Package manager with nothing installed."""
    return FakePackageManager()


@pytest.fixture
def services() -> FakeServiceManager:
    """Service manager with no known units."""
    return FakeServiceManager()


@pytest.fixture
def fake_packages() -> type[FakePackageManager]:
    """The FakePackageManager class, for tests that need custom state."""
    return FakePackageManager


@pytest.fixture
def fake_services() -> type[FakeServiceManager]:
    """The FakeServiceManager class, for tests that need custom state."""
    return FakeServiceManager


@pytest.fixture
def system_root(tmp_path: Path) -> Path:
    """Synthetic filesystem root with an empty /etc."""
    root = tmp_path / "root"
    (root / "etc").mkdir(parents=True)
    return root


@pytest.fixture
def facts(packages: FakePackageManager, system_root: Path) -> SystemFacts:
    """SystemFacts reading from the synthetic root."""
    return SystemFacts(packages, CommandRunner(), root=system_root)


@pytest.fixture
def inspector(packages: FakePackageManager, services: FakeServiceManager) -> StateInspector:
    """StateInspector over the fake collaborators."""
    return StateInspector(packages, services)


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Directory holding file_copy sources."""
    path = tmp_path / "files"
    path.mkdir()
    return path


@pytest.fixture
def make_resource() -> Callable[..., Resource]:
    """Factory for resources with test-friendly defaults (no sudo)."""

    def _make(id: str, kind: ResourceKind, target: str | Path, **kwargs: Any) -> Resource:
        return Resource(id=id, kind=kind, target=str(target), **kwargs)

    return _make


@pytest.fixture
def sample_catalog_toml() -> str:
    """A small catalog covering every section."""
    return """
[meta]
name = "test"

[[packages.present]]
id = "pkg-htop"
name = "htop"

[[packages.absent]]
id = "pkg-nano"
name = "nano"

[[files]]
id = "loader-conf"
source = "loader.conf"
target = "/boot/loader/loader.conf"
expect = ["default=@saved"]

[[kernel_params]]
id = "kparam-nowatchdog"
token = "nowatchdog"
triggers = ["bootloader"]

[[env]]
id = "env-editor"
key = "EDITOR"
value = "nvim"

[[text_patches]]
id = "makeflags"
target = "/etc/makepkg.conf"
key = "MAKEFLAGS"
value = "-j8"

[[mounts]]
id = "fstab-root"
mount_point = "/"
options = ["noatime"]
preconditions = [{ kind = "not_btrfs_subvol_root" }]

[[initramfs_hooks]]
id = "hook-sd-encrypt"
hook = "sd-encrypt"
before = "filesystems"
confirm = true
preconditions = [{ kind = "luks_root" }]

[[services.enable]]
id = "svc-fstrim"
unit = "fstrim.timer"

[[services.mask]]
id = "svc-wait-online"
unit = "NetworkManager-wait-online.service"

[[runtime]]
id = "rt-thp"
path = "/sys/kernel/mm/transparent_hugepage/enabled"
expected = "madvise"
match = "selected"
"""


# =============================================================================
# CLI fixtures
# =============================================================================


@dataclass
class CliSystem:
    """Synthetic system the CLI runs against."""

    root: Path
    catalog: Path
    packages: FakePackageManager
    services: FakeServiceManager

    @property
    def etc(self) -> Path:
        return self.root / "etc"


@pytest.fixture
def cli_system(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CliSystem:
    """Catalog, XDG dirs and fake collaborators for CLI invocations.

    Every target lives under ``tmp_path`` and needs no root privileges.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))

    root = tmp_path / "system"
    (root / "etc").mkdir(parents=True)
    (root / "etc" / "environment").write_text("LANG=C\n")
    (root / "etc" / "mkinitcpio.conf").write_text(
        "HOOKS=(base systemd autodetect block filesystems fsck)\n"
    )

    catalog_dir = tmp_path / "catalog"
    (catalog_dir / "files").mkdir(parents=True)
    (catalog_dir / "files" / "sysctl.conf").write_text("vm.swappiness = 10\n")
    catalog = catalog_dir / "catalog.toml"
    catalog.write_text(
        f"""
[meta]
name = "cli"

[[packages.present]]
id = "pkg-htop"
name = "htop"

[[files]]
id = "sysctl"
source = "sysctl.conf"
target = "{root}/etc/sysctl.d/99-performance.conf"
requires_sudo = false
expect = ["vm.swappiness"]

[[env]]
id = "env-editor"
target = "{root}/etc/environment"
key = "EDITOR"
value = "nvim"
requires_sudo = false

[[initramfs_hooks]]
id = "hook-sd-encrypt"
target = "{root}/etc/mkinitcpio.conf"
hook = "sd-encrypt"
before = "filesystems"
confirm = true
requires_sudo = false
triggers = ["initramfs"]
preconditions = [{{ kind = "path_exists", argument = "{root}/etc/crypttab" }}]

[[services.enable]]
id = "svc-fstrim"
unit = "fstrim.timer"
"""
    )

    packages = FakePackageManager()
    services = FakeServiceManager()

    def _packages(runner: CommandRunner) -> FakePackageManager:
        packages._runner = runner
        return packages

    def _services(runner: CommandRunner) -> FakeServiceManager:
        services._runner = runner
        return services

    monkeypatch.setattr("tunectl.cli.session.PacmanManager", _packages)
    monkeypatch.setattr("tunectl.cli.session.SystemdManager", _services)
    monkeypatch.setattr("tunectl.cli.commands.install.current_boot_id", lambda: "boot-1")
    monkeypatch.setattr("tunectl.cli.commands.verify.current_boot_id", lambda: "boot-1")

    initramfs = MagicMock()
    initramfs.return_value.rebuild.return_value = _ok("mkinitcpio", "-P")
    monkeypatch.setattr("tunectl.cli.commands.install.InitramfsBuilder", initramfs)

    return CliSystem(root=root, catalog=catalog, packages=packages, services=services)
