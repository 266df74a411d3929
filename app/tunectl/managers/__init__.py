"""External collaborators: package, service, initramfs, boot loader, udev."""

from tunectl.managers.base import PackageManager, ServiceManager, ServiceState
from tunectl.managers.boot import BootloaderManager, InitramfsBuilder
from tunectl.managers.pacman import PacmanManager
from tunectl.managers.systemd import SystemdManager
from tunectl.managers.udev import UdevControl

__all__ = [
    "BootloaderManager",
    "InitramfsBuilder",
    "PackageManager",
    "PacmanManager",
    "ServiceManager",
    "ServiceState",
    "SystemdManager",
    "UdevControl",
]
