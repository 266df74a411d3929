"""Reboot marker persistence.

After a run applies a change that only takes effect on the next boot, a
marker recording the current boot id is written. The runtime verifier
reports mismatches as pending while the marker's boot id still equals the
running boot id.
"""

import json
import logging
import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from tunectl.core.paths import ensure_dir, get_state_dir

logger = logging.getLogger(__name__)

BOOT_ID_PATH = "/proc/sys/kernel/random/boot_id"


def current_boot_id(root: Path = Path("/")) -> str | None:
    """Read the kernel's boot id, or None if unavailable."""
    try:
        return (root / BOOT_ID_PATH.lstrip("/")).read_text().strip() or None
    except OSError as e:
        logger.debug("Cannot read boot id: %s", e)
        return None


class StateManager:
    """Manages the reboot marker in the state directory.

    Storage location: ~/.local/state/tunectl/reboot-pending.json

    Attributes:
        state_dir: Directory containing the marker file.
    """

    MARKER_FILENAME = "reboot-pending.json"

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize StateManager.

        Args:
            state_dir: Optional override for state directory.
                      Default: ~/.local/state/tunectl
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()

    @property
    def marker_path(self) -> Path:
        """Path to the reboot marker file."""
        return self._state_dir / self.MARKER_FILENAME

    def mark_reboot_pending(self, boot_id: str | None, run_id: str, resources: list[str]) -> None:
        """Record that a reboot is needed to activate applied changes.

        Resources from an earlier marker for the same boot are kept.

        Args:
            boot_id: Boot id of the running system.
            run_id: Run that applied the changes.
            resources: Ids of reboot-requiring resources that changed.

        Raises:
            RuntimeError: If the state directory cannot be created.
            OSError: If the marker cannot be written.
        """
        existing = self.read_marker()
        merged = list(resources)
        if existing and existing.get("boot_id") == boot_id:
            previous = [str(r) for r in existing.get("resources") or [] if r not in merged]
            merged = previous + merged

        data = {
            "boot_id": boot_id,
            "run_id": run_id,
            "resources": merged,
            "timestamp": datetime.now(UTC).isoformat(),
        }

        ensure_dir(self._state_dir, "state")
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=self._state_dir,
            prefix=".reboot-",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            json.dump(data, tmp, indent=2)
            tmp.write("\n")
            tmp_path = Path(tmp.name)
        os.replace(tmp_path, self.marker_path)
        logger.info("Reboot pending for: %s", ", ".join(merged))

    def read_marker(self) -> dict[str, object] | None:
        """Read the reboot marker.

        Returns:
            Marker data, or None if missing or corrupt.
        """
        if not self.marker_path.exists():
            return None
        try:
            data = json.loads(self.marker_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable reboot marker: %s", e)
            return None
        return data if isinstance(data, dict) else None

    def reboot_pending(self, boot_id: str | None) -> bool:
        """Check if changes from the current boot still await a reboot.

        Args:
            boot_id: Boot id of the running system.

        Returns:
            True if a marker exists and was written during this boot.
        """
        if boot_id is None:
            return False
        marker = self.read_marker()
        if marker is None:
            return False
        return marker.get("boot_id") == boot_id
