"""Per-run backups of overwritten targets.

Each run owns ``<backup_root>/<run_id>/``. The previous content of a target
is copied there, mirroring its absolute path, before the target is first
rewritten in the run. Later rewrites of the same target reuse that copy, so
it always holds the pre-run content. Backups are write-only artifacts for
manual recovery.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from tunectl.core.errors import BackupFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BackupRecord:
    """Saved copy of a target's previous content.

    Attributes:
        original_path: Target that was about to be overwritten.
        backup_path: Where the previous content now lives.
        run_id: Run that created the backup.
    """

    original_path: str
    backup_path: str
    run_id: str


class BackupStore:
    """Backup directory of a single run.

    Attributes:
        root: Backup root shared by all runs.
        run_id: Timestamp key of this run.
    """

    def __init__(self, root: Path, run_id: str) -> None:
        self.root = root
        self.run_id = run_id
        self._run_dir: Path | None = None
        self._by_target: dict[str, BackupRecord | None] = {}
        self.records: list[BackupRecord] = []

    @property
    def run_dir(self) -> Path | None:
        """Directory of this run, once prepared."""
        return self._run_dir

    @property
    def is_prepared(self) -> bool:
        """Check if the run directory was created."""
        return self._run_dir is not None

    def prepare(self) -> Path:
        """Create this run's backup directory.

        A directory left by another run with the same id is never reused;
        a numeric suffix is appended instead.

        Returns:
            The created directory.

        Raises:
            BackupFailedError: If the directory cannot be created.
        """
        if self._run_dir is not None:
            return self._run_dir

        try:
            self.root.mkdir(parents=True, exist_ok=True)
            candidate = self.root / self.run_id
            suffix = 0
            while True:
                try:
                    candidate.mkdir()
                    break
                except FileExistsError:
                    suffix += 1
                    candidate = self.root / f"{self.run_id}-{suffix}"
        except OSError as e:
            raise BackupFailedError(f"Cannot create backup directory under {self.root}: {e}") from e

        logger.info("Backups for run %s go to %s", self.run_id, candidate)
        self._run_dir = candidate
        return candidate

    def planned_path(self, target: Path) -> Path:
        """Where a target would be backed up, without writing anything."""
        base = self._run_dir or self.root / self.run_id
        return base / str(target).lstrip("/")

    def backup(self, target: Path) -> BackupRecord | None:
        """Copy a target's current content into the run directory.

        Only the first call per target copies anything; later calls return
        the first record.

        Args:
            target: Absolute path about to be overwritten.

        Returns:
            BackupRecord, or None if the target did not exist before its
            first backup in this run.

        Raises:
            BackupFailedError: If the copy fails.
        """
        key = str(target)
        if key in self._by_target:
            return self._by_target[key]
        if not target.exists():
            self._by_target[key] = None
            return None

        run_dir = self.prepare()
        destination = run_dir / str(target).lstrip("/")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(target, destination)
        except OSError as e:
            raise BackupFailedError(f"Cannot back up {target}: {e}") from e

        record = BackupRecord(
            original_path=str(target),
            backup_path=str(destination),
            run_id=self.run_id,
        )
        self._by_target[key] = record
        self.records.append(record)
        logger.info("Backed up %s to %s", target, destination)
        return record
