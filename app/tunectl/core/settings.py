"""User settings.

Settings are stored in ~/.config/tunectl/config.toml. Every key is
optional; a missing file yields the defaults.
"""

import tomllib
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tunectl.core.paths import (
    get_backup_dir,
    get_bundled_catalog_path,
    get_log_dir,
    get_settings_path,
)


class Settings(BaseModel):
    """Runtime settings for tunectl.

    Attributes:
        catalog: Catalog file to reconcile. None uses the bundled catalog.
        source_dir: Directory holding file_copy sources. None uses the
            ``files`` directory next to the catalog.
        backup_dir: Root for per-run backups.
        log_dir: Directory for per-run logs.
        command_timeout: Maximum seconds an external command may run.
    """

    model_config = ConfigDict(extra="forbid")

    catalog: Annotated[Path | None, Field(description="Catalog file")] = None
    source_dir: Annotated[Path | None, Field(description="Source file directory")] = None
    backup_dir: Annotated[Path | None, Field(description="Backup root")] = None
    log_dir: Annotated[Path | None, Field(description="Run log directory")] = None
    command_timeout: Annotated[
        int,
        Field(ge=10, le=3600, description="Command timeout in seconds (10-3600)"),
    ] = 600

    @property
    def effective_catalog(self) -> Path:
        """Catalog path to load."""
        return self.catalog or get_bundled_catalog_path()

    @property
    def effective_source_dir(self) -> Path:
        """Directory that file_copy sources are resolved against."""
        if self.source_dir is not None:
            return self.source_dir
        return self.effective_catalog.parent / "files"

    @property
    def effective_backup_dir(self) -> Path:
        """Backup root directory."""
        return self.backup_dir or get_backup_dir()

    @property
    def effective_log_dir(self) -> Path:
        """Run log directory."""
        return self.log_dir or get_log_dir()


class SettingsError(Exception):
    """Base exception for settings errors."""


class SettingsParseError(SettingsError):
    """Raised when the settings file cannot be parsed."""


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a TOML file.

    Args:
        path: Path to the settings file. If None, uses the default path.

    Returns:
        Validated Settings object, or defaults if the file doesn't exist.

    Raises:
        SettingsParseError: If the TOML syntax is invalid.
        SettingsError: If the content doesn't match the schema.
    """
    settings_path = path or get_settings_path()

    if not settings_path.exists():
        return Settings()

    try:
        with open(settings_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SettingsParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise SettingsError(f"Failed to read settings: {e}") from e

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings content: {e}") from e
