"""XDG-compliant path management for tunectl.

This module provides standardized paths following the XDG Base Directory
Specification for configuration and state storage.

XDG defaults:
- Config: ~/.config/tunectl/
- State: ~/.local/state/tunectl/
"""

import os
from importlib import resources
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "tunectl"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/tunectl/ (or XDG_CONFIG_HOME/tunectl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes run logs, backups and the reboot marker.

    Returns:
        Path to ~/.local/state/tunectl/ (or XDG_STATE_HOME/tunectl/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_settings_path() -> Path:
    """Get the settings file path.

    Returns:
        Path to ~/.config/tunectl/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to ~/.config/tunectl/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def get_log_dir() -> Path:
    """Get the run log directory path.

    Returns:
        Path to ~/.local/state/tunectl/logs/.
    """
    return get_state_dir() / "logs"


def get_backup_dir() -> Path:
    """Get the backup root directory path.

    Each run creates a timestamped subdirectory within this location.

    Returns:
        Path to ~/.local/state/tunectl/backups/.
    """
    return get_state_dir() / "backups"


def get_reboot_marker_path() -> Path:
    """Get the reboot marker file path.

    Returns:
        Path to ~/.local/state/tunectl/reboot-pending.json.
    """
    return get_state_dir() / "reboot-pending.json"


def get_bundled_data_dir() -> Path:
    """Get the directory holding the bundled catalog and source files.

    Returns:
        Path to the installed tunectl/data package directory.
    """
    return Path(str(resources.files("tunectl.data")))


def get_bundled_catalog_path() -> Path:
    """Get the bundled default catalog path.

    Returns:
        Path to tunectl/data/catalog.toml.
    """
    return get_bundled_data_dir() / "catalog.toml"


def ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path
