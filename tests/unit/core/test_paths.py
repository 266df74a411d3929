"""Unit tests for XDG path helpers."""

from pathlib import Path
from unittest.mock import patch

import pytest
from tunectl.core.paths import (
    ensure_dir,
    get_bundled_catalog_path,
    get_config_dir,
    get_reboot_marker_path,
    get_settings_path,
    get_state_dir,
)


class TestXdgPaths:
    """Tests for XDG directory resolution."""

    def test_env_override(self, tmp_path: Path) -> None:
        """XDG variables are honored."""
        env = {"XDG_CONFIG_HOME": str(tmp_path / "cfg"), "XDG_STATE_HOME": str(tmp_path / "st")}
        with patch.dict("os.environ", env):
            assert get_config_dir() == tmp_path / "cfg" / "tunectl"
            assert get_settings_path() == tmp_path / "cfg" / "tunectl" / "config.toml"
            assert get_state_dir() == tmp_path / "st" / "tunectl"
            assert get_reboot_marker_path() == tmp_path / "st" / "tunectl" / "reboot-pending.json"

    def test_home_fallback(self, tmp_path: Path) -> None:
        """Without XDG variables paths live under the home directory."""
        with (
            patch.dict("os.environ", {"XDG_CONFIG_HOME": ""}),
            patch("tunectl.core.paths.Path.home", return_value=tmp_path),
        ):
            assert get_config_dir() == tmp_path / ".config" / "tunectl"

    def test_bundled_catalog_exists(self) -> None:
        """The bundled catalog ships with the package."""
        assert get_bundled_catalog_path().is_file()


class TestEnsureDir:
    """Tests for ensure_dir."""

    def test_creates_nested(self, tmp_path: Path) -> None:
        """Nested directories are created."""
        path = ensure_dir(tmp_path / "a" / "b", "test")
        assert path.is_dir()

    def test_failure_is_runtime_error(self, tmp_path: Path) -> None:
        """Creation failures raise RuntimeError with the name."""
        blocker = tmp_path / "file"
        blocker.write_text("")
        with pytest.raises(RuntimeError, match="Cannot create log directory"):
            ensure_dir(blocker / "logs", "log")
