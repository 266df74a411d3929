"""Unit tests for theme loading."""

from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError
from rich.theme import Theme
from tunectl.core.theme import ThemeColors, get_rich_theme, load_theme


class TestThemeColors:
    """Tests for ThemeColors validation."""

    def test_defaults(self) -> None:
        """Defaults are valid hex colors."""
        colors = ThemeColors()
        assert colors.success.startswith("#")

    @pytest.mark.parametrize("value", ["red", "#12", "#gggggg", 5])
    def test_invalid_colors_rejected(self, value: object) -> None:
        """Non-hex values are rejected."""
        with pytest.raises(ValidationError):
            ThemeColors(error=value)

    def test_short_hex_accepted(self) -> None:
        """#RGB colors are accepted."""
        assert ThemeColors(error="#f00").error == "#f00"


class TestLoadTheme:
    """Tests for load_theme."""

    def test_user_override(self, tmp_path: Path) -> None:
        """User theme values override the bundled theme."""
        user = tmp_path / "theme.toml"
        user.write_text('[colors]\nerror = "#ff0000"\n')

        with patch("tunectl.core.theme.get_theme_path", return_value=user):
            colors = load_theme()

        assert colors.error == "#ff0000"
        assert colors.success == ThemeColors().success

    def test_invalid_user_theme_falls_back(self, tmp_path: Path) -> None:
        """An invalid user theme yields the defaults."""
        user = tmp_path / "theme.toml"
        user.write_text('[colors]\nerror = "red"\n')

        with patch("tunectl.core.theme.get_theme_path", return_value=user):
            colors = load_theme()

        assert colors == ThemeColors()

    def test_rich_theme_has_status_styles(self) -> None:
        """The rich theme defines every style the console uses."""
        theme = get_rich_theme(ThemeColors())
        assert isinstance(theme, Theme)
        for style in ("success", "error", "warning", "info", "added", "removed", "muted"):
            assert style in theme.styles
