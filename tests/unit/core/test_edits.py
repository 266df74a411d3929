"""Unit tests for typed text predicates and renderers."""

from pathlib import Path

import pytest
from tunectl.core.edits import (
    array_items,
    find_mount,
    find_value,
    insert_array_item,
    merge_tokens,
    option_tokens,
    render_text,
    set_mount_options,
    set_option_token,
    set_value,
    text_matches,
    unified_diff,
)
from tunectl.models.resource import Resource, ResourceKind

MKINITCPIO = """MODULES=()
BINARIES=()
HOOKS=(base systemd autodetect modconf kms keyboard block filesystems fsck)
"""

FSTAB = """# <file system> <dir> <type> <options> <dump> <pass>
UUID=1111  /      ext4   rw,relatime  0 1
UUID=2222  /boot  vfat   rw,umask=0077  0 2
"""


class TestKeyValue:
    """Tests for KEY=value lines."""

    def test_find_value(self) -> None:
        """find_value returns the first value, without trailing spaces."""
        assert find_value("A=1\nB=2  \n", "B") == "2"
        assert find_value("#B=2\n", "B") is None

    def test_set_value_replaces_all(self) -> None:
        """set_value rewrites every KEY= line."""
        assert set_value("A=1\nB=2\nB=3\n", "B", "9") == "A=1\nB=9\nB=9\n"

    def test_set_value_appends(self) -> None:
        """A missing key is appended on its own line."""
        assert set_value("A=1", "B", "2") == "A=1\nB=2\n"
        assert set_value("", "B", "2") == "B=2\n"

    def test_set_value_keeps_comment(self) -> None:
        """Commented keys are left alone."""
        assert set_value("#B=old\n", "B", "new") == "#B=old\nB=new\n"


class TestOptionTokens:
    """Tests for kernel option strings."""

    def test_merge_replaces_same_name(self) -> None:
        """A token replaces the first same-name token and drops duplicates."""
        assert merge_tokens(["quiet", "zswap.enabled=1", "zswap.enabled=1"], ["zswap.enabled=0"]) == [
            "quiet",
            "zswap.enabled=0",
        ]

    def test_merge_appends_new(self) -> None:
        """Unknown tokens are appended."""
        assert merge_tokens(["quiet"], ["nowatchdog"]) == ["quiet", "nowatchdog"]

    def test_option_tokens_unquotes(self) -> None:
        """Quoted option strings are split into tokens."""
        assert option_tokens('LINUX_OPTIONS="quiet splash"\n', "LINUX_OPTIONS") == ["quiet", "splash"]
        assert option_tokens("OTHER=1\n", "LINUX_OPTIONS") is None

    def test_set_option_token_keeps_quotes(self) -> None:
        """Adding a token keeps the existing quote style."""
        text = "LINUX_OPTIONS='quiet'\n"
        assert set_option_token(text, "LINUX_OPTIONS", "nowatchdog") == (
            "LINUX_OPTIONS='quiet nowatchdog'\n"
        )

    def test_set_option_token_creates_key(self) -> None:
        """A missing option string is created quoted."""
        assert set_option_token("", "LINUX_OPTIONS", "nowatchdog") == 'LINUX_OPTIONS="nowatchdog"\n'


class TestArrays:
    """Tests for HOOKS=(...) arrays."""

    def test_array_items(self) -> None:
        """array_items splits a single-line array."""
        items = array_items(MKINITCPIO, "HOOKS")
        assert items is not None
        assert items[0] == "base"
        assert array_items(MKINITCPIO, "FILES") is None

    def test_insert_before_anchor(self) -> None:
        """Items are inserted before the anchor."""
        result = insert_array_item(MKINITCPIO, "HOOKS", "sd-encrypt", "filesystems")
        assert "block sd-encrypt filesystems fsck" in result
        assert result.startswith("MODULES=()\n")

    def test_insert_without_anchor_appends(self) -> None:
        """A missing anchor appends the item."""
        result = insert_array_item(MKINITCPIO, "HOOKS", "resume", "nonexistent")
        assert "fsck resume)" in result

    def test_insert_is_idempotent(self) -> None:
        """Existing items are not inserted twice."""
        once = insert_array_item(MKINITCPIO, "HOOKS", "sd-encrypt", "filesystems")
        assert insert_array_item(once, "HOOKS", "sd-encrypt", "filesystems") == once

    def test_multiline_array_rejected(self) -> None:
        """Multi-line arrays cannot be edited."""
        with pytest.raises(ValueError, match="no single-line HOOKS"):
            insert_array_item("HOOKS=(base\n  udev)\n", "HOOKS", "sd-encrypt")


class TestFstab:
    """Tests for fstab parsing and editing."""

    def test_find_mount(self) -> None:
        """The root entry is found."""
        entry, unsafe = find_mount(FSTAB, "/")
        assert unsafe is None
        assert entry is not None
        assert entry.options == ["rw", "relatime"]

    def test_btrfs_subvol_is_unsafe(self) -> None:
        """subvol= options are reported as btrfs."""
        text = "UUID=1 / btrfs rw,subvol=@ 0 0\n"
        entry, unsafe = find_mount(text, "/")
        assert entry is None
        assert unsafe == "btrfs detected"

    def test_duplicate_mount_is_unsafe(self) -> None:
        """Duplicate mount points are complex syntax."""
        text = "UUID=1 / ext4 rw 0 1\nUUID=2 / ext4 rw 0 1\n"
        _, unsafe = find_mount(text, "/")
        assert unsafe is not None
        assert unsafe.startswith("complex fstab syntax")

    def test_short_entry_is_unsafe(self) -> None:
        """Entries with fewer than four fields are complex syntax."""
        _, unsafe = find_mount("UUID=1 / ext4\n", "/")
        assert unsafe is not None
        assert "too few fields" in unsafe

    def test_missing_mount(self) -> None:
        """Missing mount points are reported."""
        _, unsafe = find_mount(FSTAB, "/home")
        assert unsafe == "no fstab entry for /home"

    def test_set_mount_options_preserves_layout(self) -> None:
        """Only the options field of the target line changes."""
        result = set_mount_options(FSTAB, "/", ["noatime"])
        lines = result.splitlines()
        assert lines[1] == "UUID=1111  /      ext4   rw,relatime,noatime  0 1"
        assert lines[0] == FSTAB.splitlines()[0]
        assert lines[2] == FSTAB.splitlines()[2]

    def test_set_mount_options_refuses_btrfs(self) -> None:
        """btrfs entries are never edited."""
        with pytest.raises(ValueError, match="btrfs detected"):
            set_mount_options("UUID=1 / btrfs rw,subvol=@ 0 0\n", "/", ["noatime"])


class TestDispatch:
    """Tests for per-kind matching and rendering."""

    def _hook(self) -> Resource:
        return Resource(
            id="hook",
            kind=ResourceKind.INITRAMFS_HOOK,
            target="/etc/mkinitcpio.conf",
            key="HOOKS",
            desired="sd-encrypt",
            anchor="filesystems",
        )

    def test_hook_matches_after_render(self) -> None:
        """Rendered text satisfies the resource."""
        hook = self._hook()
        assert not text_matches(hook, MKINITCPIO)
        assert text_matches(hook, render_text(hook, MKINITCPIO))

    def test_mount_matches_after_render(self) -> None:
        """Rendered fstab satisfies the mount resource."""
        mount = Resource(
            id="m",
            kind=ResourceKind.MOUNT_OPTIONS,
            target="/etc/fstab",
            key="/",
            desired="noatime",
        )
        assert not text_matches(mount, FSTAB)
        assert text_matches(mount, render_text(mount, FSTAB))

    def test_env_render_from_nothing(self) -> None:
        """A missing file renders to the single line."""
        env = Resource(
            id="e",
            kind=ResourceKind.ENV_VAR,
            target="/etc/environment",
            key="EDITOR",
            desired="nvim",
        )
        assert render_text(env, None) == "EDITOR=nvim\n"

    def test_file_copy_not_text_patched(self) -> None:
        """FILE_COPY has no text predicate."""
        resource = Resource(
            id="f", kind=ResourceKind.FILE_COPY, target="/etc/x", source=Path("/src/x")
        )
        with pytest.raises(ValueError, match="not a text-patched kind"):
            text_matches(resource, "")


class TestUnifiedDiff:
    """Tests for unified_diff."""

    def test_new_file_from_dev_null(self) -> None:
        """A missing file diffs against /dev/null."""
        diff = unified_diff("/etc/x", None, "a\n")
        assert diff.splitlines()[0] == "--- /dev/null"
        assert "+a" in diff.splitlines()

    def test_changed_line(self) -> None:
        """Changed lines show as removed and added."""
        diff = unified_diff("/etc/x", "a=1\n", "a=2\n")
        assert "-a=1" in diff.splitlines()
        assert "+a=2" in diff.splitlines()
