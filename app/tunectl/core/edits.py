"""Typed text predicates and renderers.

Each file-backed resource kind has one predicate (does the current text
already satisfy the resource?) and one renderer (what text would satisfy
it?). Both are pure functions over strings so matching rules are testable
without touching the filesystem. The inspector and verifier share the
predicates; the planner's diff and the executor's write share the
renderers.
"""

import difflib
import re
from dataclasses import dataclass

from tunectl.models.resource import Resource, ResourceKind

# =============================================================================
# KEY=value lines
# =============================================================================


def _key_line(key: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(key)}=(.*)$", re.MULTILINE)


def find_value(text: str, key: str) -> str | None:
    """Return the value of the first ``KEY=`` line, or None if absent."""
    match = _key_line(key).search(text)
    if match is None:
        return None
    return match.group(1).rstrip()


def set_value(text: str, key: str, value: str) -> str:
    """Set ``KEY=value``, replacing every existing ``KEY=`` line.

    A missing key is appended at the end of the file.
    """
    line = f"{key}={value}"
    pattern = _key_line(key)
    if pattern.search(text):
        return pattern.sub(lambda _: line, text)
    return _append_line(text, line)


def _append_line(text: str, line: str) -> str:
    if text and not text.endswith("\n"):
        text += "\n"
    return f"{text}{line}\n"


# =============================================================================
# Option tokens (kernel command line, mount options)
# =============================================================================


def token_name(token: str) -> str:
    """Name part of a ``name=value`` token (the whole token if bare)."""
    return token.split("=", 1)[0]


def merge_tokens(tokens: list[str], wanted: list[str]) -> list[str]:
    """Merge wanted tokens into a token list.

    A wanted token replaces the first token with the same name, later
    duplicates of that name are dropped, and unknown names are appended.
    """
    result = list(tokens)
    for token in wanted:
        name = token_name(token)
        positions = [i for i, t in enumerate(result) if token_name(t) == name]
        if not positions:
            result.append(token)
            continue
        result[positions[0]] = token
        for i in reversed(positions[1:]):
            del result[i]
    return result


def _unquote(raw: str) -> tuple[str, str]:
    """Split a shell-style value into (quote character, inner text)."""
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "\"'":
        return raw[0], raw[1:-1]
    return "", raw


def option_tokens(text: str, key: str) -> list[str] | None:
    """Tokens of the configured option string, or None if the key is absent.

    Example:
        >>> option_tokens('LINUX_OPTIONS="quiet splash"\\n', "LINUX_OPTIONS")
        ['quiet', 'splash']
    """
    raw = find_value(text, key)
    if raw is None:
        return None
    return _unquote(raw)[1].split()


def set_option_token(text: str, key: str, token: str) -> str:
    """Ensure a kernel token is present in the configured option string."""
    raw = find_value(text, key)
    if raw is None:
        return set_value(text, key, f'"{token}"')
    quote, inner = _unquote(raw)
    tokens = merge_tokens(inner.split(), [token])
    quote = quote or '"'
    return set_value(text, key, f"{quote}{' '.join(tokens)}{quote}")


def cmdline_tokens(cmdline: str) -> list[str]:
    """Tokens of an active kernel command line (``/proc/cmdline``)."""
    return cmdline.split()


# =============================================================================
# HOOKS=(...) arrays
# =============================================================================


def _array_line(key: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(key)}=\((.*)\)[ \t]*$", re.MULTILINE)


def array_items(text: str, key: str) -> list[str] | None:
    """Items of a bash array ``KEY=(a b c)``, or None if absent."""
    match = _array_line(key).search(text)
    if match is None:
        return None
    return match.group(1).split()


def insert_array_item(text: str, key: str, item: str, anchor: str | None = None) -> str:
    """Insert an item into ``KEY=(...)`` before ``anchor`` (or at the end).

    Raises:
        ValueError: If the array is not declared on a single line.
    """
    items = array_items(text, key)
    if items is None:
        msg = f"no single-line {key}=(...) array found"
        raise ValueError(msg)
    if item in items:
        return text
    if anchor is not None and anchor in items:
        items.insert(items.index(anchor), item)
    else:
        items.append(item)
    line = f"{key}=({' '.join(items)})"
    return _array_line(key).sub(lambda _: line, text, count=1)


# =============================================================================
# fstab
# =============================================================================


@dataclass(frozen=True, slots=True)
class FstabEntry:
    """One non-comment line of an fstab file.

    Attributes:
        index: Zero-based line number.
        fields: Whitespace-separated fields.
    """

    index: int
    fields: tuple[str, ...]

    @property
    def mount_point(self) -> str | None:
        """Second field, if present."""
        return self.fields[1] if len(self.fields) > 1 else None

    @property
    def options(self) -> list[str]:
        """Comma-separated fourth field."""
        if len(self.fields) < 4:
            return []
        return self.fields[3].split(",")

    @property
    def is_complete(self) -> bool:
        """Check if the entry has at least spec, mount point, type and options."""
        return len(self.fields) >= 4


def parse_fstab(text: str) -> list[FstabEntry]:
    """Parse all non-blank, non-comment fstab lines."""
    entries: list[FstabEntry] = []
    for index, line in enumerate(text.splitlines()):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        entries.append(FstabEntry(index=index, fields=tuple(stripped.split())))
    return entries


def find_mount(text: str, mount_point: str) -> tuple[FstabEntry | None, str | None]:
    """Locate the single fstab entry for a mount point.

    Returns:
        ``(entry, None)`` when exactly one well-formed entry exists, otherwise
        ``(None, reason)`` describing why automatic editing is unsafe.
    """
    candidates = [e for e in parse_fstab(text) if e.mount_point == mount_point]
    if not candidates:
        return None, f"no fstab entry for {mount_point}"
    if len(candidates) > 1:
        return None, f"complex fstab syntax: {mount_point} listed {len(candidates)} times"
    entry = candidates[0]
    if not entry.is_complete:
        return None, f"complex fstab syntax: entry for {mount_point} has too few fields"
    if any(opt.startswith("subvol=") or opt.startswith("subvolid=") for opt in entry.options):
        return None, "btrfs detected"
    return entry, None


def set_mount_options(text: str, mount_point: str, options: list[str]) -> str:
    """Merge options into the entry for a mount point, keeping its spacing.

    Raises:
        ValueError: If the entry cannot be edited safely.
    """
    entry, unsafe = find_mount(text, mount_point)
    if entry is None:
        raise ValueError(unsafe)

    lines = text.splitlines(keepends=True)
    line = lines[entry.index]
    ending = line[len(line.rstrip("\r\n")) :]
    body = line.rstrip("\r\n")
    indent = body[: len(body) - len(body.lstrip())]
    parts = re.split(r"(\s+)", body.lstrip())
    # parts alternates field, separator, field, ...; options is the 4th field
    parts[6] = ",".join(merge_tokens(entry.options, options))
    lines[entry.index] = indent + "".join(parts) + ending
    return "".join(lines)


# =============================================================================
# Per-kind dispatch
# =============================================================================


def desired_tokens(resource: Resource) -> list[str]:
    """Comma-separated desired value of a MOUNT_OPTIONS resource as a list."""
    return [t for t in resource.desired_text.split(",") if t]


def text_matches(resource: Resource, text: str) -> bool:
    """Check whether current file text already satisfies a resource.

    Args:
        resource: A file-backed resource other than FILE_COPY.
        text: Current content of the resource's target.

    Returns:
        True if no change is needed.
    """
    kind = resource.kind
    key = resource.key or ""
    if kind in (ResourceKind.TEXT_PATCH, ResourceKind.ENV_VAR):
        return find_value(text, key) == resource.desired_text
    if kind == ResourceKind.KERNEL_PARAM:
        tokens = option_tokens(text, key)
        return tokens is not None and resource.desired_text in tokens
    if kind == ResourceKind.INITRAMFS_HOOK:
        items = array_items(text, key)
        return items is not None and resource.desired_text in items
    if kind == ResourceKind.MOUNT_OPTIONS:
        entry, _ = find_mount(text, key)
        return entry is not None and all(o in entry.options for o in desired_tokens(resource))
    msg = f"{kind.value} is not a text-patched kind"
    raise ValueError(msg)


def render_text(resource: Resource, text: str | None) -> str:
    """Render the file text that satisfies a resource.

    Args:
        resource: A file-backed resource other than FILE_COPY.
        text: Current content, or None if the target does not exist.

    Returns:
        New file content.

    Raises:
        ValueError: If the current content cannot be edited safely.
    """
    current = text or ""
    kind = resource.kind
    key = resource.key or ""
    if kind in (ResourceKind.TEXT_PATCH, ResourceKind.ENV_VAR):
        return set_value(current, key, resource.desired_text)
    if kind == ResourceKind.KERNEL_PARAM:
        return set_option_token(current, key, resource.desired_text)
    if kind == ResourceKind.INITRAMFS_HOOK:
        return insert_array_item(current, key, resource.desired_text, resource.anchor)
    if kind == ResourceKind.MOUNT_OPTIONS:
        return set_mount_options(current, key, desired_tokens(resource))
    msg = f"{kind.value} is not a text-patched kind"
    raise ValueError(msg)


def unified_diff(path: str, old: str | None, new: str) -> str:
    """Unified diff between current and desired text."""
    old_lines = (old or "").splitlines(keepends=True)
    new_lines = new.splitlines(keepends=True)
    from_file = path if old is not None else "/dev/null"
    diff = difflib.unified_diff(old_lines, new_lines, fromfile=from_file, tofile=path)
    return "".join(line if line.endswith("\n") else line + "\n" for line in diff).rstrip("\n")
