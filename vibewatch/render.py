"""Plain-text and ANSI rendering of diff entries for the streaming CLI."""

from __future__ import annotations

import os
import re

from pygments import highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexers import DiffLexer
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .types import DiffEntry

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_FORMATTERS: dict[str, Terminal256Formatter] = {}

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_STATUS_COLORS = {
    "new": "\033[32m",
    "deleted": "\033[31m",
    "error": "\033[31m",
    "clean": "\033[90m",
    "modified": "\033[33m",
}


def sanitize_terminal_text(text: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(text) is None:
        return text
    return _CONTROL_RE.sub(lambda match: f"\\x{ord(match.group(0)):02x}", text)


def _formatter(style: str) -> Terminal256Formatter:
    formatter = _FORMATTERS.get(style)
    if formatter is None:
        try:
            get_style_by_name(style)
            resolved = style
        except ClassNotFound:
            resolved = "default"
        formatter = Terminal256Formatter(style=resolved)
        _FORMATTERS[style] = formatter
    return formatter


def highlight_diff(diff_text: str, style: str = "monokai") -> str:
    return highlight(diff_text, DiffLexer(), _formatter(style)).rstrip("\n")


def entry_status(entry: DiffEntry) -> str:
    if entry.error:
        return "error"
    if entry.is_deleted:
        return "deleted"
    if entry.is_new:
        return "new"
    if entry.is_clean:
        return "clean"
    return "modified"


def display_path(entry: DiffEntry, roots: list[str] | None = None) -> str:
    """Shorten ``entry.file_path`` relative to the first root containing it."""
    for root in roots or ():
        if entry.file_path.startswith(root.rstrip(os.sep) + os.sep):
            return os.path.relpath(entry.file_path, root)
    return entry.file_path


def format_entry(
    entry: DiffEntry,
    *,
    color: bool = True,
    style: str = "monokai",
    roots: list[str] | None = None,
) -> str:
    status = entry_status(entry)
    stamp = entry.timestamp.strftime("%H:%M:%S")
    repo = f"[{entry.repo}] " if entry.repo else ""
    path = sanitize_terminal_text(display_path(entry, roots))

    if color:
        header = (
            f"{_DIM}{stamp}{_RESET} {repo}{_BOLD}{path}{_RESET} "
            f"{_STATUS_COLORS[status]}({status}){_RESET}"
        )
    else:
        header = f"{stamp} {repo}{path} ({status})"

    lines = [header]
    if entry.error:
        lines.append(f"  {sanitize_terminal_text(entry.error)}")
    elif entry.diff:
        body = sanitize_terminal_text(entry.diff)
        lines.append(highlight_diff(body, style) if color else body)
    return "\n".join(lines)


def format_snapshot(
    entries: tuple[DiffEntry, ...] | list[DiffEntry],
    *,
    color: bool = True,
    style: str = "monokai",
    roots: list[str] | None = None,
    title: str = "uncommitted changes",
) -> str:
    banner = f"== {title}: {len(entries)} file{'s' if len(entries) != 1 else ''} =="
    if color:
        banner = f"{_BOLD}{banner}{_RESET}"
    parts = [banner]
    parts.extend(format_entry(entry, color=color, style=style, roots=roots) for entry in entries)
    return "\n".join(parts)


__all__ = [
    "display_path",
    "entry_status",
    "format_entry",
    "format_snapshot",
    "highlight_diff",
    "sanitize_terminal_text",
]
