"""Path inclusion policy for the watcher.

Built-in rules reject build output, editor artifacts and dependency trees.
Anything that survives is checked against the owning repository's ignore
rules through ``git check-ignore``.
"""

from __future__ import annotations

import os
import re
import stat
from collections.abc import Callable, Iterable

from ..differ.router import find_repo_root
from ..git import is_git_ignored

GIT_DIR_NAME = ".git"
GIT_STATE_FILES = frozenset({"HEAD", "index"})

BINARY_SUFFIXES = (".exe", ".so", ".dylib", ".a", ".o", ".out")
IGNORED_NAMES = frozenset(
    {
        ".git",
        "node_modules",
        ".next",
        "dist",
        "build",
        "__pycache__",
        ".venv",
        "venv",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
        ".DS_Store",
    }
)
IGNORED_NAME_SUFFIXES = (".swp", ".swo", "~")
IGNORED_EXTENSIONS = (
    ".log",
    ".tmp",
    ".bak",
    ".pid",
    ".lock",
    ".exe",
    ".dll",
    ".so",
    ".dylib",
    ".a",
)

# Editors and compilers leave files like ``main.go.1700000000``.
_NUMBERED_ARTIFACT_RE = re.compile(r"\.[0-9]{8,}$")


def is_git_state_file(path: str) -> bool:
    """Whether ``path`` is a ``.git/HEAD`` or ``.git/index`` file."""
    return (
        os.path.basename(path) in GIT_STATE_FILES
        and os.path.basename(os.path.dirname(path)) == GIT_DIR_NAME
    )


def _is_extensionless_executable(path: str, base: str) -> bool:
    if "." in base:
        return False
    try:
        st = os.stat(path)
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode) and bool(st.st_mode & 0o111)


class PathFilter:
    """Decide whether a watched path is excluded.

    The filter is a pure function of the path, the watched root and the known
    repository roots; it keeps no mutable state between calls.
    """

    def __init__(
        self,
        root: str,
        repo_roots: Iterable[str] = (),
        *,
        is_ignored: Callable[[str, str], bool] = is_git_ignored,
    ) -> None:
        self.root = os.path.normpath(root)
        self.repo_roots = tuple(sorted(repo_roots, key=len, reverse=True))
        self._exempt_dirs = frozenset({self.root, *(os.path.normpath(r) for r in self.repo_roots)})
        self._is_ignored = is_ignored

    def _matches_builtin_name(self, path: str, base: str) -> bool:
        if path in self._exempt_dirs:
            return False
        if base in IGNORED_NAMES or base.endswith(IGNORED_NAME_SUFFIXES):
            return True

        rel = os.path.relpath(path, self.root)
        if rel == "." or rel.startswith(os.pardir + os.sep):
            return False
        parts = rel.split(os.sep)
        prefix = self.root
        for index, part in enumerate(parts):
            prefix = os.path.join(prefix, part)
            if index == 0 and part == os.path.basename(self.root):
                continue
            if prefix in self._exempt_dirs:
                continue
            if part in IGNORED_NAMES:
                return True
        return False

    def should_ignore(self, path: str) -> bool:
        path = os.path.normpath(path)
        base = os.path.basename(path)

        # Must precede the name denylist, which would catch ``.git``.
        if base == GIT_DIR_NAME or is_git_state_file(path):
            return False

        if path.endswith(BINARY_SUFFIXES):
            return True
        if _NUMBERED_ARTIFACT_RE.search(base):
            return True
        if _is_extensionless_executable(path, base):
            return True
        if self._matches_builtin_name(path, base):
            return True
        if base.lower().endswith(IGNORED_EXTENSIONS):
            return True

        repo_root = find_repo_root(path, self.repo_roots)
        if repo_root is not None and self._is_ignored(repo_root, path):
            return True
        return False

    __call__ = should_ignore


__all__ = [
    "BINARY_SUFFIXES",
    "GIT_DIR_NAME",
    "GIT_STATE_FILES",
    "IGNORED_EXTENSIONS",
    "IGNORED_NAMES",
    "IGNORED_NAME_SUFFIXES",
    "PathFilter",
    "is_git_state_file",
]
