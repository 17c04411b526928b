"""Find git repositories below a parent directory."""

from __future__ import annotations

import os

GIT_DIR_NAME = ".git"


def discover_repos(parent_dir: str) -> dict[str, str]:
    """Map each repository root under ``parent_dir`` to its directory name.

    A directory holding a ``.git`` entry (directory or worktree gitfile) is a
    root; the walk does not descend into it. ``.git`` directories are never
    entered and unreadable directories are skipped.
    """
    repos: dict[str, str] = {}
    for dirpath, dirnames, filenames in os.walk(parent_dir, onerror=None, followlinks=False):
        if GIT_DIR_NAME in dirnames or GIT_DIR_NAME in filenames:
            repos[dirpath] = os.path.basename(dirpath)
            dirnames[:] = []
            continue
        dirnames[:] = sorted(name for name in dirnames if name != GIT_DIR_NAME)
    return repos


__all__ = ["GIT_DIR_NAME", "discover_repos"]
