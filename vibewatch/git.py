"""Thin wrappers around the ``git`` command line.

Every query is a discrete ``git -C <root> ...`` subprocess with a timeout.
Diff/list helpers raise ``GitCommandError`` on failure; boolean probes map
failures to ``False`` so callers can use them as predicates.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

GIT_TIMEOUT_SECONDS = 10.0
# Queries must not rewrite .git/index; the watcher reports index writes.
GIT_ENV_OVERRIDES = {"GIT_OPTIONAL_LOCKS": "0"}
DIFF_CONTEXT_LINES = 3


class GitError(Exception):
    """Base class for git backend failures."""


class GitCommandError(GitError):
    """A git invocation failed to run or exited unsuccessfully."""

    def __init__(self, args: list[str], returncode: int | None, stderr: str = "") -> None:
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = self.stderr or f"exit status {returncode}"
        super().__init__(f"{' '.join(self.command)}: {detail}")


class NoRepositoryError(GitError):
    """No usable git repository was found for a directory."""


def _run_git(
    root: str | Path,
    args: list[str],
    timeout_seconds: float = GIT_TIMEOUT_SECONDS,
) -> subprocess.CompletedProcess[str]:
    command = ["git", "-C", str(root), *args]
    try:
        return subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout_seconds,
            env={**os.environ, **GIT_ENV_OVERRIDES},
        )
    except subprocess.TimeoutExpired as exc:
        raise GitCommandError(command, None, f"timed out after {timeout_seconds}s") from exc
    except OSError as exc:
        raise GitCommandError(command, None, str(exc)) from exc


def _checked_output(
    root: str | Path,
    args: list[str],
    timeout_seconds: float = GIT_TIMEOUT_SECONDS,
) -> str:
    proc = _run_git(root, args, timeout_seconds)
    if proc.returncode != 0:
        raise GitCommandError(["git", "-C", str(root), *args], proc.returncode, proc.stderr)
    return proc.stdout


def _probe(root: str | Path, args: list[str], timeout_seconds: float = GIT_TIMEOUT_SECONDS) -> bool:
    try:
        proc = _run_git(root, args, timeout_seconds)
    except GitCommandError:
        return False
    return proc.returncode == 0


def _split_nul(output: str) -> list[str]:
    return [token for token in output.split("\0") if token]


def is_git_repo(directory: str | Path) -> bool:
    """Return whether ``directory`` is inside a git work tree."""
    return _probe(directory, ["rev-parse", "--git-dir"])


def current_branch(root: str | Path) -> str:
    """Return the checked-out branch name, or ``""`` when it cannot be read."""
    try:
        return _checked_output(root, ["rev-parse", "--abbrev-ref", "HEAD"]).strip()
    except GitCommandError:
        return ""


def is_git_ignored(root: str | Path, path: str | Path) -> bool:
    """Return whether git's ignore rules exclude ``path`` inside ``root``.

    ``git check-ignore -q`` exits 0 for ignored paths and 1 otherwise; any
    other outcome is treated as "not ignored".
    """
    return _probe(root, ["check-ignore", "-q", str(path)])


class GitRepository:
    """Query surface for one repository root."""

    def __init__(self, root: str | Path, timeout_seconds: float = GIT_TIMEOUT_SECONDS) -> None:
        self.root = str(root)
        self.timeout_seconds = timeout_seconds

    def _output(self, args: list[str]) -> str:
        return _checked_output(self.root, args, self.timeout_seconds)

    def working_tree_diff(self, rel_path: str) -> str:
        return self._output(
            ["diff", "--no-color", f"--unified={DIFF_CONTEXT_LINES}", "--", rel_path]
        ).strip()

    def staged_diff(self, rel_path: str) -> str:
        return self._output(
            ["diff", "--no-color", f"--unified={DIFF_CONTEXT_LINES}", "--cached", "--", rel_path]
        ).strip()

    def untracked_diff(self, abs_path: str) -> str:
        """Diff ``abs_path`` against an empty input so every line shows as added.

        ``--no-index`` exits 1 when the inputs differ, so only statuses above 1
        are failures.
        """
        args = ["diff", "--no-color", "--no-index", "--", os.devnull, abs_path]
        proc = _run_git(self.root, args, self.timeout_seconds)
        if proc.returncode not in (0, 1):
            raise GitCommandError(["git", "-C", self.root, *args], proc.returncode, proc.stderr)
        return proc.stdout.strip()

    def is_tracked(self, rel_path: str) -> bool:
        return _probe(self.root, ["ls-files", "--error-unmatch", "--", rel_path], self.timeout_seconds)

    def changed_paths(self) -> list[str]:
        """Paths with unstaged modifications, relative to ``root``."""
        return _split_nul(self._output(["diff", "--name-only", "--relative", "-z"]))

    def staged_paths(self) -> list[str]:
        return _split_nul(self._output(["diff", "--name-only", "--relative", "--cached", "-z"]))

    def untracked_paths(self) -> list[str]:
        return _split_nul(self._output(["ls-files", "--others", "--exclude-standard", "-z"]))


__all__ = [
    "DIFF_CONTEXT_LINES",
    "GIT_ENV_OVERRIDES",
    "GIT_TIMEOUT_SECONDS",
    "GitCommandError",
    "GitError",
    "GitRepository",
    "NoRepositoryError",
    "current_branch",
    "is_git_ignored",
    "is_git_repo",
]
