"""Single- and multi-repository dispatch behind one ``Differ`` interface.

``MultiRepo`` owns one ``DiffEngine`` per discovered root and routes each
path to the innermost repository containing it. ``SingleRepo`` wraps a lone
engine. Both share the ``diff``/``dirty_files``/``repo_roots`` contract.
"""

from __future__ import annotations

import abc
import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime

from ..git import GIT_TIMEOUT_SECONDS, GitError, GitRepository, NoRepositoryError, is_git_repo
from ..types import GIT_OPERATION, DiffEntry
from .discovery import discover_repos
from .engine import CACHE_FRESHNESS_SECONDS, DiffEngine

UNKNOWN_REPO_ERROR = "file not inside any known git repository"


def _contains(root: str, path: str) -> bool:
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


def find_repo_root(path: str, repo_roots: Iterable[str]) -> str | None:
    """Return the deepest root in ``repo_roots`` that contains ``path``."""
    best: str | None = None
    for root in repo_roots:
        if _contains(root, path) and (best is None or len(root) > len(best)):
            best = root
    return best


class Differ(abc.ABC):
    """Capability interface consumed by the change feed and the CLI."""

    @abc.abstractmethod
    def diff(self, path: str) -> DiffEntry:
        """Classify one absolute path; failures are carried in ``error``."""

    @abc.abstractmethod
    def dirty_files(self) -> list[DiffEntry]:
        """Snapshot all files with uncommitted changes."""

    @abc.abstractmethod
    def repo_roots(self) -> list[str]:
        """Repository roots, most specific first."""

    @abc.abstractmethod
    def clear_cache(self) -> None:
        """Drop every cached classification."""


class SingleRepo(Differ):
    """Differ for a directory that is itself inside a git work tree."""

    def __init__(
        self,
        root: str,
        *,
        freshness_seconds: float = CACHE_FRESHNESS_SECONDS,
        timeout_seconds: float = GIT_TIMEOUT_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        if not is_git_repo(root):
            raise NoRepositoryError(f"not a git repository: {root}")
        self.root = root
        self.engine = DiffEngine(
            root,
            repository=GitRepository(root, timeout_seconds),
            freshness_seconds=freshness_seconds,
            logger=logger,
        )

    def diff(self, path: str) -> DiffEntry:
        return self.engine.diff(path)

    def dirty_files(self) -> list[DiffEntry]:
        return self.engine.dirty_files()

    def repo_roots(self) -> list[str]:
        return [self.root]

    def clear_cache(self) -> None:
        self.engine.clear_cache()


@dataclass(frozen=True)
class RepoEntry:
    root: str
    name: str
    engine: DiffEngine


class MultiRepo(Differ):
    """Route paths across several repositories by longest root prefix."""

    def __init__(
        self,
        repos: Mapping[str, str],
        *,
        freshness_seconds: float = CACHE_FRESHNESS_SECONDS,
        timeout_seconds: float = GIT_TIMEOUT_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._log = logger if logger is not None else logging.getLogger(__name__)
        if not repos:
            raise NoRepositoryError("no git repositories found")

        entries: list[RepoEntry] = []
        for root, name in repos.items():
            if not is_git_repo(root):
                self._log.warning("skipping %s: not a valid git repository", root)
                continue
            engine = DiffEngine(
                root,
                name=name,
                repository=GitRepository(root, timeout_seconds),
                freshness_seconds=freshness_seconds,
                logger=logger,
            )
            entries.append(RepoEntry(root=root, name=name, engine=engine))

        if not entries:
            raise NoRepositoryError("no valid git repositories found")

        # Nested repositories must match before the parents that enclose them.
        entries.sort(key=lambda entry: len(entry.root), reverse=True)
        self._repos = entries

    @property
    def repos(self) -> list[RepoEntry]:
        return list(self._repos)

    def diff(self, path: str) -> DiffEntry:
        if path == GIT_OPERATION:
            return DiffEntry(file_path=path)
        for repo in self._repos:
            if _contains(repo.root, path):
                return replace(repo.engine.diff(path), repo=repo.name)
        return DiffEntry(file_path=path, timestamp=datetime.now(), error=UNKNOWN_REPO_ERROR)

    def dirty_files(self) -> list[DiffEntry]:
        combined: list[DiffEntry] = []
        for repo in self._repos:
            try:
                entries = repo.engine.dirty_files()
            except GitError as exc:
                self._log.warning("collecting dirty files failed in %s: %s", repo.root, exc)
                continue
            combined.extend(replace(entry, repo=repo.name) for entry in entries)
        return combined

    def repo_roots(self) -> list[str]:
        return [repo.root for repo in self._repos]

    def clear_cache(self) -> None:
        for repo in self._repos:
            repo.engine.clear_cache()


def open_differ(
    directory: str,
    *,
    freshness_seconds: float = CACHE_FRESHNESS_SECONDS,
    timeout_seconds: float = GIT_TIMEOUT_SECONDS,
    logger: logging.Logger | None = None,
) -> Differ:
    """Pick single- or multi-repository mode for ``directory``.

    Raises ``NoRepositoryError`` when ``directory`` is neither inside a
    repository nor a parent of any.
    """
    options = dict(freshness_seconds=freshness_seconds, timeout_seconds=timeout_seconds, logger=logger)
    if is_git_repo(directory):
        return SingleRepo(directory, **options)
    repos = discover_repos(directory)
    if not repos:
        raise NoRepositoryError(
            f"{directory} is not a git repository and contains no git repositories"
        )
    return MultiRepo(repos, **options)


__all__ = [
    "Differ",
    "MultiRepo",
    "RepoEntry",
    "SingleRepo",
    "UNKNOWN_REPO_ERROR",
    "find_repo_root",
    "open_differ",
]
