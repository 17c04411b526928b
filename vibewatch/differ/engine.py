"""Per-repository diff classification with a short-lived result cache."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from ..git import GitError, GitRepository
from ..types import GIT_OPERATION, DiffEntry

CACHE_FRESHNESS_SECONDS = 1.0
TRANSIENT_SUFFIXES = (".tmp", ".log", ".bak", ".swp")


@dataclass(frozen=True)
class CacheEntry:
    """Classification result plus the monotonic time it was computed."""

    diff: str
    timestamp: float
    error: str
    is_new: bool
    is_deleted: bool = False


class DiffEngine:
    """Classify the change state of files in one repository.

    Results are cached per absolute path for ``freshness_seconds`` so bursts
    of events for a hot file do not hammer git. Two concurrent misses for the
    same path may both call git; the later write simply wins.
    """

    def __init__(
        self,
        root: str,
        *,
        name: str = "",
        repository: GitRepository | None = None,
        freshness_seconds: float = CACHE_FRESHNESS_SECONDS,
        logger: logging.Logger | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.root = root
        self.name = name
        self.repository = repository if repository is not None else GitRepository(root)
        self.freshness_seconds = freshness_seconds
        self._log = logger if logger is not None else logging.getLogger(__name__)
        self._monotonic = monotonic
        self._cache: dict[str, CacheEntry] = {}
        self._cache_lock = threading.Lock()

    def _cached(self, path: str) -> CacheEntry | None:
        with self._cache_lock:
            cached = self._cache.get(path)
        if cached is None:
            return None
        if self._monotonic() - cached.timestamp >= self.freshness_seconds:
            return None
        return cached

    def _store(self, entry: DiffEntry) -> DiffEntry:
        cached = CacheEntry(
            diff=entry.diff,
            timestamp=self._monotonic(),
            error=entry.error,
            is_new=entry.is_new,
            is_deleted=entry.is_deleted,
        )
        with self._cache_lock:
            self._cache[entry.file_path] = cached
        return entry

    def _entry(self, path: str, **fields) -> DiffEntry:
        return DiffEntry(file_path=path, repo=self.name, timestamp=datetime.now(), **fields)

    def diff(self, path: str) -> DiffEntry:
        """Return the classified diff for ``path``; never raises."""
        if path == GIT_OPERATION:
            return self._entry(path)

        cached = self._cached(path)
        if cached is not None:
            return self._entry(
                path,
                diff=cached.diff,
                error=cached.error,
                is_new=cached.is_new,
                is_deleted=cached.is_deleted,
            )

        rel_path = os.path.relpath(path, self.root)
        try:
            diff_text = self.repository.working_tree_diff(rel_path)
            if not diff_text:
                diff_text = self.repository.staged_diff(rel_path)
        except GitError as exc:
            self._log.debug("diff failed for %s: %s", path, exc)
            return self._store(self._entry(path, error=str(exc)))

        exists = os.path.lexists(path)
        if diff_text:
            return self._store(self._entry(path, diff=diff_text, is_deleted=not exists))

        if self.repository.is_tracked(rel_path):
            self._log.debug("file committed/clean, clearing diff: %s", path)
            return self._store(self._entry(path))

        if not exists:
            # An untracked file that vanished has nothing left to show.
            return self._store(self._entry(path, is_deleted=True))

        try:
            diff_text = self.repository.untracked_diff(path)
        except GitError as exc:
            self._log.debug("untracked diff failed for %s: %s", path, exc)
            return self._store(self._entry(path, error=str(exc)))
        return self._store(self._entry(path, diff=diff_text, is_new=True))

    def _listing(self, label: str, query: Callable[[], list[str]]) -> list[str]:
        try:
            return query()
        except GitError as exc:
            self._log.warning("listing %s paths failed in %s: %s", label, self.root, exc)
            return []

    def dirty_files(self) -> list[DiffEntry]:
        """Snapshot every file with uncommitted changes in this repository."""
        seen: set[str] = set()
        rel_paths: list[str] = []
        for label, query in (
            ("changed", self.repository.changed_paths),
            ("staged", self.repository.staged_paths),
            ("untracked", self.repository.untracked_paths),
        ):
            for rel_path in self._listing(label, query):
                if rel_path in seen:
                    continue
                seen.add(rel_path)
                rel_paths.append(rel_path)

        entries: list[DiffEntry] = []
        for rel_path in rel_paths:
            if rel_path.lower().endswith(TRANSIENT_SUFFIXES):
                continue
            entry = self.diff(os.path.join(self.root, rel_path))
            if entry.diff or entry.is_new:
                entries.append(entry)
        return entries

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()


__all__ = ["CACHE_FRESHNESS_SECONDS", "CacheEntry", "DiffEngine", "TRANSIENT_SUFFIXES"]
