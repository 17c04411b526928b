"""Turn the watcher's path stream into classified diff updates.

A concrete path becomes an ``EntryChanged``. The git-operation sentinel
clears every diff cache and yields a fresh ``Snapshot`` of dirty files, since
a commit, reset or checkout can change any file's state at once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from .differ import Differ
from .types import GIT_OPERATION, DiffEntry
from .watcher.channel import ChangeChannel


@dataclass(frozen=True)
class EntryChanged:
    entry: DiffEntry


@dataclass(frozen=True)
class Snapshot:
    entries: tuple[DiffEntry, ...]
    after_git_operation: bool = False


Update = EntryChanged | Snapshot


class ChangeFeed:
    def __init__(
        self,
        changes: ChangeChannel,
        differ: Differ,
        *,
        max_entries: int | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._changes = changes
        self._differ = differ
        self._max_entries = max_entries
        self._log = logger if logger is not None else logging.getLogger(__name__)

    def snapshot(self, *, after_git_operation: bool = False) -> Snapshot:
        entries = self._differ.dirty_files()
        if self._max_entries is not None:
            entries = entries[: self._max_entries]
        return Snapshot(entries=tuple(entries), after_git_operation=after_git_operation)

    def resolve(self, path: str) -> Update:
        if path == GIT_OPERATION:
            self._log.info("git operation detected, refreshing all files")
            self._differ.clear_cache()
            return self.snapshot(after_git_operation=True)
        entry = self._differ.diff(path)
        if entry.error:
            self._log.info("error getting diff for %s: %s", entry.file_path, entry.error)
        return EntryChanged(entry)

    def next_update(self, timeout: float | None = None) -> Update | None:
        """Block for the next update.

        Returns ``None`` once the channel is closed and drained; raises
        ``queue.Empty`` when ``timeout`` elapses first.
        """
        path = self._changes.get(timeout)
        if path is None:
            return None
        return self.resolve(path)

    def updates(self) -> Iterator[Update]:
        for path in self._changes:
            yield self.resolve(path)


__all__ = ["ChangeFeed", "EntryChanged", "Snapshot", "Update"]
