"""Filesystem watcher that debounces events into path batches.

watchdog's observer thread delivers raw notifications to ``handle_event``.
Accepted paths accumulate in a pending set; a ``Debouncer`` flushes that set
onto a bounded ``ChangeChannel`` once events stop for a full interval. Writes
to ``.git/HEAD`` or ``.git/index`` are reported as the ``GIT_OPERATION``
sentinel instead of a file path.
Ignored trees hold no OS watches; see ``Watcher._register_tree``.
"""

from __future__ import annotations

import enum
import logging
import os
import threading
from collections.abc import Callable
from dataclasses import dataclass

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    DirCreatedEvent,
    DirDeletedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from ..types import GIT_OPERATION
from .channel import CHANNEL_CAPACITY, ChangeChannel
from .debounce import DEBOUNCE_SECONDS, Debouncer
from .filter import is_git_state_file

OBSERVER_JOIN_SECONDS = 2.0
# Each watch costs an emitter thread and, on Linux, an inotify instance.
WATCH_BUDGET = 32


class EventKind(enum.Enum):
    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"
    RENAME = "rename"
    OTHER = "other"


CHANGE_KINDS = frozenset({EventKind.CREATE, EventKind.WRITE, EventKind.REMOVE, EventKind.RENAME})

# Opens and closes are excluded; git reads .git/index on every query.
CHANGE_EVENT_CLASSES = [
    FileCreatedEvent,
    FileModifiedEvent,
    FileDeletedEvent,
    FileMovedEvent,
    DirCreatedEvent,
    DirDeletedEvent,
    DirMovedEvent,
]

_KIND_BY_EVENT_TYPE = {
    EVENT_TYPE_CREATED: EventKind.CREATE,
    EVENT_TYPE_MODIFIED: EventKind.WRITE,
    EVENT_TYPE_DELETED: EventKind.REMOVE,
}


@dataclass(frozen=True)
class RawEvent:
    """One OS notification reduced to what the coalescer needs."""

    path: str
    kind: EventKind
    is_directory: bool = False


def raw_events_from_watchdog(event: FileSystemEvent) -> list[RawEvent]:
    """Translate a watchdog event; a move becomes a rename plus a create."""
    src_path = os.fsdecode(event.src_path)
    if event.event_type == EVENT_TYPE_MOVED:
        dest_path = os.fsdecode(event.dest_path)
        return [
            RawEvent(src_path, EventKind.RENAME, event.is_directory),
            RawEvent(dest_path, EventKind.CREATE, event.is_directory),
        ]
    kind = _KIND_BY_EVENT_TYPE.get(event.event_type, EventKind.OTHER)
    return [RawEvent(src_path, kind, event.is_directory)]


def _mark_with_ancestors(marked: set[str], path: str, top: str) -> None:
    while path not in marked:
        marked.add(path)
        if path == top:
            return
        path = os.path.dirname(path)


class _EventForwarder(FileSystemEventHandler):
    def __init__(self, watcher: Watcher) -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            for raw in raw_events_from_watchdog(event):
                self._watcher.handle_event(raw)
        except Exception:
            # Notification errors must not kill the observer thread.
            self._watcher.log.debug("dropping event %r", event, exc_info=True)


class Watcher:
    """Watch ``root`` and publish changed paths on ``changes``.

    Paths inside one batch come out in no particular order; batches are
    delivered in the order they were flushed. ``close`` stops the observer,
    aborts a flush blocked on a full channel and is safe to call twice.
    """

    def __init__(
        self,
        root: str,
        should_ignore: Callable[[str], bool],
        *,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        capacity: int = CHANNEL_CAPACITY,
        logger: logging.Logger | None = None,
        observer_factory: Callable[[], object] = Observer,
        watch_budget: int = WATCH_BUDGET,
    ) -> None:
        self.root = os.path.normpath(root)
        self._should_ignore = should_ignore
        self.log = logger if logger is not None else logging.getLogger(__name__)
        self._changes = ChangeChannel(capacity)
        self._done = threading.Event()
        self._dirs_lock = threading.Lock()
        self._registered: set[str] = set()
        self._pending_lock = threading.Lock()
        self._pending: set[str] = set()
        self._watch_budget = watch_budget
        self._watch_lock = threading.Lock()
        self._watches: dict[str, tuple[object, bool]] = {}
        self._forwarder = _EventForwarder(self)
        self._debouncer = Debouncer(
            self._flush,
            debounce_seconds,
            name="vibewatch-batch",
            logger=self.log,
        )

        plan = self._register_tree(self.root)
        self.log.debug("registered %d directories under %s", len(self._registered), self.root)

        self._observer = observer_factory()
        self._watch(plan)
        self._observer.start()

    @property
    def changes(self) -> ChangeChannel:
        return self._changes

    @property
    def registered_dirs(self) -> frozenset[str]:
        with self._dirs_lock:
            return frozenset(self._registered)

    @property
    def watched_dirs(self) -> dict[str, bool]:
        """Scheduled watch paths mapped to whether each is recursive."""
        with self._watch_lock:
            return {path: recursive for path, (_watch, recursive) in self._watches.items()}

    def pending(self) -> frozenset[str]:
        with self._pending_lock:
            return frozenset(self._pending)

    def _register_tree(self, top: str) -> list[tuple[str, bool]]:
        """Register the accepted directories under ``top`` and plan their watches.

        A directory whose whole subtree passed the filter is covered by one
        recursive watch. A directory with ignored descendants gets a
        non-recursive watch of its own and its kept children are planned in
        turn, so pruned trees hold no OS watches.
        """
        children: dict[str, list[str]] = {}
        partial: set[str] = set()
        for dirpath, dirnames, _filenames in os.walk(top):
            dirpath = os.path.normpath(dirpath)
            with self._dirs_lock:
                self._registered.add(dirpath)
            kept = [name for name in dirnames if not self._should_ignore(os.path.join(dirpath, name))]
            if len(kept) < len(dirnames):
                _mark_with_ancestors(partial, dirpath, top)
            dirnames[:] = kept
            children[dirpath] = [os.path.join(dirpath, name) for name in kept]

        plan: list[tuple[str, bool]] = []
        stack = [top] if top in children else []
        while stack:
            path = stack.pop()
            if path not in partial:
                plan.append((path, True))
                continue
            plan.append((path, False))
            # Symlinked directories are listed but never walked.
            stack.extend(child for child in children[path] if child in children)
        return plan

    def _covered(self, path: str) -> bool:
        # Caller holds _watch_lock.
        while True:
            entry = self._watches.get(path)
            if entry is not None and entry[1]:
                return True
            parent = os.path.dirname(path)
            if parent == path:
                return False
            path = parent

    def _schedule(self, path: str, recursive: bool) -> None:
        watch = self._observer.schedule(
            self._forwarder,
            path,
            recursive=recursive,
            event_filter=CHANGE_EVENT_CLASSES,
        )
        self._watches[path] = (watch, recursive)

    def _watch(self, plan: list[tuple[str, bool]]) -> None:
        with self._watch_lock:
            plan = [(path, recursive) for path, recursive in plan if not self._covered(path)]
            if len(self._watches) + len(plan) <= self._watch_budget:
                for path, recursive in plan:
                    self._schedule(path, recursive)
                return

            self.log.debug(
                "%d watches exceed the budget of %d, watching %s recursively",
                len(self._watches) + len(plan),
                self._watch_budget,
                self.root,
            )
            for watch, _recursive in self._watches.values():
                self._observer.unschedule(watch)
            self._watches = {}
            self._schedule(self.root, True)

    def _unwatch_tree(self, top: str) -> None:
        prefix = top + os.sep
        with self._watch_lock:
            for path in [p for p in self._watches if p == top or p.startswith(prefix)]:
                watch, _recursive = self._watches.pop(path)
                self._observer.unschedule(watch)

    def _unregister_tree(self, top: str) -> None:
        prefix = top + os.sep
        with self._dirs_lock:
            self._registered = {
                path for path in self._registered if path != top and not path.startswith(prefix)
            }

    def _is_watched(self, path: str) -> bool:
        with self._dirs_lock:
            return os.path.dirname(path) in self._registered

    def handle_event(self, event: RawEvent) -> None:
        if self._done.is_set():
            return
        # Before the filter: non-change events never reach git check-ignore.
        if event.kind not in CHANGE_KINDS:
            return
        path = os.path.normpath(event.path)
        if not self._is_watched(path):
            return
        if self._should_ignore(path):
            return

        if event.is_directory:
            if event.kind is EventKind.CREATE:
                self._watch(self._register_tree(path))
            elif event.kind in (EventKind.REMOVE, EventKind.RENAME):
                self._unregister_tree(path)
                self._unwatch_tree(path)
            return

        if is_git_state_file(path):
            self.log.debug("git metadata changed (%s), requesting full refresh", path)
            self._add_pending(GIT_OPERATION)
            return

        self._add_pending(path)

    def _add_pending(self, item: str) -> None:
        with self._pending_lock:
            self._pending.add(item)
        self._debouncer.schedule()

    def _flush(self) -> None:
        with self._pending_lock:
            batch = self._pending
            self._pending = set()
        if not batch:
            return

        self.log.debug("processing batch of %d changes", len(batch))
        for item in batch:
            if self._done.is_set() or not self._changes.put(item):
                self.log.debug("shutdown during flush, dropping rest of batch")
                return

    def close(self) -> None:
        if self._done.is_set():
            return
        self._done.set()
        self._changes.close()
        self._debouncer.close()
        self._observer.stop()
        self._observer.join(OBSERVER_JOIN_SECONDS)

    def __enter__(self) -> Watcher:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = [
    "CHANGE_EVENT_CLASSES",
    "CHANGE_KINDS",
    "EventKind",
    "RawEvent",
    "WATCH_BUDGET",
    "Watcher",
    "raw_events_from_watchdog",
]
