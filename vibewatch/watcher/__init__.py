"""Filesystem change detection: filtering, debouncing and batching."""

from .channel import CHANNEL_CAPACITY, ChangeChannel
from .coalescer import CHANGE_KINDS, EventKind, RawEvent, Watcher, raw_events_from_watchdog
from .debounce import DEBOUNCE_SECONDS, DebounceState, Debouncer
from .filter import PathFilter, is_git_state_file

__all__ = [
    "CHANGE_KINDS",
    "CHANNEL_CAPACITY",
    "ChangeChannel",
    "DEBOUNCE_SECONDS",
    "DebounceState",
    "Debouncer",
    "EventKind",
    "PathFilter",
    "RawEvent",
    "Watcher",
    "is_git_state_file",
    "raw_events_from_watchdog",
]
