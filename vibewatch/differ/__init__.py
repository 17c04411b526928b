"""Diff classification, caching and repository routing.

``open_differ`` picks ``SingleRepo`` or ``MultiRepo`` for a directory.
Both expose the ``Differ`` contract consumed by ``vibewatch.feed``.
"""

from .discovery import discover_repos
from .engine import CACHE_FRESHNESS_SECONDS, CacheEntry, DiffEngine
from .router import (
    UNKNOWN_REPO_ERROR,
    Differ,
    MultiRepo,
    RepoEntry,
    SingleRepo,
    find_repo_root,
    open_differ,
)

__all__ = [
    "CACHE_FRESHNESS_SECONDS",
    "CacheEntry",
    "DiffEngine",
    "Differ",
    "MultiRepo",
    "RepoEntry",
    "SingleRepo",
    "UNKNOWN_REPO_ERROR",
    "discover_repos",
    "find_repo_root",
    "open_differ",
]
