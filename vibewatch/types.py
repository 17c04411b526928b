"""Value types shared by the watcher, the differ and consumers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

# Reserved path pushed instead of a concrete file when git metadata changes.
GIT_OPERATION = "__GIT_OPERATION__"


def _now() -> datetime:
    return datetime.now()


@dataclass(frozen=True)
class DiffEntry:
    """One observed file change with its classified diff.

    ``repo`` is the display name of the owning repository and stays empty in
    single-repository mode. Failures never raise; they are carried in
    ``error`` instead.
    """

    file_path: str
    repo: str = ""
    timestamp: datetime = field(default_factory=_now)
    diff: str = ""
    is_new: bool = False
    is_deleted: bool = False
    error: str = ""

    @property
    def is_clean(self) -> bool:
        """Whether the file settled to its committed state."""
        return not self.diff and not self.error and not self.is_new

    @property
    def is_git_operation(self) -> bool:
        return self.file_path == GIT_OPERATION


__all__ = ["DiffEntry", "GIT_OPERATION"]
