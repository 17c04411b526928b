"""Watch a git work tree and stream per-file diffs as files change.

``vibewatch.watcher`` turns filesystem notifications into batches of changed
paths, ``vibewatch.differ`` turns paths into ``DiffEntry`` values and
``vibewatch.feed`` joins the two.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Run the ``vibewatch`` command; see ``vibewatch.cli.main``."""
    from .cli import main as _main

    return _main(*args, **kwargs)

__all__ = ["main"]
