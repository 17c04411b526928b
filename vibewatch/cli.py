"""Command-line front door for vibewatch.

Parses CLI options, picks single- or multi-repository mode for the target
directory, and starts the watcher. Then streams classified diffs to stdout
until interrupted.
"""

from __future__ import annotations

import argparse
import os
import queue
import signal
import sys
import threading
from dataclasses import replace

from .config import load_settings, save_settings
from .differ import Differ, MultiRepo, open_differ
from .feed import ChangeFeed, EntryChanged, Snapshot
from .git import NoRepositoryError, current_branch
from .log import configure_logging
from .render import format_entry, format_snapshot
from .watcher import PathFilter, Watcher

POLL_SECONDS = 0.2


def _snapshot_limit(value: str) -> int:
    """Parse a snapshot size limit."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a whole number of entries: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"a snapshot must hold at least one entry, got {parsed}")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vibewatch",
        description="Watch a git repository (or a directory of repositories) and stream live diffs.",
    )
    parser.add_argument(
        "--dir",
        default=".",
        help="Directory to watch: a git repo or a parent of several repos (default: current directory).",
    )
    parser.add_argument("--max", type=_snapshot_limit, default=None, help="Maximum entries in a snapshot.")
    parser.add_argument("--style", default=None, help="Pygments style name for diff highlighting.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--once", action="store_true", help="Print current uncommitted changes and exit.")
    parser.add_argument("--log-level", default=None, help="Logging level (default: $VIBEWATCH_LOG_LEVEL or WARNING).")
    parser.add_argument("--log-file", default=None, help="Write logs to this file instead of stderr.")
    parser.add_argument(
        "--write-config",
        action="store_true",
        help="Persist the effective settings to the config file and exit.",
    )
    return parser


def describe_mode(directory: str, differ: Differ) -> list[str]:
    """Return human-readable lines describing what is being watched."""
    if isinstance(differ, MultiRepo):
        repos = sorted(differ.repos, key=lambda repo: repo.name)
        lines = [f"Multi-repo mode: watching {len(repos)} repositories in {directory}"]
        for repo in repos:
            branch = current_branch(repo.root) or "?"
            lines.append(f"  {repo.name} ({repo.root}) on {branch}")
        return lines
    branch = current_branch(directory) or "?"
    return [f"Watching {directory} on {branch}"]


def _install_stop_handlers(stop: threading.Event) -> None:
    def _handle(_signum, _frame) -> None:
        stop.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def stream_updates(
    feed: ChangeFeed,
    stop: threading.Event,
    *,
    color: bool,
    style: str,
    roots: list[str],
    out=None,
) -> None:
    """Print updates from ``feed`` until ``stop`` is set or the feed closes."""
    out = out if out is not None else sys.stdout
    while not stop.is_set():
        try:
            update = feed.next_update(timeout=POLL_SECONDS)
        except queue.Empty:
            continue
        if update is None:
            return
        if isinstance(update, Snapshot):
            title = "after git operation" if update.after_git_operation else "uncommitted changes"
            text = format_snapshot(update.entries, color=color, style=style, roots=roots, title=title)
        elif isinstance(update, EntryChanged):
            text = format_entry(update.entry, color=color, style=style, roots=roots)
        else:
            continue
        out.write(text + "\n")
        out.flush()


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run the watch pipeline.

    Exits with a message when the directory is invalid or holds no git
    repositories; otherwise runs until SIGINT/SIGTERM.
    """
    args = build_parser().parse_args(argv)
    logger = configure_logging(args.log_level, args.log_file)

    settings = load_settings()
    if args.max is not None:
        settings = replace(settings, max_entries=args.max)
    if args.style:
        settings = replace(settings, style=args.style)
    if args.write_config:
        save_settings(settings)
        return

    directory = os.path.abspath(args.dir)
    if not os.path.isdir(directory):
        raise SystemExit(f"Error: {directory} is not a valid directory")

    try:
        differ = open_differ(
            directory,
            freshness_seconds=settings.cache_freshness_seconds,
            timeout_seconds=settings.git_timeout_seconds,
            logger=logger,
        )
    except NoRepositoryError as exc:
        raise SystemExit(f"Error: {exc}\nPoint vibewatch at a git repo or a directory containing repos.")

    for line in describe_mode(directory, differ):
        print(line, file=sys.stderr)

    color = not args.no_color and sys.stdout.isatty()
    roots = differ.repo_roots()

    if args.once:
        entries = differ.dirty_files()[: settings.max_entries]
        print(format_snapshot(entries, color=color, style=settings.style, roots=roots))
        return

    path_filter = PathFilter(directory, roots)
    try:
        watcher = Watcher(
            directory,
            path_filter,
            debounce_seconds=settings.debounce_seconds,
            capacity=settings.channel_capacity,
            logger=logger,
        )
    except OSError as exc:
        raise SystemExit(f"Error starting watcher: {exc}")

    stop = threading.Event()
    _install_stop_handlers(stop)
    with watcher:
        feed = ChangeFeed(watcher.changes, differ, max_entries=settings.max_entries, logger=logger)
        print(format_snapshot(feed.snapshot().entries, color=color, style=settings.style, roots=roots))
        stream_updates(feed, stop, color=color, style=settings.style, roots=roots)


if __name__ == "__main__":
    main()
