"""Tests for diff entry rendering."""

from __future__ import annotations

import unittest
from datetime import datetime

from vibewatch.render import (
    display_path,
    entry_status,
    format_entry,
    format_snapshot,
    highlight_diff,
    sanitize_terminal_text,
)
from vibewatch.types import DiffEntry

STAMP = datetime(2024, 5, 1, 9, 30, 15)
DIFF = "--- a/a.py\n+++ b/a.py\n@@ -1 +1 @@\n-old\n+new"


class EntryStatusTests(unittest.TestCase):
    def test_status_precedence(self) -> None:
        cases = [
            (DiffEntry("/r/a", error="boom", diff="d", is_new=True), "error"),
            (DiffEntry("/r/a", diff="d", is_deleted=True), "deleted"),
            (DiffEntry("/r/a", diff="d", is_new=True), "new"),
            (DiffEntry("/r/a"), "clean"),
            (DiffEntry("/r/a", diff="d"), "modified"),
        ]
        for entry, expected in cases:
            with self.subTest(expected=expected):
                self.assertEqual(entry_status(entry), expected)


class DisplayPathTests(unittest.TestCase):
    def test_path_is_shortened_against_containing_root(self) -> None:
        entry = DiffEntry("/w/repo/src/a.py")

        self.assertEqual(display_path(entry, ["/w/repo"]), "src/a.py")

    def test_unrelated_path_is_left_absolute(self) -> None:
        entry = DiffEntry("/w/repo-two/a.py")

        self.assertEqual(display_path(entry, ["/w/repo"]), "/w/repo-two/a.py")
        self.assertEqual(display_path(entry), "/w/repo-two/a.py")


class FormatEntryTests(unittest.TestCase):
    def test_plain_header_and_body(self) -> None:
        entry = DiffEntry("/w/repo/a.py", repo="repo", timestamp=STAMP, diff=DIFF)

        text = format_entry(entry, color=False, roots=["/w/repo"])

        self.assertEqual(text.splitlines()[0], "09:30:15 [repo] a.py (modified)")
        self.assertTrue(text.endswith("+new"))

    def test_single_repo_entry_has_no_repo_tag(self) -> None:
        entry = DiffEntry("/w/repo/a.py", timestamp=STAMP)

        self.assertEqual(format_entry(entry, color=False), "09:30:15 /w/repo/a.py (clean)")

    def test_error_replaces_diff_body(self) -> None:
        entry = DiffEntry("/w/a.py", timestamp=STAMP, diff=DIFF, error="not a repo")

        lines = format_entry(entry, color=False).splitlines()

        self.assertEqual(lines[1:], ["  not a repo"])

    def test_color_output_highlights_diff(self) -> None:
        entry = DiffEntry("/w/a.py", timestamp=STAMP, diff=DIFF, is_new=True)

        text = format_entry(entry, color=True)

        self.assertIn("\x1b[", text)
        self.assertIn("(new)", text)
        self.assertIn("new", text)

    def test_control_bytes_in_paths_are_escaped(self) -> None:
        entry = DiffEntry("/w/evil\x1b[2Jname", timestamp=STAMP)

        header = format_entry(entry, color=False)

        self.assertNotIn("\x1b", header)
        self.assertIn("\\x1b", header)


class SnapshotAndHighlightTests(unittest.TestCase):
    def test_snapshot_banner_counts_entries(self) -> None:
        entries = [DiffEntry("/w/a.py", timestamp=STAMP, diff="d")]

        text = format_snapshot(entries, color=False)

        self.assertEqual(text.splitlines()[0], "== uncommitted changes: 1 file ==")

    def test_snapshot_banner_pluralizes_and_uses_title(self) -> None:
        text = format_snapshot([], color=False, title="after git operation")

        self.assertEqual(text, "== after git operation: 0 files ==")

    def test_unknown_style_falls_back(self) -> None:
        self.assertIn("\x1b[", highlight_diff(DIFF, style="no-such-style"))

    def test_sanitize_leaves_plain_text_alone(self) -> None:
        self.assertEqual(sanitize_terminal_text("tab\there"), "tab\there")
        self.assertEqual(sanitize_terminal_text("bell\x07"), "bell\\x07")


if __name__ == "__main__":
    unittest.main()
