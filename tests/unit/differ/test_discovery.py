"""Tests for repository discovery below a parent directory."""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path

from vibewatch.differ.discovery import discover_repos


class DiscoverReposTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.parent = Path(self._tmp.name).resolve()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def make_repo(self, rel: str) -> Path:
        repo = self.parent / rel
        (repo / ".git").mkdir(parents=True)
        return repo

    def test_finds_sibling_repositories(self) -> None:
        first = self.make_repo("alpha")
        second = self.make_repo("group/beta")
        (self.parent / "plain" / "src").mkdir(parents=True)

        repos = discover_repos(str(self.parent))

        self.assertEqual(repos, {str(first): "alpha", str(second): "beta"})

    def test_does_not_descend_into_a_repository(self) -> None:
        outer = self.make_repo("outer")
        self.make_repo("outer/vendor/inner")

        self.assertEqual(discover_repos(str(self.parent)), {str(outer): "outer"})

    def test_gitfile_marks_a_worktree_root(self) -> None:
        worktree = self.parent / "wt"
        worktree.mkdir()
        (worktree / ".git").write_text("gitdir: /elsewhere/.git/worktrees/wt\n", encoding="utf-8")

        self.assertEqual(discover_repos(str(self.parent)), {str(worktree): "wt"})

    def test_parent_that_is_itself_a_repository_is_reported(self) -> None:
        (self.parent / ".git").mkdir()

        self.assertEqual(discover_repos(str(self.parent)), {str(self.parent): self.parent.name})

    def test_empty_directory_has_no_repositories(self) -> None:
        self.assertEqual(discover_repos(str(self.parent)), {})

    def test_missing_directory_has_no_repositories(self) -> None:
        self.assertEqual(discover_repos(os.path.join(str(self.parent), "missing")), {})


if __name__ == "__main__":
    unittest.main()
