"""
vexhub-crawler — unit tests for the read-only git accessors.

File: tests/unit/integration/test_git_engine.py

Purpose
- Validate porcelain parsing and ``GitRepository`` queries over local temporary repositories.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from vexhub_crawler.integration.git_engine import (
    GitEngineError,
    GitRepository,
    NotARepositoryError,
    StatusEntry,
    parse_porcelain_status,
)

if TYPE_CHECKING:
    from pathlib import Path

    from conftest import GitHelper


def test_parse_porcelain_status_handles_renames_and_untracked() -> None:
    output = " M pkg/a.json\0?? pkg/new file.json\0R  pkg/renamed.json\0pkg/old.json\0D  gone\0"

    entries = parse_porcelain_status(output)

    assert entries == (
        StatusEntry(index=" ", worktree="M", path="pkg/a.json"),
        StatusEntry(index="?", worktree="?", path="pkg/new file.json"),
        StatusEntry(index="R", worktree=" ", path="pkg/renamed.json"),
        StatusEntry(index="D", worktree=" ", path="gone"),
    )
    assert [entry.is_unmodified for entry in entries] == [False, False, True, True]


def test_parse_porcelain_status_empty_output() -> None:
    assert parse_porcelain_status("") == ()


def test_parse_porcelain_status_rejects_garbage() -> None:
    with pytest.raises(GitEngineError, match="unexpected git status record"):
        parse_porcelain_status("garbage\0")


def test_open_requires_checkout_root(tmp_path: Path, git: GitHelper) -> None:
    repo = git.init(tmp_path / "repo")
    (repo / "sub").mkdir()

    assert GitRepository.open(repo).repo_path == repo.resolve()
    with pytest.raises(NotARepositoryError, match="inside the repository"):
        GitRepository.open(repo / "sub")


def test_open_rejects_plain_directories(tmp_path: Path) -> None:
    plain = tmp_path / "plain"
    plain.mkdir()

    with pytest.raises(NotARepositoryError, match="not a git repository"):
        GitRepository.open(plain)
    with pytest.raises(NotARepositoryError, match="not a directory"):
        GitRepository.open(tmp_path / "missing")


def test_remote_urls_and_head_revision(tmp_path: Path, git: GitHelper) -> None:
    repo_path = git.init(tmp_path / "repo")
    sha = git.commit(repo_path, {"README.md": "hello\n"}, "initial")
    repo = GitRepository.open(repo_path)

    assert repo.remote_urls("origin") == ()
    git.run(repo_path, "remote", "add", "origin", "https://github.com/org/repo.git")

    assert repo.remote_urls("origin") == ("https://github.com/org/repo.git",)
    assert repo.head_revision() == sha


def test_head_revision_fails_without_commits(tmp_path: Path, git: GitHelper) -> None:
    repo = GitRepository.open(git.init(tmp_path / "repo"))
    with pytest.raises(GitEngineError):
        repo.head_revision()


def test_worktree_status_filters_by_pathspec(tmp_path: Path, git: GitHelper) -> None:
    repo_path = git.init(tmp_path / "repo")
    git.commit(repo_path, {"pkg/a/openvex.json": "{}"}, "initial")
    (repo_path / "pkg" / "a" / "openvex.json").write_text('{"changed": true}', encoding="utf-8")
    (repo_path / "pkg" / "b").mkdir(parents=True)
    (repo_path / "pkg" / "b" / "vex.json").write_text("{}", encoding="utf-8")

    repo = GitRepository.open(repo_path)
    everything = repo.worktree_status()
    scoped = repo.worktree_status(pathspec="pkg/a")

    assert set(everything) == {"pkg/a/openvex.json", "pkg/b/vex.json"}
    assert everything["pkg/b/vex.json"].worktree == "?"
    assert set(scoped) == {"pkg/a/openvex.json"}
    assert scoped["pkg/a/openvex.json"].worktree == "M"
