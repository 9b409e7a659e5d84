"""Shared fixtures: an isolated git environment and helpers for throwaway repositories."""

from __future__ import annotations

import os
import subprocess
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path


class GitHelper:
    """Drive the git CLI against repositories created under ``tmp_path``."""

    def run(self, cwd: Path, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        completed = subprocess.run(
            ["git", *args],
            cwd=cwd,
            env=os.environ.copy(),
            text=True,
            capture_output=True,
            check=False,
        )
        if check and completed.returncode != 0:
            msg = (
                f"git command failed: git {' '.join(args)}\n"
                f"stdout:\n{completed.stdout}\nstderr:\n{completed.stderr}"
            )
            raise AssertionError(msg)
        return completed

    def init(self, path: Path, *, origin: str | None = None) -> Path:
        path.mkdir(parents=True, exist_ok=True)
        self.run(path, "init", "--quiet")
        if origin is not None:
            self.run(path, "remote", "add", "origin", origin)
        return path

    def commit(
        self, worktree: Path, files: dict[str, str] | None = None, message: str = "commit"
    ) -> str:
        for rel_path, content in (files or {}).items():
            target = worktree / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        self.run(worktree, "add", "--all")
        self.run(worktree, "commit", "--quiet", "--allow-empty", "-m", message)
        return self.head(worktree)

    def head(self, worktree: Path) -> str:
        return self.run(worktree, "rev-parse", "HEAD").stdout.strip()


@pytest.fixture(autouse=True)
def isolated_git_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    home = tmp_path / "home"
    xdg = tmp_path / "xdg"
    home.mkdir()
    xdg.mkdir()

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")
    for role in ("AUTHOR", "COMMITTER"):
        monkeypatch.setenv(f"GIT_{role}_NAME", "Test")
        monkeypatch.setenv(f"GIT_{role}_EMAIL", "test@example.invalid")
    for name in list(os.environ):
        if name.startswith("VEXHUB_"):
            monkeypatch.delenv(name)


@pytest.fixture
def git() -> GitHelper:
    return GitHelper()
