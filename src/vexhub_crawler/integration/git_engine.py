"""Read-only Git accessors over the git CLI for workspaces and the hub checkout."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

UNMODIFIED: Final[str] = " "
_RENAME_OR_COPY: Final[frozenset[str]] = frozenset({"R", "C"})


class GitEngineError(RuntimeError):
    """Base error for git accessor failures."""


class NotARepositoryError(GitEngineError):
    """Raised when a path is not the root of a git checkout."""


class GitCommandError(GitEngineError):
    """Raised when a git subprocess command exits non-zero."""

    def __init__(
        self,
        *,
        command: Sequence[str],
        returncode: int,
        stdout: str,
        stderr: str,
    ) -> None:
        self.command = tuple(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        message = f"git command failed ({returncode}): {' '.join(command)}"
        if stderr.strip():
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Normalized subprocess result for git wrapper behavior."""

    command: tuple[str, ...]
    cwd: str
    returncode: int
    stdout: str
    stderr: str


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """One ``git status --porcelain`` entry; paths are repository-relative POSIX paths."""

    index: str
    worktree: str
    path: str

    @property
    def is_unmodified(self) -> bool:
        return self.worktree == UNMODIFIED


def git_environment(overrides: Mapping[str, str] | None = None) -> dict[str, str]:
    env = os.environ.copy()
    env["GIT_TERMINAL_PROMPT"] = "0"
    env.setdefault("GIT_CONFIG_NOSYSTEM", "1")
    env.update(overrides or {})
    return env


class GitRepository:
    """Handle on an existing git checkout rooted exactly at ``repo_path``."""

    def __init__(
        self,
        repo_path: Path | str,
        *,
        env_overrides: Mapping[str, str] | None = None,
    ) -> None:
        self.repo_path = Path(repo_path).resolve()
        self._env_overrides = dict(env_overrides or {})

    @classmethod
    def open(
        cls,
        repo_path: Path | str,
        *,
        env_overrides: Mapping[str, str] | None = None,
    ) -> GitRepository:
        """Open ``repo_path`` as a checkout; parent repositories do not count."""
        path = Path(repo_path)
        if not path.is_dir():
            raise NotARepositoryError(f"not a directory: {path}")

        repo = cls(path, env_overrides=env_overrides)
        result = repo._run_git(["rev-parse", "--show-toplevel"], check=False)
        if result.returncode != 0:
            raise NotARepositoryError(f"not a git repository: {path}")
        toplevel = Path(result.stdout.strip()).resolve()
        if toplevel != repo.repo_path:
            raise NotARepositoryError(f"{path} is inside the repository at {toplevel}")
        return repo

    def remote_urls(self, name: str) -> tuple[str, ...]:
        """Configured URLs of remote ``name``, in configuration order."""
        result = self._run_git(["config", "--get-all", f"remote.{name}.url"], check=False)
        if result.returncode == 1:
            return ()
        if result.returncode != 0:
            raise GitCommandError(
                command=result.command,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        return tuple(line.strip() for line in result.stdout.splitlines() if line.strip())

    def head_revision(self) -> str:
        return self._run_git(["rev-parse", "--verify", "HEAD^{commit}"]).stdout.strip()

    def worktree_status(self, pathspec: str | None = None) -> dict[str, StatusEntry]:
        """Return porcelain status keyed by repository-relative path."""
        args = ["status", "--porcelain=v1", "-z", "--untracked-files=all"]
        if pathspec:
            args.extend(["--", pathspec])
        output = self._run_git(args).stdout
        return {entry.path: entry for entry in parse_porcelain_status(output)}

    def _run_git(
        self,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        check: bool = True,
    ) -> CommandResult:
        command = ("git", *args)
        run_cwd = (cwd if cwd is not None else self.repo_path).resolve()

        completed = subprocess.run(
            command,
            cwd=run_cwd,
            env=git_environment(self._env_overrides),
            text=True,
            capture_output=True,
            check=False,
        )

        result = CommandResult(
            command=command,
            cwd=run_cwd.as_posix(),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )

        if check and result.returncode != 0:
            raise GitCommandError(
                command=result.command,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        return result


def parse_porcelain_status(output: str) -> tuple[StatusEntry, ...]:
    """Parse ``git status --porcelain=v1 -z`` output."""
    entries: list[StatusEntry] = []
    fields = output.split("\0")
    position = 0
    while position < len(fields):
        record = fields[position]
        position += 1
        if not record:
            continue
        if len(record) < 4 or record[2] != " ":
            raise GitEngineError(f"unexpected git status record: {record!r}")

        index, worktree, path = record[0], record[1], record[3:]
        if index in _RENAME_OR_COPY or worktree in _RENAME_OR_COPY:
            # Renames and copies carry the source path as a separate record.
            position += 1
        entries.append(StatusEntry(index=index, worktree=worktree, path=path))
    return tuple(entries)


__all__ = [
    "UNMODIFIED",
    "CommandResult",
    "GitCommandError",
    "GitEngineError",
    "GitRepository",
    "NotARepositoryError",
    "StatusEntry",
    "git_environment",
    "parse_porcelain_status",
]
