"""Decide whether a reconciled package directory differs from the hub's committed state.

The manifest is excluded: it embeds links that move with every crawl even
when no document changed.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath

from vexhub_crawler.constants import MANIFEST_FILE_NAME
from vexhub_crawler.integration.git_engine import GitRepository


def has_vex_changes(hub_root: Path | str, package_dir: Path | str) -> bool:
    """Return ``True`` if any non-manifest path under ``package_dir`` is modified or untracked.

    Git failures propagate; they must never be read as "unchanged".
    """
    repo = GitRepository.open(hub_root)
    relative = _relative_posix(repo.repo_path, Path(package_dir))

    status = repo.worktree_status(pathspec=None if relative == "." else relative)
    for file_path, entry in status.items():
        if not _is_under(file_path, relative):
            continue
        if PurePosixPath(file_path).name == MANIFEST_FILE_NAME:
            continue
        if not entry.is_unmodified:
            return True
    return False


def _relative_posix(root: Path, target: Path) -> str:
    resolved = Path(os.path.abspath(target))
    if resolved.exists():
        resolved = resolved.resolve()
    try:
        return resolved.relative_to(root).as_posix()
    except ValueError as exc:
        raise ValueError(f"{target} is not inside the hub repository {root}") from exc


def _is_under(file_path: str, directory: str) -> bool:
    if directory == ".":
        return True
    return file_path == directory or file_path.startswith(f"{directory}/")


__all__ = ["has_vex_changes"]
