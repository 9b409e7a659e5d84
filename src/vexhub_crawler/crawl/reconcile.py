"""Reset a hub package directory before documents are placed into it."""

from __future__ import annotations

from pathlib import Path

from vexhub_crawler.constants import MANIFEST_FILE_NAME
from vexhub_crawler.utils.fs import safe_delete


def reset_directory(directory: Path | str) -> tuple[Path, ...]:
    """Remove everything in ``directory`` except the manifest file, then ensure it exists.

    A missing directory is not an error. Returns the removed paths.
    """
    target = Path(directory)
    removed: list[Path] = []
    if target.is_dir():
        for entry in sorted(target.iterdir()):
            if entry.name == MANIFEST_FILE_NAME and entry.is_file() and not entry.is_symlink():
                continue
            safe_delete(entry, target)
            removed.append(entry)
    elif target.exists() or target.is_symlink():
        raise NotADirectoryError(f"{target} exists and is not a directory")

    target.mkdir(parents=True, exist_ok=True)
    return tuple(removed)


__all__ = ["reset_directory"]
