"""
vexhub-crawler — filesystem utilities

File: src/vexhub_crawler/utils/fs.py

Purpose
- Atomic writes for hub artifacts, guarded deletion inside a package directory,
  and relocation of accepted documents into the hub.

Functional requirements
- Atomic writes use temp files in the destination directory and replace in a single step.
- Deletion refuses paths outside the directory being reconciled.
- Relocation works across filesystems (scratch space is usually on a different mount).
"""

from __future__ import annotations

import contextlib
import os
import shutil
import tempfile
from pathlib import Path

PathLike = str | os.PathLike[str]

__all__ = [
    "atomic_write",
    "is_within",
    "move_file",
    "safe_delete",
]


def atomic_write(path: PathLike, data: bytes | str, *, encoding: str = "utf-8") -> None:
    """
    Atomically write ``data`` to ``path``.

    The write strategy is:
    1. create temp file in the same directory,
    2. write + flush + fsync file data,
    3. replace target via ``os.replace``.
    """

    target = Path(path)
    target_parent = target.parent.resolve(strict=True)
    if not target_parent.is_dir():
        raise NotADirectoryError(f"{target_parent!s} is not a directory")

    fd, temp_name = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=str(target_parent),
    )
    temp_path = Path(temp_name)

    try:
        mode = "wb" if isinstance(data, bytes) else "w"
        with os.fdopen(fd, mode, encoding=None if isinstance(data, bytes) else encoding) as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())

        os.replace(temp_path, target)
        _fsync_directory(target_parent)
    except Exception:
        with contextlib.suppress(OSError):
            temp_path.unlink(missing_ok=True)
        raise


def is_within(child: PathLike, parent: PathLike) -> bool:
    """Return ``True`` if ``child`` is lexically inside (or equal to) ``parent``.

    Neither path has to exist; both are made absolute and normalized first.
    """

    resolved_parent = Path(os.path.normpath(os.path.abspath(parent)))
    resolved_child = Path(os.path.normpath(os.path.abspath(child)))
    return _is_relative_to(resolved_child, resolved_parent)


def safe_delete(path: PathLike, root: PathLike) -> None:
    """
    Delete ``path`` only if it is contained within ``root``.

    Symlinks are unlinked without traversing into their targets.
    """

    base = Path(root).resolve(strict=True)
    if not base.is_dir():
        raise NotADirectoryError(f"{base!s} is not a directory")

    target = Path(path)
    candidate = target.parent.resolve(strict=True) / target.name
    if candidate == base or not _is_relative_to(candidate, base):
        raise ValueError(f"refusing to delete path outside {base!s}: {target!s}")

    if target.is_symlink():
        target.unlink()
        return

    if target.is_dir():
        shutil.rmtree(target)
        return

    target.unlink()


def move_file(source: PathLike, destination: PathLike) -> Path:
    """Move a single regular file, replacing ``destination`` if it exists."""

    src = Path(source)
    dst = Path(destination)
    if not src.is_file() or src.is_symlink():
        raise IsADirectoryError(f"{src!s} is not a regular file")
    try:
        os.replace(src, dst)
    except OSError:
        # Cross-device: copy next to the target, then swap in atomically.
        fd, temp_name = tempfile.mkstemp(prefix=f".{dst.name}.", suffix=".tmp", dir=dst.parent)
        os.close(fd)
        try:
            shutil.copyfile(src, temp_name)
            os.replace(temp_name, dst)
        except Exception:
            with contextlib.suppress(OSError):
                Path(temp_name).unlink(missing_ok=True)
            raise
        src.unlink()
    return dst


def _is_relative_to(child: Path, parent: Path) -> bool:
    try:
        child.relative_to(parent)
    except ValueError:
        return False
    return True


def _fsync_directory(path: Path) -> None:
    """
    Best-effort directory fsync for metadata durability after ``os.replace``.

    Some platforms/filesystems do not support fsync on directories.
    """

    if os.name == "nt":
        return

    flags = os.O_RDONLY
    if hasattr(os, "O_DIRECTORY"):
        flags |= os.O_DIRECTORY

    try:
        dir_fd = os.open(path, flags)
    except OSError:
        return

    try:
        os.fsync(dir_fd)
    except OSError:
        return
    finally:
        os.close(dir_fd)
