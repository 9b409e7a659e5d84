"""Unit tests for hub filesystem helpers."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from vexhub_crawler.utils.fs import atomic_write, is_within, move_file, safe_delete

if TYPE_CHECKING:
    from pathlib import Path


def test_atomic_write_replaces_content_without_leftovers(tmp_path: Path) -> None:
    target_dir = tmp_path / "out"
    target_dir.mkdir()
    target = target_dir / "manifest.json"

    atomic_write(target, "first")
    atomic_write(target, b"second")

    assert target.read_text(encoding="utf-8") == "second"
    assert [entry.name for entry in target_dir.iterdir()] == ["manifest.json"]


def test_atomic_write_requires_existing_parent(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        atomic_write(tmp_path / "missing" / "file.json", "{}")


@pytest.mark.parametrize(
    ("child", "parent", "expected"),
    [
        ("/hub/pkg/npm/x", "/hub", True),
        ("/hub", "/hub", True),
        ("/hub/pkg/../../etc", "/hub", False),
        ("/hubby/pkg", "/hub", False),
        ("/hub/pkg/./npm", "/hub/pkg", True),
    ],
)
def test_is_within_is_lexical(child: str, parent: str, expected: bool) -> None:
    assert is_within(child, parent) is expected


def test_safe_delete_removes_files_and_trees(tmp_path: Path) -> None:
    root = tmp_path / "root"
    (root / "tree" / "nested").mkdir(parents=True)
    (root / "tree" / "nested" / "doc.json").write_text("{}", encoding="utf-8")
    (root / "file.json").write_text("{}", encoding="utf-8")

    safe_delete(root / "tree", root)
    safe_delete(root / "file.json", root)

    assert list(root.iterdir()) == []


def test_safe_delete_refuses_root_and_outside_paths(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    outside = tmp_path / "outside.json"
    outside.write_text("{}", encoding="utf-8")

    with pytest.raises(ValueError, match="refusing to delete"):
        safe_delete(root, root)
    with pytest.raises(ValueError, match="refusing to delete"):
        safe_delete(root / ".." / "outside.json", root)
    assert outside.exists()


def test_safe_delete_unlinks_symlink_only(tmp_path: Path) -> None:
    root = tmp_path / "root"
    root.mkdir()
    target = tmp_path / "target"
    target.mkdir()
    (target / "keep.json").write_text("{}", encoding="utf-8")
    os.symlink(target, root / "link")

    safe_delete(root / "link", root)

    assert not (root / "link").exists()
    assert (target / "keep.json").exists()


def test_move_file_replaces_destination(tmp_path: Path) -> None:
    source = tmp_path / "source.json"
    source.write_text("new", encoding="utf-8")
    destination = tmp_path / "destination.json"
    destination.write_text("old", encoding="utf-8")

    assert move_file(source, destination) == destination
    assert destination.read_text(encoding="utf-8") == "new"
    assert not source.exists()


def test_move_file_falls_back_to_copy_across_devices(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    source = tmp_path / "source.json"
    source.write_text("payload", encoding="utf-8")
    destination_dir = tmp_path / "dest"
    destination_dir.mkdir()
    destination = destination_dir / "doc.json"

    real_replace = os.replace

    def replace(src: object, dst: object) -> None:
        if os.fspath(src) == os.fspath(source):  # type: ignore[arg-type]
            raise OSError(18, "Invalid cross-device link")
        real_replace(src, dst)  # type: ignore[arg-type]

    monkeypatch.setattr(os, "replace", replace)

    move_file(source, destination)

    assert destination.read_text(encoding="utf-8") == "payload"
    assert not source.exists()
    assert [entry.name for entry in destination_dir.iterdir()] == ["doc.json"]


def test_move_file_rejects_directories(tmp_path: Path) -> None:
    with pytest.raises(IsADirectoryError):
        move_file(tmp_path, tmp_path / "elsewhere")
