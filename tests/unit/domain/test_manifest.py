"""Unit tests for manifest persistence."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from vexhub_crawler.domain.models import Manifest, Source
from vexhub_crawler.manifest import read_manifest, write_manifest

if TYPE_CHECKING:
    from pathlib import Path


def test_written_manifest_is_pretty_json_with_trailing_newline(tmp_path: Path) -> None:
    manifest = Manifest(
        id="pkg:golang/github.com/org/repo",
        sources=(Source(path=".vex/openvex.json", url="https://github.com/org/repo/blob/a/x"),),
    )
    target = tmp_path / "manifest.json"

    write_manifest(target, manifest)

    text = target.read_text(encoding="utf-8")
    assert text.endswith("}\n")
    assert json.loads(text) == {
        "id": "pkg:golang/github.com/org/repo",
        "sources": [
            {"path": ".vex/openvex.json", "url": "https://github.com/org/repo/blob/a/x"}
        ],
    }
    assert read_manifest(target) == manifest


def test_write_replaces_previous_content(tmp_path: Path) -> None:
    package_dir = tmp_path / "pkg"
    package_dir.mkdir()
    target = package_dir / "manifest.json"
    write_manifest(target, Manifest(id="pkg:npm/a", sources=(Source("a.vex.json", "u"),)))
    write_manifest(target, Manifest(id="pkg:npm/a"))

    assert read_manifest(target).sources == ()
    assert [entry.name for entry in package_dir.iterdir()] == ["manifest.json"]


def test_read_rejects_non_object_root(tmp_path: Path) -> None:
    target = tmp_path / "manifest.json"
    target.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError, match="root must be an object"):
        read_manifest(target)
