"""Unit tests for source locators, manifests, and crawl results."""

from __future__ import annotations

from pathlib import Path

import pytest

from vexhub_crawler.domain.models import (
    CrawlResult,
    CrawlState,
    Manifest,
    Source,
    SourceLocation,
    SourceLocationError,
)


def test_github_shorthand_expands_to_https_clone_url() -> None:
    location = SourceLocation.parse("github.com/org/repo")

    assert location.getter == "git"
    assert location.clone_url == "https://github.com/org/repo.git"
    assert location.subdir == ""
    assert location.ref is None
    assert str(location) == "github.com/org/repo"


def test_forced_git_getter_with_subdir_and_ref() -> None:
    location = SourceLocation.parse("git::https://github.com/org/repo.git//sub/dir?ref=v1.0.0")

    assert location.getter == "git"
    assert location.subdir == "sub/dir"
    assert location.ref == "v1.0.0"
    assert location.clone_url == "https://github.com/org/repo.git"


def test_plain_https_url_is_git() -> None:
    location = SourceLocation.parse("https://gitlab.com/org/repo")
    assert location.getter == "git"
    assert location.subdir == ""


def test_scp_style_url_is_git() -> None:
    assert SourceLocation.parse("git@github.com:org/repo.git").getter == "git"


def test_local_directory_is_file(tmp_path: Path) -> None:
    location = SourceLocation.parse(str(tmp_path))
    assert location.getter == "file"
    assert location.local_path == tmp_path


def test_file_scheme_is_file(tmp_path: Path) -> None:
    location = SourceLocation.parse(f"file://{tmp_path.as_posix()}")
    assert location.getter == "file"
    assert location.local_path == tmp_path


@pytest.mark.parametrize("value", ["", "   ", "s3::bucket/key", "not a locator"])
def test_invalid_locators_are_rejected(value: str) -> None:
    with pytest.raises(SourceLocationError):
        SourceLocation.parse(value)


def test_subdir_must_not_escape() -> None:
    with pytest.raises(SourceLocationError, match=r"\.\."):
        SourceLocation.parse("https://github.com/org/repo.git//../etc")


def test_manifest_round_trips_through_dict() -> None:
    manifest = Manifest(
        id="pkg:golang/github.com/org/repo",
        sources=(Source(path=".vex/openvex.json", url="https://example.test/openvex.json"),),
    )
    payload = manifest.to_dict()

    assert payload == {
        "id": "pkg:golang/github.com/org/repo",
        "sources": [{"path": ".vex/openvex.json", "url": "https://example.test/openvex.json"}],
    }
    assert Manifest.from_dict(payload) == manifest


@pytest.mark.parametrize(
    "payload",
    [
        {"sources": []},
        {"id": "", "sources": []},
        {"id": "pkg:npm/x", "sources": {}},
        {"id": "pkg:npm/x", "sources": ["a"]},
        {"id": "pkg:npm/x", "sources": [{"path": "a"}]},
    ],
)
def test_manifest_from_dict_rejects_bad_shapes(payload: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        Manifest.from_dict(payload)


def test_crawl_result_reports_manifest_written() -> None:
    hub = Path("/hub")
    written = CrawlResult(purl="pkg:npm/x", destination=hub, state=CrawlState.MANIFEST_WRITTEN)
    unchanged = CrawlResult(purl="pkg:npm/x", destination=hub, state=CrawlState.UNCHANGED)

    assert written.manifest_written is True
    assert unchanged.manifest_written is False
