"""Unit tests for the VEX file-name predicate."""

from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from vexhub_crawler.vex.matcher import match_path


@pytest.mark.parametrize(
    "path",
    [
        "openvex.json",
        "vex.json",
        "foo.openvex.json",
        "foo.vex.json",
        "a/b/c/openvex.json",
        ".vex/app.vex.json",
        "/abs/dir/release-1.2.openvex.json",
    ],
)
def test_match_path_accepts_vex_names(path: str) -> None:
    assert match_path(path) is True


@pytest.mark.parametrize(
    "path",
    [
        "foo.json",
        "README.md",
        "vex.json.bak",
        "OPENVEX.JSON",
        "Vex.json",
        "myvex.json",
        "openvex.yaml",
        "vex.json/readme.txt",
    ],
)
def test_match_path_rejects_other_names(path: str) -> None:
    assert match_path(path) is False


def test_match_path_uses_base_name_only() -> None:
    assert match_path(Path("openvex.json") / "nested.txt") is False
    assert match_path(Path("nested") / "openvex.json") is True


_segment = st.text(
    alphabet=st.characters(blacklist_characters="/\\\x00", blacklist_categories=("Cs",)),
    min_size=1,
    max_size=12,
)


@given(directories=st.lists(_segment, max_size=4), stem=_segment)
def test_match_path_ignores_directory_components(directories: list[str], stem: str) -> None:
    prefix = "/".join(directories)
    name = f"{stem}.vex.json"
    candidate = f"{prefix}/{name}" if prefix else name
    assert match_path(candidate) is True


@given(name=_segment)
def test_match_path_requires_json_suffix(name: str) -> None:
    if name.endswith(".json"):
        return
    assert match_path(name) is False
