"""Crawl data model: source locators, provenance records, manifests, results."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Final
from urllib.parse import parse_qs, urlsplit, urlunsplit

if TYPE_CHECKING:
    from collections.abc import Mapping

_FORCED_GETTER_RE: Final[re.Pattern[str]] = re.compile(r"^([A-Za-z0-9]+)::(.+)$")
_SUPPORTED_GETTERS: Final[frozenset[str]] = frozenset({"git", "file"})
_GITHUB_SHORTHAND_PREFIX: Final[str] = "github.com/"


class SourceLocationError(ValueError):
    """Raised when a source locator cannot be parsed."""


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """
    Where a package's source lives.

    Locators use the go-getter conventions: an optional forced getter prefix
    (``git::``), a ``//sub/dir`` suffix selecting a subdirectory, a ``?ref=``
    query selecting a revision, and ``github.com/org/repo`` shorthand.
    """

    raw: str
    getter: str
    url: str
    subdir: str = ""
    ref: str | None = None

    @classmethod
    def parse(cls, value: str) -> SourceLocation:
        raw = value.strip() if isinstance(value, str) else ""
        if not raw:
            raise SourceLocationError("source locator must be a non-empty string")

        forced: str | None = None
        body = raw
        match = _FORCED_GETTER_RE.match(raw)
        if match is not None:
            forced = match.group(1).lower()
            body = match.group(2)
            if forced not in _SUPPORTED_GETTERS:
                raise SourceLocationError(f"{raw}: unsupported getter {forced!r}")

        if body.startswith(_GITHUB_SHORTHAND_PREFIX):
            body = _expand_github_shorthand(body)
            forced = forced or "git"

        body, subdir = _split_subdir(body)
        getter = forced or _detect_getter(body)

        parts = urlsplit(body)
        refs = parse_qs(parts.query).get("ref") if parts.scheme else None
        ref = refs[0] if refs else None

        normalized_subdir = PurePosixPath(subdir).as_posix() if subdir else ""
        if normalized_subdir == ".":
            normalized_subdir = ""
        if ".." in PurePosixPath(normalized_subdir).parts:
            raise SourceLocationError(f"{raw}: subdirectory must not contain '..'")

        return cls(raw=raw, getter=getter, url=body, subdir=normalized_subdir, ref=ref)

    @property
    def clone_url(self) -> str:
        """The fetchable URL without query parameters."""
        if self.getter == "file":
            return self.local_path.as_posix()
        parts = urlsplit(self.url)
        return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))

    @property
    def local_path(self) -> Path:
        parts = urlsplit(self.url)
        if parts.scheme == "file":
            return Path(parts.path)
        return Path(self.url).expanduser()

    def __str__(self) -> str:
        return self.raw


@dataclass(frozen=True, slots=True)
class Source:
    """Provenance of one accepted VEX document."""

    path: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "url": self.url}

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> Source:
        path = payload.get("path")
        url = payload.get("url")
        if not isinstance(path, str) or not isinstance(url, str):
            raise ValueError("source entries require string 'path' and 'url'")
        return cls(path=path, url=url)


@dataclass(frozen=True, slots=True)
class Manifest:
    """Per-package record of the identifier and the provenance of each document."""

    id: str
    sources: tuple[Source, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {"id": self.id, "sources": [source.to_dict() for source in self.sources]}

    @classmethod
    def from_dict(cls, payload: Mapping[str, object]) -> Manifest:
        identifier = payload.get("id")
        raw_sources = payload.get("sources") or []
        if not isinstance(identifier, str) or not identifier:
            raise ValueError("manifest requires a non-empty string 'id'")
        if not isinstance(raw_sources, list):
            raise ValueError("manifest 'sources' must be a list")
        sources: list[Source] = []
        for item in raw_sources:
            if not isinstance(item, dict):
                raise ValueError("manifest 'sources' entries must be objects")
            sources.append(Source.from_dict(item))
        return cls(id=identifier, sources=tuple(sources))


class CrawlState(StrEnum):
    """Lifecycle of a single package crawl."""

    INIT = "init"
    FETCHED = "fetched"
    RECONCILED = "reconciled"
    SCANNING = "scanning"
    FOUND = "found"
    NOT_FOUND = "not_found"
    UNCHANGED = "unchanged"
    MANIFEST_WRITTEN = "manifest_written"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class CrawlResult:
    """Outcome of a successful crawl."""

    purl: str
    destination: Path
    state: CrawlState
    sources: tuple[Source, ...] = field(default_factory=tuple)
    permalink: str | None = None

    @property
    def manifest_written(self) -> bool:
        return self.state is CrawlState.MANIFEST_WRITTEN


def _expand_github_shorthand(body: str) -> str:
    path, sep, query = body.partition("?")
    segments = path.split("/")
    # github.com/<owner>/<repo>[//subdir]
    if len(segments) >= 3 and not segments[2].endswith(".git"):
        segments[2] = f"{segments[2]}.git"
    expanded = "https://" + "/".join(segments)
    return f"{expanded}{sep}{query}"


def _split_subdir(body: str) -> tuple[str, str]:
    offset = 0
    scheme_idx = body.find("://")
    if scheme_idx > -1:
        offset = scheme_idx + 3

    idx = body.find("//", offset)
    if idx == -1:
        return body, ""

    subdir = body[idx + 2 :]
    source = body[:idx]
    query_idx = subdir.find("?")
    if query_idx > -1:
        source += subdir[query_idx:]
        subdir = subdir[:query_idx]
    return source, subdir


def _detect_getter(body: str) -> str:
    parts = urlsplit(body)
    if parts.scheme == "file":
        return "file"
    if parts.scheme in {"http", "https", "ssh", "git"}:
        return "git"
    if "://" not in body and (body.startswith(("/", ".", "~")) or Path(body).exists()):
        return "file"
    if re.match(r"^[\w.-]+@[\w.-]+:", body):
        return "git"
    raise SourceLocationError(f"{body}: cannot determine how to fetch this locator")


__all__ = [
    "CrawlResult",
    "CrawlState",
    "Manifest",
    "Source",
    "SourceLocation",
    "SourceLocationError",
]
