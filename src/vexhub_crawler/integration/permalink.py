"""Commit-pinned source links for fetched checkouts.

Resolution is best effort: any failure yields ``None`` and the reason is
reported through the caller's logger at debug level.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit, urlunsplit

import structlog

from vexhub_crawler.constants import PERMALINK_HOST, PERMALINK_REMOTE
from vexhub_crawler.integration.git_engine import GitEngineError, GitRepository

if TYPE_CHECKING:
    from pathlib import Path

_ACCEPTED_SCHEMES = frozenset({"https", "http", "ssh", "git", "git+ssh"})


@dataclass(frozen=True, slots=True)
class Permalink:
    """``https://github.com/<owner>/<repo>/blob/<revision>``."""

    base_url: str
    revision: str

    def join(self, relative_path: str) -> str:
        parts = urlsplit(self.base_url)
        path = posixpath.join(parts.path, relative_path.replace("\\", "/"))
        return urlunsplit((parts.scheme, parts.netloc, path, "", ""))

    def __str__(self) -> str:
        return self.base_url


def resolve_permalink(repo_dir: Path | str, *, logger: Any | None = None) -> Permalink | None:
    log = logger if logger is not None else structlog.get_logger(__name__)

    try:
        repo = GitRepository.open(repo_dir)
    except GitEngineError as exc:
        log.debug("permalink unavailable", reason="not a git checkout", error=str(exc))
        return None

    try:
        urls = repo.remote_urls(PERMALINK_REMOTE)
    except GitEngineError as exc:
        log.debug("permalink unavailable", reason="remote lookup failed", error=str(exc))
        return None
    if not urls:
        log.debug("permalink unavailable", reason=f"no {PERMALINK_REMOTE!r} remote")
        return None

    repo_path = _repository_path(urls[0])
    if repo_path is None:
        log.debug("permalink unavailable", reason="unsupported remote", remote=urls[0])
        return None

    try:
        revision = repo.head_revision()
    except GitEngineError as exc:
        log.debug("permalink unavailable", reason="no HEAD revision", error=str(exc))
        return None

    path = posixpath.join(repo_path, "blob", revision)
    return Permalink(
        base_url=urlunsplit(("https", PERMALINK_HOST, path, "", "")),
        revision=revision,
    )


def _repository_path(remote_url: str) -> str | None:
    try:
        parts = urlsplit(remote_url)
        host = parts.hostname
    except ValueError:
        return None
    if parts.scheme not in _ACCEPTED_SCHEMES or host != PERMALINK_HOST:
        return None

    path = parts.path.rstrip("/").removesuffix(".git")
    segments = [segment for segment in path.split("/") if segment]
    if len(segments) != 2:
        return None
    return "/" + "/".join(segments)


__all__ = ["Permalink", "resolve_permalink"]
