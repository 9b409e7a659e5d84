"""
vexhub-crawler — per-package crawl pipeline

File: src/vexhub_crawler/crawl/pipeline.py

Purpose
- Fetch a package's source into a scratch workspace, collect the VEX documents
  that are about that package, move them into the hub's package directory, and
  record their provenance in ``manifest.json`` when the directory changed.

Sequence
1. scratch workspace (always removed on exit)
2. fetch
3. permalink (best effort)
4. destination from the package identifier
5. reset destination (manifest preserved)
6. walk root: locator subdirectory, or its ``.vex`` directory when present
7. match / validate / move each candidate, collecting ``Source`` records
8. fail if nothing was accepted
9. skip the manifest when the hub shows no document changes
10. write the manifest

Concurrency
- One crawl is strictly sequential. Crawls sharing a hub checkout must be
  serialized by the caller from step 5 through step 10.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from vexhub_crawler.constants import MANIFEST_FILE_NAME, VEX_SOURCE_DIR, WORKSPACE_PREFIX
from vexhub_crawler.crawl.errors import (
    DestinationError,
    ErrorContext,
    FetchError,
    HubInspectionError,
    ManifestWriteError,
    NoStatementsError,
    NoVexFileFoundError,
    ReconcileError,
    RelocationError,
    VexValidationError,
    WalkError,
    WorkspaceError,
)
from vexhub_crawler.crawl.reconcile import reset_directory
from vexhub_crawler.domain.models import CrawlResult, CrawlState, Manifest, Source
from vexhub_crawler.domain.purl import PurlError, destination_parts
from vexhub_crawler.integration.change_detection import has_vex_changes
from vexhub_crawler.integration.fetcher import DefaultFetcher, SourceUnavailableError
from vexhub_crawler.integration.git_engine import GitEngineError
from vexhub_crawler.integration.permalink import Permalink, resolve_permalink
from vexhub_crawler.manifest import write_manifest
from vexhub_crawler.observability.logging import redact_url
from vexhub_crawler.utils.fs import is_within, move_file
from vexhub_crawler.vex.document import VexDocumentError
from vexhub_crawler.vex.matcher import match_path
from vexhub_crawler.vex.validator import ValidationOutcome, validate_document

if TYPE_CHECKING:
    from collections.abc import Iterator

    from packageurl import PackageURL

    from vexhub_crawler.domain.models import SourceLocation
    from vexhub_crawler.integration.fetcher import Fetcher
    from vexhub_crawler.utils.concurrency import CancellationToken

_SKIPPED_DIRS = frozenset({".git"})


@dataclass(frozen=True, slots=True)
class _Target:
    """Per-crawl values threaded through the walk."""

    purl: str
    location: SourceLocation
    workspace: Path
    package_dir: Path
    permalink: Permalink | None


async def crawl_package(
    hub_root: Path | str,
    location: SourceLocation,
    purl: PackageURL,
    *,
    fetcher: Fetcher | None = None,
    cancel_token: CancellationToken | None = None,
    logger: Any | None = None,
) -> CrawlResult:
    """Crawl one package into ``hub_root``.

    Raises a ``CrawlError`` subclass on failure and ``asyncio.CancelledError``
    when ``cancel_token`` fires during a suspension point.
    """
    purl_text = purl.to_string()
    url = redact_url(str(location))
    ctx = ErrorContext("crawl").with_fields(purl=purl_text, url=url)
    log = (logger if logger is not None else structlog.get_logger(__name__)).bind(
        purl=purl_text, url=url
    )

    try:
        scratch = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX))
    except OSError as exc:
        raise ctx.wrap(exc, "failed to create a temporary directory", WorkspaceError) from exc

    try:
        return await _crawl(
            Path(hub_root),
            location,
            purl,
            workspace=scratch / purl.name,
            fetcher=fetcher if fetcher is not None else DefaultFetcher(),
            cancel_token=cancel_token,
            ctx=ctx,
            log=log,
        )
    except BaseException as exc:
        log.debug("crawl state", state=CrawlState.FAILED.value, error=str(exc))
        raise
    finally:
        shutil.rmtree(scratch, ignore_errors=True)


async def _crawl(
    hub: Path,
    location: SourceLocation,
    purl: PackageURL,
    *,
    workspace: Path,
    fetcher: Fetcher,
    cancel_token: CancellationToken | None,
    ctx: ErrorContext,
    log: Any,
) -> CrawlResult:
    purl_text = purl.to_string()
    _enter(log, CrawlState.INIT, workspace=workspace.as_posix())

    if cancel_token is not None:
        cancel_token.raise_if_cancelled()
    try:
        await fetcher.fetch(location, workspace, cancel_token=cancel_token)
    except asyncio.CancelledError:
        raise
    except (GitEngineError, SourceUnavailableError, OSError, TimeoutError) as exc:
        raise ctx.wrap(exc, "download error", FetchError) from exc
    _enter(log, CrawlState.FETCHED)

    permalink = resolve_permalink(workspace, logger=log)
    if permalink is not None:
        ctx = ctx.with_fields(permalink=str(permalink))
        log = log.bind(permalink=str(permalink))

    try:
        package_dir = hub / Path(*destination_parts(purl).parts)
    except PurlError as exc:
        raise ctx.wrap(exc, "cannot compute the package directory", DestinationError) from exc
    if not is_within(package_dir, hub):
        raise ctx.error(f"{package_dir} escapes the hub root", DestinationError)
    ctx = ctx.with_fields(dir=package_dir.as_posix())
    log = log.bind(dir=package_dir.as_posix())

    if cancel_token is not None:
        cancel_token.raise_if_cancelled()
    try:
        removed = reset_directory(package_dir)
    except (OSError, ValueError) as exc:
        raise ctx.wrap(exc, "failed to reset the directory", ReconcileError) from exc
    _enter(log, CrawlState.RECONCILED, removed=len(removed))

    target = _Target(
        purl=purl_text,
        location=location,
        workspace=workspace,
        package_dir=package_dir,
        permalink=permalink,
    )
    root = _walk_root(workspace, location)
    _enter(log, CrawlState.SCANNING, root=root.as_posix())

    sources: list[Source] = []
    try:
        for file_path in _iter_files(root):
            if not match_path(file_path):
                continue
            source = _accept(file_path, target, ctx, log)
            if source is not None:
                sources.append(source)
    except OSError as exc:
        raise ctx.wrap(exc, "failed to walk the directory", WalkError) from exc

    if not sources:
        _enter(log, CrawlState.NOT_FOUND)
        raise ctx.error("no VEX file found", NoVexFileFoundError)
    _enter(log, CrawlState.FOUND, documents=len(sources))

    try:
        changed = has_vex_changes(hub, package_dir)
    except (GitEngineError, OSError, ValueError) as exc:
        raise ctx.wrap(exc, "failed to inspect hub changes", HubInspectionError) from exc

    state = CrawlState.UNCHANGED
    if changed:
        manifest = Manifest(id=purl_text, sources=tuple(sources))
        try:
            write_manifest(package_dir / MANIFEST_FILE_NAME, manifest)
        except OSError as exc:
            raise ctx.wrap(exc, "failed to write sources", ManifestWriteError) from exc
        state = CrawlState.MANIFEST_WRITTEN
    else:
        log.info("No changes in the VEX directory")
    _enter(log, state)

    return CrawlResult(
        purl=purl_text,
        destination=package_dir,
        state=state,
        sources=tuple(sources),
        permalink=str(permalink) if permalink is not None else None,
    )


def _accept(file_path: Path, target: _Target, ctx: ErrorContext, log: Any) -> Source | None:
    # Relative to the repository root, not to ".vex/".
    relative = file_path.relative_to(target.workspace).as_posix()
    file_ctx = ctx.with_fields(path=relative)

    log.info("Parsing VEX file", path=relative)
    try:
        outcome = validate_document(file_path, target.purl)
    except VexDocumentError as exc:
        raise file_ctx.wrap(exc, "failed to validate VEX file", VexValidationError) from exc

    if outcome.is_fatal:
        raise file_ctx.error("no statements found", NoStatementsError)
    if outcome is ValidationOutcome.PURL_MISMATCH:
        log.info("PURL does not match", path=relative)
        return None

    destination = target.package_dir / file_path.name
    try:
        move_file(file_path, destination)
    except OSError as exc:
        move_ctx = file_ctx.with_fields(source=str(file_path), target=str(destination))
        raise move_ctx.wrap(exc, "failed to rename", RelocationError) from exc

    return Source(path=relative, url=_source_url(relative, target.location, target.permalink))


def _source_url(relative: str, location: SourceLocation, permalink: Permalink | None) -> str:
    if permalink is None:
        return str(location)
    return permalink.join(relative)


def _walk_root(workspace: Path, location: SourceLocation) -> Path:
    root = workspace / location.subdir if location.subdir else workspace
    if (root / VEX_SOURCE_DIR).is_dir():
        return root / VEX_SOURCE_DIR
    return root


def _iter_files(root: Path) -> Iterator[Path]:
    """Yield regular files under ``root`` in lexical order.

    Only leaf files are ever moved out of the tree while it is being walked;
    each directory's listing is taken before any of its files are yielded.
    """

    def _raise(error: OSError) -> None:
        raise error

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames[:] = sorted(name for name in dirnames if name not in _SKIPPED_DIRS)
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if path.is_symlink():
                continue
            yield path


def _enter(log: Any, state: CrawlState, **fields: object) -> None:
    log.debug("crawl state", state=state.value, **fields)


__all__ = ["crawl_package"]
