"""
vexhub-crawler — source fetchers

File: src/vexhub_crawler/integration/fetcher.py

Purpose
- Materialize a package's source tree from a ``SourceLocation`` into a local path.

Functional requirements
- ``git`` locators are cloned with the git CLI; a ``ref`` is checked out after cloning.
- ``file`` locators are copied, including any ``.git`` directory, so local checkouts
  keep their history for permalink resolution.
- Every suspension point honors the cancellation token; child processes are killed
  when the crawl is cancelled.
- A cancelled local copy stops its worker thread before ``fetch`` returns.

Non-functional requirements
- No retries or rate limiting here; callers own retry policy.
"""

from __future__ import annotations

import asyncio
import shutil
import threading
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

import structlog

from vexhub_crawler.integration.git_engine import GitCommandError, git_environment
from vexhub_crawler.utils.concurrency import CancellationToken, run_cancellable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from vexhub_crawler.domain.models import SourceLocation


class SourceUnavailableError(RuntimeError):
    """Raised when a source tree cannot be materialized."""


class _CopyInterrupted(Exception):
    """Raised inside the copy thread once the crawl has been cancelled."""


class Fetcher(Protocol):
    async def fetch(
        self,
        location: SourceLocation,
        destination: Path,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> None: ...


@dataclass(slots=True)
class GitFetcher:
    """Clone git locators; shallow unless a specific ``ref`` is requested."""

    clone_depth: int | None = 1
    timeout_seconds: float | None = None
    logger: Any | None = None

    async def fetch(
        self,
        location: SourceLocation,
        destination: Path,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        log = self.logger if self.logger is not None else structlog.get_logger(__name__)
        args = ["clone", "--quiet"]
        if location.ref is None:
            args.append("--no-tags")
            if self.clone_depth:
                args.extend(["--depth", str(self.clone_depth)])
        args.extend(["--", location.clone_url, str(destination)])

        log.debug("cloning source", url=location.clone_url, ref=location.ref)
        await self._run(args, cwd=destination.parent, cancel_token=cancel_token)
        if location.ref is not None:
            await self._run(
                ["checkout", "--quiet", "--detach", location.ref],
                cwd=destination,
                cancel_token=cancel_token,
            )

    async def _run(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        cancel_token: CancellationToken | None,
    ) -> None:
        command = ("git", *args)
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=cwd,
            env=git_environment(),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await run_cancellable(
                process.communicate(),
                cancel_token,
                timeout_seconds=self.timeout_seconds,
            )
        except (asyncio.CancelledError, TimeoutError):
            await _terminate(process)
            raise

        if process.returncode != 0:
            raise GitCommandError(
                command=command,
                returncode=process.returncode if process.returncode is not None else -1,
                stdout=stdout.decode("utf-8", errors="replace"),
                stderr=stderr.decode("utf-8", errors="replace"),
            )


@dataclass(slots=True)
class LocalFetcher:
    """Copy a local directory tree."""

    async def fetch(
        self,
        location: SourceLocation,
        destination: Path,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        source = location.local_path
        if not source.is_dir():
            raise SourceUnavailableError(f"local source is not a directory: {source}")
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        stop = threading.Event()

        def copy_file(src: str, dst: str, *, follow_symlinks: bool = True) -> object:
            if stop.is_set():
                raise _CopyInterrupted(src)
            return shutil.copy2(src, dst, follow_symlinks=follow_symlinks)

        copying = asyncio.ensure_future(
            asyncio.to_thread(
                shutil.copytree, source, destination, symlinks=True, copy_function=copy_file
            )
        )
        try:
            await run_cancellable(asyncio.shield(copying), cancel_token)
        except asyncio.CancelledError:
            # The thread cannot be cancelled; stop it and wait so nothing writes after return.
            stop.set()
            with suppress(Exception):
                await copying
            raise


@dataclass(slots=True)
class DefaultFetcher:
    """Dispatch on the locator's getter."""

    git: GitFetcher | None = None
    local: LocalFetcher | None = None

    async def fetch(
        self,
        location: SourceLocation,
        destination: Path,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        destination.parent.mkdir(parents=True, exist_ok=True)

        if location.getter == "file":
            delegate: Fetcher = self.local or LocalFetcher()
        elif location.getter == "git":
            delegate = self.git or GitFetcher()
        else:
            raise SourceUnavailableError(
                f"unsupported getter {location.getter!r} for {location}"
            )
        await delegate.fetch(location, destination, cancel_token=cancel_token)


async def _terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    with suppress(ProcessLookupError):
        process.kill()
    with suppress(Exception):
        await process.wait()


__all__ = [
    "DefaultFetcher",
    "Fetcher",
    "GitFetcher",
    "LocalFetcher",
    "SourceUnavailableError",
]
