"""Crawl error taxonomy and accumulated diagnostic context.

``ErrorContext`` is built up along the pipeline (package identifier, source
URL, destination, offending file) and stamped onto every error raised from
that point, so a failure carries everything needed to diagnose it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


class CrawlError(RuntimeError):
    """Base error for a failed package crawl."""

    def __init__(
        self,
        message: str,
        *,
        domain: str = "crawl",
        context: Mapping[str, object] | None = None,
    ) -> None:
        self.message = message
        self.domain = domain
        self.context: Mapping[str, object] = MappingProxyType(dict(context or {}))
        super().__init__(message)

    def __str__(self) -> str:
        rendered = f"{self.domain}: {self.message}"
        if self.__cause__ is not None:
            rendered = f"{rendered}: {self.__cause__}"
        if self.context:
            details = " ".join(f"{key}={value}" for key, value in self.context.items())
            rendered = f"{rendered} [{details}]"
        return rendered


class WorkspaceError(CrawlError):
    """Scratch workspace could not be created."""


class FetchError(CrawlError):
    """Package source could not be fetched."""


class DestinationError(CrawlError):
    """The hub destination for the package could not be computed."""


class ReconcileError(CrawlError):
    """The destination directory could not be reset."""


class WalkError(CrawlError):
    """The fetched tree could not be traversed."""


class RelocationError(CrawlError):
    """An accepted document could not be moved into the hub."""


class VexValidationError(CrawlError):
    """A candidate document is unreadable or malformed."""


class NoStatementsError(VexValidationError):
    """A candidate document carries no statements."""


class NoVexFileFoundError(CrawlError):
    """The walk completed without accepting any document."""


class HubInspectionError(CrawlError):
    """The hub's working-tree state could not be determined."""


class ManifestWriteError(CrawlError):
    """The manifest could not be written."""


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Immutable builder for context-annotated crawl errors."""

    domain: str = "crawl"
    fields: Mapping[str, object] = field(default_factory=dict)

    def with_fields(self, **values: object) -> ErrorContext:
        merged = dict(self.fields)
        merged.update(values)
        return ErrorContext(domain=self.domain, fields=merged)

    def error(self, message: str, cls: type[CrawlError] = CrawlError) -> CrawlError:
        return cls(message, domain=self.domain, context=self.fields)

    def wrap(
        self, exc: BaseException, message: str, cls: type[CrawlError] = CrawlError
    ) -> CrawlError:
        """Build an error of ``cls``; raise it with ``from exc`` to keep the chain."""
        error = self.error(message, cls)
        error.__cause__ = exc
        return error


__all__ = [
    "CrawlError",
    "DestinationError",
    "ErrorContext",
    "FetchError",
    "HubInspectionError",
    "ManifestWriteError",
    "NoStatementsError",
    "NoVexFileFoundError",
    "ReconcileError",
    "RelocationError",
    "VexValidationError",
    "WalkError",
    "WorkspaceError",
]
