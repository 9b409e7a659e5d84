"""Per-package crawl pipeline, directory reconciliation, and crawl errors."""

from vexhub_crawler.crawl.errors import (
    CrawlError,
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
from vexhub_crawler.crawl.pipeline import crawl_package
from vexhub_crawler.crawl.reconcile import reset_directory

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
    "crawl_package",
    "reset_directory",
]
