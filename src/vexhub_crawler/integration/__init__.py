"""
vexhub-crawler — integration adapters

Purpose
- Git access for fetched workspaces and the hub checkout, source fetching,
  permalink resolution, and hub change detection.
"""

from vexhub_crawler.integration.change_detection import has_vex_changes
from vexhub_crawler.integration.fetcher import (
    DefaultFetcher,
    Fetcher,
    GitFetcher,
    LocalFetcher,
    SourceUnavailableError,
)
from vexhub_crawler.integration.git_engine import (
    CommandResult,
    GitCommandError,
    GitEngineError,
    GitRepository,
    NotARepositoryError,
    StatusEntry,
    parse_porcelain_status,
)
from vexhub_crawler.integration.permalink import Permalink, resolve_permalink

__all__ = [
    "CommandResult",
    "DefaultFetcher",
    "Fetcher",
    "GitCommandError",
    "GitEngineError",
    "GitFetcher",
    "GitRepository",
    "LocalFetcher",
    "NotARepositoryError",
    "Permalink",
    "SourceUnavailableError",
    "StatusEntry",
    "has_vex_changes",
    "parse_porcelain_status",
    "resolve_permalink",
]
