"""Domain types for crawl inputs, provenance, and results."""

from vexhub_crawler.domain.models import (
    CrawlResult,
    CrawlState,
    Manifest,
    Source,
    SourceLocation,
    SourceLocationError,
)
from vexhub_crawler.domain.purl import PurlError, destination_parts, parse_purl, purl_matches

__all__ = [
    "CrawlResult",
    "CrawlState",
    "Manifest",
    "PurlError",
    "Source",
    "SourceLocation",
    "SourceLocationError",
    "destination_parts",
    "parse_purl",
    "purl_matches",
]
