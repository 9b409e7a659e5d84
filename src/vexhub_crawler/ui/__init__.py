"""Command-line surface."""

from vexhub_crawler.ui.cli import CLIError, CrawlSummary, build_parser, crawl_all, run_cli

__all__ = ["CLIError", "CrawlSummary", "build_parser", "crawl_all", "run_cli"]
