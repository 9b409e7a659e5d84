"""Command-line interface router for vexhub-crawler."""

from __future__ import annotations

import argparse
import asyncio
import json
import signal
import sys
from collections.abc import Mapping, Sequence
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from vexhub_crawler.config import (
    ConfigLoadError,
    ConfigValidationError,
    PackageSpec,
    dump_effective_config,
    load_config,
    load_packages,
)
from vexhub_crawler.crawl import CrawlError, crawl_package
from vexhub_crawler.domain.models import CrawlResult
from vexhub_crawler.domain.purl import PurlError, parse_purl
from vexhub_crawler.integration import (
    DefaultFetcher,
    GitFetcher,
    GitRepository,
    NotARepositoryError,
)
from vexhub_crawler.observability import configure_logging
from vexhub_crawler.utils.concurrency import CancellationToken


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class CrawlSummary:
    results: list[CrawlResult] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures and not self.cancelled

    def to_payload(self) -> dict[str, object]:
        return {
            "command": "crawl",
            "cancelled": self.cancelled,
            "results": [
                {
                    "purl": result.purl,
                    "state": result.state.value,
                    "destination": result.destination.as_posix(),
                    "sources": [source.to_dict() for source in result.sources],
                }
                for result in self.results
            ],
            "failures": [{"purl": purl, "error": error} for purl, error in self.failures],
            "skipped": list(self.skipped),
        }


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router."""

    parser = argparse.ArgumentParser(
        prog="vexhub-crawler",
        description=(
            "vexhub-crawler — collect VEX documents from package sources into a hub.\n\n"
            "Common workflows:\n"
            "  vexhub-crawler crawl                 Crawl every package in packages.yaml\n"
            "  vexhub-crawler crawl --purl PURL     Crawl a single listed package\n"
            "  vexhub-crawler config                Show effective configuration\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: ./vexhub-crawler.toml if present).",
    )
    common.add_argument(
        "--hub-dir",
        default=None,
        help="Hub checkout root (overrides hub.dir).",
    )
    common.add_argument(
        "--packages",
        dest="packages_file",
        default=None,
        help="Package list YAML (overrides hub.packages_file).",
    )
    common.add_argument(
        "--log-level",
        default=None,
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        type=str.upper,
        help="Log level (overrides observability.log_level).",
    )
    common.add_argument(
        "--log-format",
        default=None,
        choices=("console", "json"),
        help="Log renderer (overrides observability.log_format).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # crawl ---------------------------------------------------------------
    crawl_parser = subparsers.add_parser(
        "crawl",
        parents=[common],
        help="Crawl packages into the hub",
        description=(
            "Fetch each listed package, collect its VEX documents into\n"
            "pkg/<type>/<namespace>/<name>/ and refresh manifest.json when they changed.\n\n"
            "Examples:\n"
            "  vexhub-crawler crawl\n"
            "  vexhub-crawler crawl --purl pkg:golang/github.com/org/repo --fail-fast\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    crawl_parser.add_argument(
        "--purl",
        dest="purls",
        action="append",
        default=None,
        help="Only crawl this package (repeatable; must appear in the package list).",
    )
    crawl_parser.add_argument(
        "--fail-fast",
        action="store_true",
        default=None,
        help="Stop at the first failed package.",
    )
    crawl_parser.add_argument("--json", action="store_true", help="Emit JSON summary")
    crawl_parser.set_defaults(handler=_cmd_crawl)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show effective configuration (redacted)",
        description=(
            "Display the effective config after merging defaults, file, env, and flags.\n\n"
            "Examples:\n"
            "  vexhub-crawler config\n"
            "  VEXHUB_CRAWL_FAIL_FAST=1 vexhub-crawler config\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    config_parser.set_defaults(handler=_cmd_config)

    return parser


# ---------------------------------------------------------------------------
# Entrypoints
# ---------------------------------------------------------------------------


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_crawl(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    observability = config["observability"]
    configure_logging(
        observability["log_level"], json_output=observability["log_format"] == "json"
    )

    hub_root = Path(config["hub"]["dir"])
    try:
        GitRepository.open(hub_root)
    except NotARepositoryError as exc:
        raise CLIError(f"hub directory must be a git checkout root: {exc}", exit_code=2) from exc

    packages = _select_packages(Path(config["hub"]["packages_file"]), args.purls)
    crawl = config["crawl"]
    fetcher = DefaultFetcher(
        git=GitFetcher(
            clone_depth=crawl["clone_depth"] or None,
            timeout_seconds=crawl["fetch_timeout_seconds"],
        )
    )

    summary = asyncio.run(
        crawl_all(hub_root, packages, fetcher=fetcher, fail_fast=crawl["fail_fast"])
    )

    if args.json:
        _emit_json(summary.to_payload())
    else:
        for result in summary.results:
            print(f"{result.state.value:<17} {result.purl}")
        for purl, error in summary.failures:
            print(f"{'failed':<17} {purl}: {error}")
        for purl in summary.skipped:
            print(f"{'skipped':<17} {purl}")
    return 0 if summary.ok else 1


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    print(dump_effective_config(config))
    return 0


async def crawl_all(
    hub_root: Path,
    packages: Sequence[PackageSpec],
    *,
    fetcher: DefaultFetcher | None = None,
    fail_fast: bool = False,
    cancel_token: CancellationToken | None = None,
    logger: Any | None = None,
) -> CrawlSummary:
    """Crawl ``packages`` one after another; SIGINT cancels the running crawl.

    Crawls are sequential because they share the hub checkout.
    """

    log = logger if logger is not None else structlog.get_logger(__name__)
    token = cancel_token or CancellationToken()
    loop = asyncio.get_running_loop()
    with suppress(NotImplementedError, RuntimeError):
        loop.add_signal_handler(signal.SIGINT, token.cancel)

    summary = CrawlSummary()
    try:
        for index, spec in enumerate(packages):
            if token.is_cancelled:
                summary.cancelled = True
                summary.skipped.extend(item.purl_text for item in packages[index:])
                break
            try:
                result = await crawl_package(
                    hub_root,
                    spec.location,
                    spec.purl,
                    fetcher=fetcher,
                    cancel_token=token,
                    logger=log,
                )
            except asyncio.CancelledError:
                log.warning("crawl cancelled", purl=spec.purl_text)
                summary.cancelled = True
                summary.skipped.extend(item.purl_text for item in packages[index:])
                break
            except CrawlError as exc:
                log.error("crawl failed", purl=spec.purl_text, error=str(exc))
                summary.failures.append((spec.purl_text, str(exc)))
                if fail_fast:
                    summary.skipped.extend(item.purl_text for item in packages[index + 1 :])
                    break
                continue
            summary.results.append(result)
    finally:
        with suppress(NotImplementedError, RuntimeError):
            loop.remove_signal_handler(signal.SIGINT)

    log.info(
        "crawl finished",
        crawled=len(summary.results),
        failed=len(summary.failures),
        skipped=len(summary.skipped),
    )
    return summary


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_effective_config(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, object] = {
        "hub.dir": getattr(args, "hub_dir", None),
        "hub.packages_file": getattr(args, "packages_file", None),
        "crawl.fail_fast": getattr(args, "fail_fast", None),
        "observability.log_level": getattr(args, "log_level", None),
        "observability.log_format": getattr(args, "log_format", None),
    }
    try:
        return load_config(getattr(args, "config_path", None), cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=2) from exc


def _select_packages(path: Path, purls: Sequence[str] | None) -> tuple[PackageSpec, ...]:
    try:
        packages = load_packages(path)
    except (OSError, ValueError) as exc:
        raise CLIError(f"cannot load package list: {exc}", exit_code=2) from exc
    if not purls:
        return packages

    try:
        wanted = [parse_purl(purl).to_string() for purl in purls]
    except PurlError as exc:
        raise CLIError(str(exc), exit_code=2) from exc

    by_purl: Mapping[str, PackageSpec] = {spec.purl_text: spec for spec in packages}
    missing = sorted(purl for purl in wanted if purl not in by_purl)
    if missing:
        raise CLIError(f"not in {path.name}: {', '.join(missing)}", exit_code=2)
    return tuple(by_purl[purl] for purl in dict.fromkeys(wanted))


def _emit_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


__all__ = ["CLIError", "CrawlSummary", "build_parser", "crawl_all", "run_cli"]
