"""
vexhub-crawler — CLI integration tests

File: tests/integration/test_cli.py

Purpose
- Exercise ``run_cli``/``cli_entrypoint`` end to end against real git checkouts.

What this test file should cover
- ``config`` dumps the effective, redacted configuration.
- ``crawl`` summaries (text and JSON) and the exit-code contract.
- Sequential multi-package crawls with and without ``--fail-fast``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from typing import TYPE_CHECKING

import pytest
import structlog

from vexhub_crawler.config import load_packages
from vexhub_crawler.main import ExitCode, cli_entrypoint
from vexhub_crawler.ui.cli import crawl_all, run_cli
from vexhub_crawler.utils.concurrency import CancellationToken

if TYPE_CHECKING:
    from pathlib import Path

    from conftest import GitHelper

LEFT_PAD = "pkg:npm/left-pad"
RIGHT_PAD = "pkg:npm/right-pad"


def _doc(product: str) -> str:
    return json.dumps({"statements": [{"products": [{"@id": product}], "status": "fixed"}]})


@pytest.fixture(autouse=True)
def _workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.chdir(tmp_path)
    yield
    structlog.reset_defaults()
    logger = logging.getLogger("vexhub_crawler")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def hub(tmp_path: Path, git: GitHelper) -> Path:
    root = git.init(tmp_path / "hub")
    git.commit(root, {"README.md": "hub\n"}, "init hub")
    return root


@pytest.fixture
def packages_file(tmp_path: Path, git: GitHelper) -> Path:
    good = git.init(tmp_path / "left-pad", origin="https://github.com/org/left-pad.git")
    git.commit(good, {".vex/openvex.json": _doc(LEFT_PAD)})
    empty = git.init(tmp_path / "right-pad", origin="https://github.com/org/right-pad.git")
    git.commit(empty, {"README.md": "no vex here\n"})

    path = tmp_path / "packages.yaml"
    path.write_text(
        f"packages:\n"
        f"  - purl: {RIGHT_PAD}\n"
        f"    url: {empty}\n"
        f"  - purl: {LEFT_PAD}\n"
        f"    url: {good}\n",
        encoding="utf-8",
    )
    return path


def _crawl_args(hub: Path, packages_file: Path, *extra: str) -> list[str]:
    return ["crawl", "--hub-dir", str(hub), "--packages", str(packages_file), *extra]


def test_config_command_prints_effective_config(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = run_cli(["config", "--hub-dir", "hub", "--log-level", "debug"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["observability"]["log_level"] == "DEBUG"
    assert payload["hub"]["dir"] == (tmp_path.resolve() / "hub").as_posix()
    assert payload["crawl"]["fail_fast"] is False


def test_crawl_reports_results_and_failures_as_json(
    hub: Path, packages_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = run_cli(_crawl_args(hub, packages_file, "--json"))

    assert exit_code == ExitCode.CRAWL_FAILED
    payload = json.loads(capsys.readouterr().out)
    assert payload["cancelled"] is False
    assert [item["purl"] for item in payload["failures"]] == [RIGHT_PAD]
    assert "no VEX file found" in payload["failures"][0]["error"]
    assert [(item["purl"], item["state"]) for item in payload["results"]] == [
        (LEFT_PAD, "manifest_written")
    ]
    assert payload["results"][0]["sources"][0]["path"] == ".vex/openvex.json"
    assert (hub / "pkg" / "npm" / "left-pad" / "openvex.json").is_file()


def test_fail_fast_skips_remaining_packages(
    hub: Path, packages_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = run_cli(_crawl_args(hub, packages_file, "--fail-fast"))

    assert exit_code == 1
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split()[:2] == ["failed", f"{RIGHT_PAD}:"]
    assert lines[1].split() == ["skipped", LEFT_PAD]
    assert not (hub / "pkg" / "npm" / "left-pad").exists()


def test_purl_filter_selects_listed_packages(
    hub: Path, packages_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = run_cli(_crawl_args(hub, packages_file, "--purl", LEFT_PAD))

    assert exit_code == 0
    assert capsys.readouterr().out.split() == ["manifest_written", LEFT_PAD]


def test_unknown_purl_filter_is_a_config_error(
    hub: Path, packages_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = run_cli(_crawl_args(hub, packages_file, "--purl", "pkg:npm/unknown"))

    assert exit_code == ExitCode.CONFIG_ERROR
    assert "not in packages.yaml: pkg:npm/unknown" in capsys.readouterr().err


def test_hub_must_be_a_git_checkout(
    tmp_path: Path, packages_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    plain = tmp_path / "plain"
    plain.mkdir()

    assert run_cli(_crawl_args(plain, packages_file)) == ExitCode.CONFIG_ERROR
    assert "hub directory must be a git checkout root" in capsys.readouterr().err


def test_missing_config_file_is_a_config_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = cli_entrypoint(["config", "--config", str(tmp_path / "missing.toml")])

    assert exit_code == ExitCode.CONFIG_ERROR
    assert "config file not found" in capsys.readouterr().err


def test_invalid_env_override_is_a_config_error(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("VEXHUB_CRAWL_CLONE_DEPTH", "shallow")

    assert cli_entrypoint(["config"]) == ExitCode.CONFIG_ERROR
    assert "VEXHUB_CRAWL_CLONE_DEPTH" in capsys.readouterr().err


def test_usage_errors_exit_with_argparse_code(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_entrypoint(["crawl", "--log-format", "xml"]) == 2
    assert "invalid choice" in capsys.readouterr().err


async def test_crawl_all_stops_when_cancelled(hub: Path, packages_file: Path) -> None:
    token = CancellationToken()
    token.cancel()

    summary = await crawl_all(hub, load_packages(packages_file), cancel_token=token)

    assert summary.cancelled
    assert not summary.ok
    assert summary.skipped == [RIGHT_PAD, LEFT_PAD]
    assert summary.results == []
