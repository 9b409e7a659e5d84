"""Module entrypoint for ``python -m vexhub_crawler``."""

from __future__ import annotations

from vexhub_crawler.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
