"""Read and write per-package ``manifest.json`` files."""

from __future__ import annotations

import json
from pathlib import Path

from vexhub_crawler.domain.models import Manifest
from vexhub_crawler.utils.fs import atomic_write


def write_manifest(path: Path | str, manifest: Manifest) -> None:
    """Replace the manifest at ``path`` wholesale."""
    rendered = json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False)
    atomic_write(path, rendered + "\n")


def read_manifest(path: Path | str) -> Manifest:
    with Path(path).open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{path}: manifest root must be an object")
    return Manifest.from_dict(payload)


__all__ = ["read_manifest", "write_manifest"]
