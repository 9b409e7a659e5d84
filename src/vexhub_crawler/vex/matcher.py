"""File-name predicate for VEX documents."""

from __future__ import annotations

import os

from vexhub_crawler.constants import VEX_FILE_NAMES, VEX_FILE_SUFFIXES


def match_path(path: str | os.PathLike[str]) -> bool:
    """Return ``True`` if the base name of ``path`` names a VEX document.

    Matching is case-sensitive. Callers are expected to pass files only.
    """
    name = os.path.basename(os.fspath(path))
    return name in VEX_FILE_NAMES or name.endswith(VEX_FILE_SUFFIXES)


__all__ = ["match_path"]
