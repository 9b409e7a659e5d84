"""Stable constants shared across crawler components."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Final

# Hub layout.
MANIFEST_FILE_NAME: Final[str] = "manifest.json"
HUB_PACKAGE_ROOT: Final[PurePosixPath] = PurePosixPath("pkg")

# Directory inside a package source tree that conventionally holds VEX documents.
VEX_SOURCE_DIR: Final[str] = ".vex"

# File names recognized as VEX documents.
VEX_FILE_NAMES: Final[frozenset[str]] = frozenset({"openvex.json", "vex.json"})
VEX_FILE_SUFFIXES: Final[tuple[str, ...]] = (".openvex.json", ".vex.json")

# PURL type whose hub location is driven by a qualifier instead of namespace/name.
OCI_PURL_TYPE: Final[str] = "oci"
OCI_REPOSITORY_QUALIFIER: Final[str] = "repository_url"

# Permalink construction.
PERMALINK_HOST: Final[str] = "github.com"
PERMALINK_REMOTE: Final[str] = "origin"

WORKSPACE_PREFIX: Final[str] = "vexhub-crawler-"

CONFIG_SCHEMA_VERSION: Final[int] = 1

__all__ = [
    "CONFIG_SCHEMA_VERSION",
    "HUB_PACKAGE_ROOT",
    "MANIFEST_FILE_NAME",
    "OCI_PURL_TYPE",
    "OCI_REPOSITORY_QUALIFIER",
    "PERMALINK_HOST",
    "PERMALINK_REMOTE",
    "VEX_FILE_NAMES",
    "VEX_FILE_SUFFIXES",
    "VEX_SOURCE_DIR",
    "WORKSPACE_PREFIX",
]
