"""
vexhub-crawler config package public API.

File: src/vexhub_crawler/config/__init__.py

Purpose
- Export config loading/validation entrypoints, the package list loader, and
  public error types.
"""

from vexhub_crawler.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    load_config,
    normalize_paths,
)
from vexhub_crawler.config.packages import PackageSpec, load_packages
from vexhub_crawler.config.schema import (
    DEFAULT_CONFIG,
    ConfigValidationError,
    ConfigValidationIssue,
    CrawlerConfig,
    assert_valid_config,
    default_config,
    merge_config,
    redact_config,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "CrawlerConfig",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "PackageSpec",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "load_config",
    "load_packages",
    "merge_config",
    "normalize_paths",
    "redact_config",
    "validate_config",
]
