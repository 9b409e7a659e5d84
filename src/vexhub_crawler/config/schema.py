"""
vexhub-crawler — configuration schema and validation.

File: src/vexhub_crawler/config/schema.py

Purpose
- Define configuration defaults and strict validation rules.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Deterministic deep-merge used by the loader's precedence chain.
- Redacted dumps safe for logs and the ``config`` command.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, TypedDict

from vexhub_crawler.constants import CONFIG_SCHEMA_VERSION
from vexhub_crawler.observability.logging import redact_string

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION

LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_FORMATS: Final[tuple[str, ...]] = ("console", "json")

# Config paths that are normalized relative to the config file location.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (
    ("hub", "dir"),
    ("hub", "packages_file"),
)

_SENSITIVE_KEY_TERMS: Final[tuple[str, ...]] = ("secret", "token", "password", "credential")

_SectionValidator = Callable[[Mapping[str, object], str, "_IssueCollector"], dict[str, Any]]


class MetaConfig(TypedDict):
    schema_version: int


class HubConfig(TypedDict):
    dir: str
    packages_file: str


class CrawlConfig(TypedDict):
    fail_fast: bool
    clone_depth: int
    fetch_timeout_seconds: float | None


class ObservabilityConfig(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_format: Literal["console", "json"]


class CrawlerConfig(TypedDict):
    meta: MetaConfig
    hub: HubConfig
    crawl: CrawlConfig
    observability: ObservabilityConfig


DEFAULT_CONFIG: Final[CrawlerConfig] = {
    "meta": {
        "schema_version": ConfigSchemaVersion,
    },
    "hub": {
        "dir": ".",
        "packages_file": "packages.yaml",
    },
    "crawl": {
        "fail_fast": False,
        "clone_depth": 1,
        "fetch_timeout_seconds": None,
    },
    "observability": {
        "log_level": "INFO",
        "log_format": "console",
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


class ConfigValidationError(ValueError):
    """Raised when config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> CrawlerConfig:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade vexhub-crawler.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade vexhub-crawler"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> tuple[ConfigValidationIssue, ...]:
    """Return every validation issue found in ``config``; empty when valid."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is not None:
        _validate_root(root, issues)
    return issues.items()


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate ``config`` and raise ``ConfigValidationError`` on failure."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    normalized = _validate_root(root, issues) if root is not None else None
    if normalized is None or issues.has_issues:
        raise ConfigValidationError(issues.items())
    return normalized


def redact_config(config: Mapping[str, object]) -> dict[str, Any]:
    """Return a redacted copy of ``config`` for logs and dumps."""

    redacted = _redact_value(config, parent_key=None)
    if isinstance(redacted, dict):
        return redacted
    return {}


def _validate_root(payload: Mapping[str, object], issues: _IssueCollector) -> dict[str, Any]:
    sections: dict[str, _SectionValidator] = {
        "meta": _validate_meta,
        "hub": _validate_hub,
        "crawl": _validate_crawl,
        "observability": _validate_observability,
    }
    _reject_unknown_keys(payload, set(sections), "", issues)
    _require_keys(payload, set(sections), "", issues)

    out: dict[str, Any] = {}
    for key, validator in sections.items():
        raw = payload.get(key)
        if raw is None:
            continue
        section = _as_object(raw, key, issues)
        if section is not None:
            out[key] = validator(section, key, issues)
    return out


def _validate_meta(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"schema_version"}, path, issues)
    _require_keys(payload, {"schema_version"}, path, issues)

    out: dict[str, Any] = {}
    if "schema_version" in payload:
        field_path = _join(path, "schema_version")
        parsed = _as_int(payload["schema_version"], field_path, issues, minimum=1)
        if parsed is not None:
            out["schema_version"] = parsed
            if parsed != ConfigSchemaVersion:
                issues.add(field_path, migration_guidance(parsed))
    return out


def _validate_hub(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"dir", "packages_file"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    for key in sorted(allowed):
        if key in payload:
            parsed = _as_path_text(payload[key], _join(path, key), issues)
            if parsed is not None:
                out[key] = parsed
    return out


def _validate_crawl(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"fail_fast", "clone_depth", "fetch_timeout_seconds"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, {"fail_fast", "clone_depth"}, path, issues)

    out: dict[str, Any] = {}
    if "fail_fast" in payload:
        parsed_fail_fast = _as_bool(payload["fail_fast"], _join(path, "fail_fast"), issues)
        if parsed_fail_fast is not None:
            out["fail_fast"] = parsed_fail_fast

    if "clone_depth" in payload:
        # 0 requests a full clone.
        parsed_depth = _as_int(
            payload["clone_depth"], _join(path, "clone_depth"), issues, minimum=0
        )
        if parsed_depth is not None:
            out["clone_depth"] = parsed_depth

    timeout = payload.get("fetch_timeout_seconds")
    if timeout is None:
        out["fetch_timeout_seconds"] = None
    else:
        parsed_timeout = _as_float(timeout, _join(path, "fetch_timeout_seconds"), issues)
        if parsed_timeout is not None:
            if parsed_timeout <= 0:
                issues.add(_join(path, "fetch_timeout_seconds"), "must be > 0")
            else:
                out["fetch_timeout_seconds"] = parsed_timeout
    return out


def _validate_observability(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"log_level", "log_format"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "log_level" in payload:
        raw_level = payload["log_level"]
        if isinstance(raw_level, str):
            raw_level = raw_level.strip().upper()
        parsed_level = _as_enum(
            raw_level, _join(path, "log_level"), issues, allowed_values=LOG_LEVELS
        )
        if parsed_level is not None:
            out["log_level"] = parsed_level

    if "log_format" in payload:
        parsed_format = _as_enum(
            payload["log_format"], _join(path, "log_format"), issues, allowed_values=LOG_FORMATS
        )
        if parsed_format is not None:
            out["log_format"] = parsed_format
    return out


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_path_text(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if "\x00" in parsed:
        issues.add(path, "must not contain NUL bytes")
        return None
    return parsed


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    return value


def _as_float(value: object, path: str, issues: _IssueCollector) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        issues.add(path, f"expected number, got {type(value).__name__}")
        return None
    parsed = float(value)
    if not math.isfinite(parsed):
        issues.add(path, "must be finite")
        return None
    return parsed


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    return {key: copy.deepcopy(value[key]) for key in sorted(value)}


def _redact_value(value: object, parent_key: str | None) -> object:
    if isinstance(value, Mapping):
        out: dict[str, object] = {}
        for key in sorted(value):
            if _key_is_sensitive(key):
                out[key] = "<redacted>"
            else:
                out[key] = _redact_value(value[key], key)
        return out
    if isinstance(value, (list, tuple)):
        return [_redact_value(item, parent_key) for item in value]
    if isinstance(value, str):
        return redact_string(value)
    return value


def _key_is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(term in lowered for term in _SENSITIVE_KEY_TERMS)


__all__ = [
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "CrawlerConfig",
    "DEFAULT_CONFIG",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "redact_config",
    "validate_config",
]
