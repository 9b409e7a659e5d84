"""Package list (``packages.yaml``): which packages to crawl and where their source lives."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final, cast

import yaml

from vexhub_crawler.domain.models import SourceLocation, SourceLocationError
from vexhub_crawler.domain.purl import PurlError, parse_purl

if TYPE_CHECKING:
    from packageurl import PackageURL

_REQUIRED_FIELDS: Final[frozenset[str]] = frozenset({"purl", "url"})


@dataclass(frozen=True, slots=True)
class PackageSpec:
    """One entry of the package list."""

    purl: PackageURL
    location: SourceLocation

    @property
    def purl_text(self) -> str:
        return self.purl.to_string()


def load_packages(path: Path | str) -> tuple[PackageSpec, ...]:
    """Load and validate the package list at ``path``.

    Errors are ``ValueError`` prefixed with the offending location
    (``packages.yaml[2].purl: ...``).
    """

    source = Path(path)
    try:
        with source.open("r", encoding="utf-8") as handle:
            loaded = cast("object", yaml.safe_load(handle))
    except yaml.YAMLError as exc:
        raise ValueError(f"{source}: invalid YAML ({exc})") from exc

    root = _as_string_key_mapping(loaded, source.name)
    unknown = sorted(set(root) - {"packages"})
    if unknown:
        raise ValueError(f"{source.name}: unexpected fields: {unknown}")
    entries = root.get("packages")
    if not isinstance(entries, list):
        raise ValueError(
            f"{source.name}.packages: expected sequence, got {type(entries).__name__}"
        )

    specs: list[PackageSpec] = []
    seen: dict[str, str] = {}
    for index, item in enumerate(entries):
        location = f"{source.name}[{index}]"
        spec = _parse_entry(item, location=location)
        previous = seen.get(spec.purl_text)
        if previous is not None:
            raise ValueError(f"{location}: duplicate purl {spec.purl_text!r} (first at {previous})")
        seen[spec.purl_text] = location
        specs.append(spec)
    return tuple(specs)


def _parse_entry(value: object, *, location: str) -> PackageSpec:
    parsed = _as_string_key_mapping(value, location)
    keys = set(parsed)

    missing = sorted(_REQUIRED_FIELDS - keys)
    if missing:
        raise ValueError(f"{location}: missing required fields: {missing}")
    unknown = sorted(keys - _REQUIRED_FIELDS)
    if unknown:
        raise ValueError(f"{location}: unexpected fields: {unknown}")

    try:
        purl = parse_purl(_coerce_non_empty_str(parsed["purl"], f"{location}.purl"))
    except PurlError as exc:
        raise ValueError(f"{location}.purl: {exc}") from exc
    try:
        source = SourceLocation.parse(_coerce_non_empty_str(parsed["url"], f"{location}.url"))
    except SourceLocationError as exc:
        raise ValueError(f"{location}.url: {exc}") from exc
    return PackageSpec(purl=purl, location=source)


def _as_string_key_mapping(value: object, path: str) -> dict[str, object]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{path}: expected object, got {type(value).__name__}")

    parsed: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            raise ValueError(f"{path}: object keys must be strings, got {type(key).__name__}")
        parsed[key] = item
    return parsed


def _coerce_non_empty_str(value: object, path: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{path}: expected string, got {type(value).__name__}")
    normalized = value.strip()
    if not normalized:
        raise ValueError(f"{path}: must not be empty")
    return normalized


__all__ = ["PackageSpec", "load_packages"]
