"""Package identifier helpers built on ``packageurl-python``.

Matching follows OpenVEX product semantics: the crawl target is the general
identifier and a statement product is the specific one.

- A target without a version matches any product version.
- Every qualifier on the target must be present with the same value on the product.
- The product may carry extra qualifiers.
- Unparseable identifiers never match.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from packageurl import PackageURL

from vexhub_crawler.constants import HUB_PACKAGE_ROOT, OCI_PURL_TYPE, OCI_REPOSITORY_QUALIFIER


class PurlError(ValueError):
    """Raised when a package identifier cannot be parsed or placed in the hub."""


def parse_purl(value: str) -> PackageURL:
    """Parse ``value`` into a :class:`PackageURL`, raising :class:`PurlError`."""
    if not isinstance(value, str) or not value.strip():
        raise PurlError("package identifier must be a non-empty string")
    try:
        return PackageURL.from_string(value.strip())
    except ValueError as exc:
        raise PurlError(f"invalid package identifier {value!r}: {exc}") from exc


def purl_matches(target: str, candidate: str) -> bool:
    """Return ``True`` when product ``candidate`` is covered by ``target``."""
    try:
        general = PackageURL.from_string(target)
        specific = PackageURL.from_string(candidate)
    except ValueError:
        return False

    if general.type != specific.type:
        return False
    if (general.namespace or "") != (specific.namespace or ""):
        return False
    if general.name != specific.name:
        return False
    if general.version and general.version != specific.version:
        return False

    specific_qualifiers = _qualifier_map(specific)
    for key, value in _qualifier_map(general).items():
        if specific_qualifiers.get(key) != value:
            return False
    return True


def destination_parts(purl: PackageURL) -> PurePosixPath:
    """Return the hub-relative directory for ``purl``.

    ``pkg/<type>/<namespace>/<name>/<subpath>`` for regular packages and
    ``pkg/oci/<repository_url>`` for OCI artifacts.
    """
    if purl.type == OCI_PURL_TYPE:
        repository = _qualifier_map(purl).get(OCI_REPOSITORY_QUALIFIER, "")
        if not repository:
            raise PurlError(
                f"{purl.to_string()}: oci identifiers require a "
                f"{OCI_REPOSITORY_QUALIFIER!r} qualifier"
            )
        segments = [purl.type, repository]
    else:
        segments = [purl.type, purl.namespace or "", purl.name, purl.subpath or ""]

    relative = HUB_PACKAGE_ROOT
    for segment in segments:
        for part in PurePosixPath(segment).parts if segment else ():
            if part in {"/", ".", ".."}:
                raise PurlError(f"{purl.to_string()}: unsafe path segment {segment!r}")
            relative = relative / part
    return relative


def _qualifier_map(purl: PackageURL) -> dict[str, str]:
    qualifiers = purl.qualifiers
    if isinstance(qualifiers, dict):
        return {str(key): str(value) for key, value in qualifiers.items()}
    if isinstance(qualifiers, str) and qualifiers:
        pairs = (item.partition("=") for item in qualifiers.split("&"))
        return {key: value for key, _, value in pairs}
    return {}


__all__ = [
    "PurlError",
    "destination_parts",
    "parse_purl",
    "purl_matches",
]
