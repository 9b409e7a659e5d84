"""Check that a candidate VEX document is non-empty and about the crawled package."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from vexhub_crawler.domain.purl import purl_matches
from vexhub_crawler.vex.document import load_document

if TYPE_CHECKING:
    from pathlib import Path


class ValidationOutcome(StrEnum):
    """
    Result of validating one candidate document.

    - ``accepted``: at least one product matches the target identifier.
    - ``no_statements``: the document is empty; the crawl must fail.
    - ``purl_mismatch``: the document is about other packages; skip it.

    Unreadable or malformed documents raise ``VexDocumentError`` instead.
    """

    ACCEPTED = "accepted"
    NO_STATEMENTS = "no_statements"
    PURL_MISMATCH = "purl_mismatch"

    @property
    def is_fatal(self) -> bool:
        return self is ValidationOutcome.NO_STATEMENTS


def validate_document(path: Path | str, purl: str) -> ValidationOutcome:
    document = load_document(path)
    if not document.statements:
        return ValidationOutcome.NO_STATEMENTS
    if any(purl_matches(purl, product) for product in document.product_ids()):
        return ValidationOutcome.ACCEPTED
    return ValidationOutcome.PURL_MISMATCH


__all__ = ["ValidationOutcome", "validate_document"]
