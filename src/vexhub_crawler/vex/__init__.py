"""VEX document discovery, parsing, and validation."""

from vexhub_crawler.vex.document import Statement, VexDocument, VexDocumentError, load_document
from vexhub_crawler.vex.matcher import match_path
from vexhub_crawler.vex.validator import ValidationOutcome, validate_document

__all__ = [
    "Statement",
    "ValidationOutcome",
    "VexDocument",
    "VexDocumentError",
    "load_document",
    "match_path",
    "validate_document",
]
