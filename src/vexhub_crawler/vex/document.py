"""Minimal OpenVEX document model.

Only the parts the crawler inspects are modelled: the statements and the
product identifiers each statement refers to. Products are either objects
carrying an ``@id`` or, in early OpenVEX drafts, bare identifier strings.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class VexDocumentError(ValueError):
    """Raised when a VEX document cannot be read or does not have OpenVEX shape."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")


@dataclass(frozen=True, slots=True)
class Statement:
    products: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class VexDocument:
    path: Path
    statements: tuple[Statement, ...]

    def product_ids(self) -> Iterator[str]:
        for statement in self.statements:
            yield from statement.products


def load_document(path: Path | str) -> VexDocument:
    """Read and parse the OpenVEX document at ``path``."""
    doc_path = Path(path)
    try:
        with doc_path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except json.JSONDecodeError as exc:
        raise VexDocumentError(doc_path, f"invalid JSON ({exc})") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise VexDocumentError(doc_path, f"unable to read document ({exc})") from exc

    if not isinstance(payload, dict):
        raise VexDocumentError(doc_path, f"expected JSON object, got {type(payload).__name__}")

    raw_statements = payload.get("statements")
    if raw_statements is None:
        raw_statements = []
    if not isinstance(raw_statements, list):
        raise VexDocumentError(doc_path, "'statements' must be a list")

    statements: list[Statement] = []
    for index, raw in enumerate(raw_statements):
        if not isinstance(raw, dict):
            raise VexDocumentError(doc_path, f"statements[{index}] must be an object")
        statements.append(Statement(products=_parse_products(doc_path, index, raw)))

    return VexDocument(path=doc_path, statements=tuple(statements))


def _parse_products(path: Path, index: int, statement: dict[str, object]) -> tuple[str, ...]:
    raw_products = statement.get("products") or []
    if not isinstance(raw_products, list):
        raise VexDocumentError(path, f"statements[{index}].products must be a list")

    products: list[str] = []
    for position, product in enumerate(raw_products):
        if isinstance(product, str):
            products.append(product)
        elif isinstance(product, dict):
            identifier = product.get("@id")
            if isinstance(identifier, str) and identifier:
                products.append(identifier)
        else:
            raise VexDocumentError(
                path, f"statements[{index}].products[{position}] must be an object or string"
            )
    return tuple(products)


__all__ = [
    "Statement",
    "VexDocument",
    "VexDocumentError",
    "load_document",
]
