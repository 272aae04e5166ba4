"""
Structured-Value Document

Backend-neutral representation of JSON-like values (tool arguments, tool input
schemas). Every value is tagged with its kind so integers keep their sign class
and non-finite floats can never leak into a backend request.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

_U64_MAX = 2**64 - 1
_I64_MIN = -(2**63)


class DocumentKind(str, Enum):
    """Value kinds of a structured document."""
    NULL = "null"
    BOOL = "bool"
    POS_INT = "pos_int"
    NEG_INT = "neg_int"
    FLOAT = "float"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class Document:
    """
    Tagged structured value.

    `value` holds a Python scalar for scalar kinds, a tuple of Documents for
    ARRAY and a dict of str -> Document for OBJECT.
    """
    kind: DocumentKind
    value: Any = None

    def to_python(self) -> Any:
        """Render the document back into plain JSON-compatible Python values."""
        return document_to_value(self)


def _number_to_document(number: Any) -> Document:
    if isinstance(number, int):
        if 0 <= number <= _U64_MAX:
            return Document(DocumentKind.POS_INT, number)
        if _I64_MIN <= number < 0:
            return Document(DocumentKind.NEG_INT, number)
        # Outside the 64-bit range: fall back to float like any JSON number would
        try:
            number = float(number)
        except OverflowError:
            return Document(DocumentKind.FLOAT, 0.0)

    if not math.isfinite(number):
        return Document(DocumentKind.FLOAT, 0.0)
    return Document(DocumentKind.FLOAT, float(number))


def value_to_document(value: Any) -> Document:
    """
    Map a parsed JSON value onto a Document.

    The mapping is total over null, bool, int, float, str, list/tuple and dict.
    Integers become POS_INT or NEG_INT depending on sign; NaN and
    infinities collapse to 0.0.

    Raises:
        TypeError: If the value is not part of the JSON value grammar
    """
    if value is None:
        return Document(DocumentKind.NULL)
    # bool must be checked before int
    if isinstance(value, bool):
        return Document(DocumentKind.BOOL, value)
    if isinstance(value, (int, float)):
        return _number_to_document(value)
    if isinstance(value, str):
        return Document(DocumentKind.STRING, value)
    if isinstance(value, (list, tuple)):
        return Document(DocumentKind.ARRAY, tuple(value_to_document(v) for v in value))
    if isinstance(value, dict):
        return Document(
            DocumentKind.OBJECT,
            {str(k): value_to_document(v) for k, v in value.items()},
        )
    raise TypeError(f"Unsupported document value type: {type(value).__name__}")


def document_to_value(document: Document) -> Any:
    """Reverse of value_to_document()."""
    kind = document.kind
    if kind is DocumentKind.NULL:
        return None
    if kind in (DocumentKind.BOOL, DocumentKind.STRING):
        return document.value
    if kind in (DocumentKind.POS_INT, DocumentKind.NEG_INT):
        return int(document.value)
    if kind is DocumentKind.FLOAT:
        return float(document.value)
    if kind is DocumentKind.ARRAY:
        return [document_to_value(item) for item in document.value]
    if kind is DocumentKind.OBJECT:
        return {key: document_to_value(item) for key, item in document.value.items()}
    raise TypeError(f"Unknown document kind: {kind}")


def empty_object() -> Document:
    return Document(DocumentKind.OBJECT, {})


def parse_arguments(arguments: str | None) -> Document:
    """
    Parse a tool-call `arguments` JSON string into a Document.

    Arguments are best-effort: empty or malformed JSON becomes an empty object
    instead of failing the request.
    """
    if not arguments or not arguments.strip():
        return empty_object()
    try:
        parsed = json.loads(arguments)
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning("Tool call arguments are not valid JSON, using empty object: %s", e)
        return empty_object()
    return value_to_document(parsed)


def document_to_json(document: Document) -> str:
    """Serialize a Document as compact JSON text."""
    return json.dumps(document_to_value(document), ensure_ascii=False, separators=(",", ":"))
