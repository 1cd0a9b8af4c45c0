# ==============================
# Value Serializer
# ==============================
"""
Converts Values to text.

Scalar rule (both modes): strings verbatim (never JSON-quoted); numbers, booleans
and null as their canonical JSON text.
Structured rule: arrays/objects as compact JSON (sorted keys, no whitespace);
escaped mode additionally HTML-escapes & < > " '.
"""

from __future__ import annotations

__all__ = ["escaped_text", "raw_text", "compact_json"]

import json
from typing import Any

from stencil.contracts.value_schema import SCALAR_KINDS, ValueKind, value_kind


_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
}
_HTML_TABLE = str.maketrans(_HTML_ESCAPES)


def compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True, ensure_ascii=False, allow_nan=False)


def escape_html(text: str) -> str:
    return text.translate(_HTML_TABLE)


def raw_text(value: Any) -> str:
    kind = value_kind(value)
    if kind is ValueKind.STRING:
        return value
    return compact_json(value)


def escaped_text(value: Any) -> str:
    kind = value_kind(value)
    if kind is ValueKind.STRING:
        return value
    text = compact_json(value)
    return text if kind in SCALAR_KINDS else escape_html(text)
