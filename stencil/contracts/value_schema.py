# ==============================
# Value Contracts
# ==============================
"""
Value model for stencil/.

All context data and every intermediate resolution result is a Value:
the JSON-native Python types, classified by a closed ValueKind.

Rules:
- bool is classified before number (bool is an int subclass).
- No implicit coercion: callers compare kinds and raise TypeMismatch themselves.
- ensure_value() is the only entry for foreign data; it copies as it validates.
"""

# ==============================
# Imports
# ==============================
from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Mapping, Union

# ==============================
# Typing
# ==============================
Value = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]


# ==============================
# Enums
# ==============================
class ValueKind(str, Enum):
    """Closed set of value shapes."""
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


SCALAR_KINDS = frozenset({ValueKind.NULL, ValueKind.BOOL, ValueKind.NUMBER, ValueKind.STRING})

# Deepest array/object nesting accepted from callers.
MAX_VALUE_DEPTH = 128


# ==============================
# Classification
# ==============================
def value_kind(value: Any) -> ValueKind:
    """Classify a Value. Raises TypeError for anything outside the closed set."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, list):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    raise TypeError(f"Unsupported value type: {type(value).__name__}")


def is_truthy(value: Any) -> bool:
    """Block truthiness: false iff false, 0, "", [], {} or null."""
    kind = value_kind(value)
    if kind is ValueKind.NULL:
        return False
    if kind is ValueKind.BOOL:
        return value
    if kind is ValueKind.NUMBER:
        return value != 0
    if kind is ValueKind.STRING:
        return value != ""
    # array / object
    return len(value) > 0


# ==============================
# Validation
# ==============================
def ensure_value(value: Any, *, where: str = "value", _depth: int = 0) -> Value:
    """
    Deep-validate and copy foreign data into a Value.

    Tuples become arrays. Mapping keys must be strings. Floats must be finite.
    Nesting deeper than MAX_VALUE_DEPTH is rejected.
    """
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"{where}: non-finite number is not a valid value")
        return value
    if isinstance(value, (list, tuple, Mapping)) and _depth >= MAX_VALUE_DEPTH:
        raise ValueError(f"{where}: nested deeper than {MAX_VALUE_DEPTH} levels")
    if isinstance(value, (list, tuple)):
        return [ensure_value(item, where=f"{where}[{i}]", _depth=_depth + 1) for i, item in enumerate(value)]
    if isinstance(value, Mapping):
        out: Dict[str, Any] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValueError(f"{where}: object keys must be strings, got {type(key).__name__}")
            out[key] = ensure_value(item, where=f"{where}.{key}", _depth=_depth + 1)
        return out
    raise ValueError(f"{where}: unsupported value type {type(value).__name__}")


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge objects: override wins on conflicting fields.
    """
    out: Dict[str, Any] = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out
