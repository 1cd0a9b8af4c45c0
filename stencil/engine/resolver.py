# ==============================
# Scope Resolver
# ==============================
"""
Resolves identifier paths against a scope stack plus the root context.

Order (first hit wins):
1. innermost frame (current `this`)
2. ancestor frames, outward to the root context
3. implicit lookup (opt-in, single-segment paths only):
   state layers session -> user -> team -> tenant, then payload
4. MissingIdentifier

A frame is tried when the path's head field is present in it. If the rest of the
path is missing there, the next frame outward is tried. No defaults are returned.

Type rules:
- field segment requires an object, index segment requires an array; a wrong
  shape is a TypeMismatch and stops the lookup
- missing field / out-of-range index moves on to the next frame, and is
  MissingIdentifier once every frame and the implicit lookup have missed
"""

from __future__ import annotations

__all__ = ["Frame", "root_frame", "resolve"]

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from stencil.contracts.context_schema import STATE_LAYER_ORDER, Context
from stencil.contracts.template_schema import IdentPath, Segment
from stencil.contracts.value_schema import ValueKind, value_kind
from stencil.engine.errors import MissingIdentifier, TypeMismatch


@dataclass(frozen=True)
class Frame:
    """One scope level. `data` carries iteration names (@index, @first, @last)."""
    value: Any
    data: Dict[str, Any] = field(default_factory=dict)


def root_frame(context: Context) -> Frame:
    return Frame(value=context.root)


def resolve(
    scopes: Sequence[Frame],
    context: Context,
    path: IdentPath,
    *,
    implicit_lookup: bool = False,
) -> Any:
    """Resolve `path`; raises MissingIdentifier or TypeMismatch."""
    if not scopes:
        raise ValueError("scope stack must contain at least the root frame")

    if path.is_data:
        for frame in reversed(scopes):
            if path.head in frame.data:
                return frame.data[path.head]
        raise MissingIdentifier(str(path))

    if path.is_this:
        return _walk(scopes[-1].value, path.tail, path)

    head = path.head
    for frame in reversed(scopes):
        if isinstance(frame.value, dict) and head in frame.value:
            try:
                return _walk(frame.value[head], path.tail, path)
            except MissingIdentifier:
                continue

    if implicit_lookup and path.is_single:
        for name in reversed(STATE_LAYER_ORDER):
            layer = getattr(context.state, name)
            if layer is not None and head in layer:
                return layer[head]
        if isinstance(context.payload, dict) and head in context.payload:
            return context.payload[head]

    raise MissingIdentifier(str(path))


def _walk(value: Any, segments: Sequence[Segment], path: IdentPath) -> Any:
    current = value
    for seg in segments:
        kind = value_kind(current)
        if isinstance(seg, int):
            if kind is not ValueKind.ARRAY:
                raise TypeMismatch(str(path), expected=ValueKind.ARRAY.value, actual=kind.value)
            items: List[Any] = current
            if seg >= len(items):
                raise MissingIdentifier(str(path))
            current = items[seg]
        else:
            if kind is not ValueKind.OBJECT:
                raise TypeMismatch(str(path), expected=ValueKind.OBJECT.value, actual=kind.value)
            if seg not in current:
                raise MissingIdentifier(str(path))
            current = current[seg]
    return current
