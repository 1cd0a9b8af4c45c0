# ==============================
# Template Parser
# ==============================
"""
Compiles template text into a Template AST in a single pass.

Syntax:
  {{path}}                   escaped variable
  {{{path}}}                 raw variable
  {{#if path}}...{{/if}}     conditional (optional {{else}})
  {{#each path}}...{{/each}} iteration (optional {{else}})

Paths are dotted: field names ([A-Za-z_][A-Za-z0-9_-]*) or array indexes (digits).
`this` and the iteration data names (@index, @first, @last) are allowed as heads only.

Blocks may nest at most `max_depth` levels; a deeper open tag is a ParseError.

Failures raise ParseError/UnsupportedHelper. No partial AST is ever returned.
"""

from __future__ import annotations

__all__ = ["parse", "parse_path"]

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from stencil.contracts.template_schema import (
    DATA_NAMES,
    DEFAULT_MAX_DEPTH,
    MAX_DEPTH_LIMIT,
    THIS,
    Block,
    Helper,
    IdentPath,
    Literal,
    Node,
    Segment,
    Template,
    Variable,
)
from stencil.engine.errors import ParseError, UnsupportedHelper


_OPEN = "{{"
_OPEN_RAW = "{{{"
_CLOSE = "}}"
_CLOSE_RAW = "}}}"
_ELSE = "else"

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_\-]*")
_INDEX_RE = re.compile(r"[0-9]+")


@dataclass
class _OpenBlock:
    helper: Helper
    path: IdentPath
    position: int
    children: List[Node] = field(default_factory=list)
    else_children: Optional[List[Node]] = None

    @property
    def target(self) -> List[Node]:
        return self.children if self.else_children is None else self.else_children


def parse(source: str, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Template:
    """Parse template text into an immutable Template."""
    if not isinstance(source, str):
        raise TypeError("template source must be a string")
    if not 0 < max_depth <= MAX_DEPTH_LIMIT:
        raise ValueError(f"max_depth must be between 1 and {MAX_DEPTH_LIMIT}")

    root: List[Node] = []
    stack: List[_OpenBlock] = []
    pos = 0
    length = len(source)

    def emit(node: Node) -> None:
        (stack[-1].target if stack else root).append(node)

    while pos < length:
        start = source.find(_OPEN, pos)
        if start < 0:
            emit(Literal(source[pos:]))
            break
        if start > pos:
            emit(Literal(source[pos:start]))

        raw = source.startswith(_OPEN_RAW, start)
        opener, closer = (_OPEN_RAW, _CLOSE_RAW) if raw else (_OPEN, _CLOSE)
        end = source.find(closer, start + len(opener))
        if end < 0:
            raise ParseError(f"Unterminated tag '{opener}'", position=start, source=source)
        body = source[start + len(opener) : end].strip()
        pos = end + len(closer)

        if not body:
            raise ParseError("Empty tag", position=start, source=source)

        if body.startswith("#"):
            if raw:
                raise ParseError("Block helpers cannot use triple braces", position=start, source=source)
            helper, path = _parse_open(body[1:], start, source)
            if len(stack) >= max_depth:
                raise ParseError(f"Blocks nested deeper than {max_depth} levels", position=start, source=source)
            stack.append(_OpenBlock(helper=helper, path=path, position=start))
            continue

        if body.startswith("/"):
            if raw:
                raise ParseError("Block close cannot use triple braces", position=start, source=source)
            name = body[1:].strip()
            if not stack:
                raise ParseError(f"Unexpected close '{{{{/{name}}}}}' with no open block", position=start, source=source)
            block = stack.pop()
            if name != block.helper.value:
                raise ParseError(
                    f"Mismatched close '{{{{/{name}}}}}' for open '{{{{#{block.helper.value}}}}}'",
                    position=start,
                    source=source,
                )
            emit(_freeze(block))
            continue

        if body == _ELSE and not raw:
            if not stack:
                raise ParseError("'{{else}}' outside of a block", position=start, source=source)
            if stack[-1].else_children is not None:
                raise ParseError("Duplicate '{{else}}' in block", position=start, source=source)
            stack[-1].else_children = []
            continue

        emit(Variable(path=parse_path(body, position=start, source=source), raw=raw, position=start))

    if stack:
        block = stack[-1]
        raise ParseError(
            f"Unclosed block '{{{{#{block.helper.value}}}}}'",
            position=block.position,
            source=source,
        )
    return Template(nodes=tuple(root), source=source)


def parse_path(text: str, *, position: int = 0, source: str = "") -> IdentPath:
    """Parse a dotted identifier path."""
    if not text:
        raise ParseError("Empty identifier path", position=position, source=source)
    raw_segments = text.split(".")
    segments: List[Segment] = []
    for i, seg in enumerate(raw_segments):
        if not seg:
            raise ParseError(f"Empty segment in path '{text}'", position=position, source=source)
        if seg in DATA_NAMES:
            if i != 0 or len(raw_segments) > 1:
                raise ParseError(f"'{seg}' must be used alone in path '{text}'", position=position, source=source)
            segments.append(seg)
        elif seg == THIS:
            if i != 0:
                raise ParseError(f"'this' must lead path '{text}'", position=position, source=source)
            segments.append(seg)
        elif _INDEX_RE.fullmatch(seg):
            if i == 0:
                raise ParseError(f"Path '{text}' must start with a name", position=position, source=source)
            segments.append(int(seg))
        elif _NAME_RE.fullmatch(seg):
            segments.append(seg)
        else:
            raise ParseError(f"Invalid segment '{seg}' in path '{text}'", position=position, source=source)
    return IdentPath(segments=tuple(segments))


def _parse_open(body: str, position: int, source: str) -> Tuple[Helper, IdentPath]:
    parts = body.split()
    if not parts:
        raise ParseError("Missing block helper name", position=position, source=source)
    name, args = parts[0], parts[1:]
    try:
        helper = Helper(name)
    except ValueError:
        raise UnsupportedHelper(name, position=position, source=source) from None
    if len(args) != 1:
        raise ParseError(
            f"Block helper '{name}' requires exactly one path argument",
            position=position,
            source=source,
        )
    return helper, parse_path(args[0], position=position, source=source)


def _freeze(block: _OpenBlock) -> Block:
    return Block(
        helper=block.helper,
        path=block.path,
        children=tuple(block.children),
        else_children=tuple(block.else_children) if block.else_children is not None else None,
        position=block.position,
    )
