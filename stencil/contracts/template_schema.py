# ==============================
# Template Contracts (AST)
# ==============================
"""
Template AST for stencil/.

Built once by the parser; immutable thereafter (frozen dataclasses, tuple children).

Node kinds:
- Literal(text)
- Variable(path, raw)
- Block(helper in {if, each}, path, children, else_children)
"""

# ==============================
# Imports
# ==============================
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

# ==============================
# Typing
# ==============================
Segment = Union[str, int]

THIS = "this"
DATA_PREFIX = "@"
DATA_NAMES = frozenset({"@index", "@first", "@last"})

# Block nesting. The renderer recurses once per level.
DEFAULT_MAX_DEPTH = 64
MAX_DEPTH_LIMIT = 256


# ==============================
# Enums
# ==============================
class Helper(str, Enum):
    """Closed set of block helpers."""
    IF = "if"
    EACH = "each"


# ==============================
# Paths
# ==============================
@dataclass(frozen=True)
class IdentPath:
    """Dotted identifier path; segments are field names or array indexes."""
    segments: Tuple[Segment, ...]

    @property
    def head(self) -> Segment:
        return self.segments[0]

    @property
    def tail(self) -> Tuple[Segment, ...]:
        return self.segments[1:]

    @property
    def is_this(self) -> bool:
        return self.head == THIS

    @property
    def is_data(self) -> bool:
        return isinstance(self.head, str) and self.head.startswith(DATA_PREFIX)

    @property
    def is_single(self) -> bool:
        return len(self.segments) == 1 and isinstance(self.head, str)

    def __str__(self) -> str:
        return ".".join(str(s) for s in self.segments)


# ==============================
# Nodes
# ==============================
@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Variable:
    path: IdentPath
    raw: bool = False
    position: int = 0


@dataclass(frozen=True)
class Block:
    helper: Helper
    path: IdentPath
    children: Tuple["Node", ...] = ()
    else_children: Optional[Tuple["Node", ...]] = None
    position: int = 0


Node = Union[Literal, Variable, Block]


@dataclass(frozen=True)
class Template:
    """Parsed template: top-level node sequence plus the source it came from."""
    nodes: Tuple[Node, ...]
    source: str = ""

    def variables(self) -> Tuple[IdentPath, ...]:
        """All referenced paths, in document order (variables and block arguments)."""
        found = []

        def walk(nodes: Tuple[Node, ...]) -> None:
            for node in nodes:
                if isinstance(node, Variable):
                    found.append(node.path)
                elif isinstance(node, Block):
                    found.append(node.path)
                    walk(node.children)
                    if node.else_children is not None:
                        walk(node.else_children)

        walk(self.nodes)
        return tuple(found)
