# ==============================
# Renderer
# ==============================
"""
Walks a Template AST over a scope stack and produces text.

Rules:
- Initial stack is [root frame]; only `each` pushes frames.
- Output goes to a call-local buffer returned only when the whole walk succeeds
  (all-or-nothing; no partial text on failure).
- No state is kept between calls.
"""

from __future__ import annotations

__all__ = ["render_template"]

import logging
from typing import Any, List, Sequence

from stencil.contracts.context_schema import Context
from stencil.contracts.template_schema import Block, Helper, Literal, Node, Template, Variable
from stencil.contracts.value_schema import ValueKind, is_truthy, value_kind
from stencil.engine.errors import MissingIdentifier, TypeMismatch
from stencil.engine.resolver import Frame, resolve, root_frame
from stencil.engine.serializer import escaped_text, raw_text


logger = logging.getLogger("stencil.renderer")


class _Walker:
    def __init__(self, context: Context, *, implicit_lookup: bool) -> None:
        self.context = context
        self.implicit_lookup = implicit_lookup
        self.scopes: List[Frame] = [root_frame(context)]
        self.out: List[str] = []

    def lookup(self, node: Variable | Block) -> Any:
        return resolve(self.scopes, self.context, node.path, implicit_lookup=self.implicit_lookup)

    def walk(self, nodes: Sequence[Node]) -> None:
        for node in nodes:
            if isinstance(node, Literal):
                self.out.append(node.text)
            elif isinstance(node, Variable):
                value = self.lookup(node)
                self.out.append(raw_text(value) if node.raw else escaped_text(value))
            elif node.helper is Helper.IF:
                self._if(node)
            else:
                self._each(node)

    def _if(self, block: Block) -> None:
        try:
            value = self.lookup(block)
        except MissingIdentifier:
            value = None
        if is_truthy(value):
            self.walk(block.children)
        elif block.else_children is not None:
            self.walk(block.else_children)

    def _each(self, block: Block) -> None:
        value = self.lookup(block)
        kind = value_kind(value)
        if kind is not ValueKind.ARRAY:
            raise TypeMismatch(str(block.path), expected=ValueKind.ARRAY.value, actual=kind.value)
        if not value:
            if block.else_children is not None:
                self.walk(block.else_children)
            return
        last = len(value) - 1
        for index, item in enumerate(value):
            data = {"@index": index, "@first": index == 0, "@last": index == last}
            self.scopes.append(Frame(value=item, data=data))
            try:
                self.walk(block.children)
            finally:
                self.scopes.pop()


def render_template(template: Template, context: Context, *, implicit_lookup: bool = False) -> str:
    """Render a parsed template. Raises TemplateError subclasses on failure."""
    walker = _Walker(context, implicit_lookup=implicit_lookup)
    walker.walk(template.nodes)
    text = "".join(walker.out)
    logger.debug("template_rendered", extra={"chars": len(text)})
    return text
