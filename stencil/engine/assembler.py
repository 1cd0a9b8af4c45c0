# ==============================
# Output Assembler
# ==============================
"""
Wraps rendered text with the routing tag and the host-facing payload.
"""

from __future__ import annotations

from typing import Any, Optional

from stencil.contracts.render_schema import DEFAULT_OUTPUT_PATH, DEFAULT_ROUTING, TemplateConfig, TemplateOutput


def assemble(
    rendered: str,
    config: TemplateConfig,
    *,
    default_routing: str = DEFAULT_ROUTING,
    default_output_path: str = DEFAULT_OUTPUT_PATH,
) -> TemplateOutput:
    routing = _non_blank(config.routing) or default_routing
    if config.wrap:
        payload = nest_payload(_non_blank(config.output_path) or default_output_path, rendered)
    else:
        payload = rendered
    return TemplateOutput(text=rendered, routing=routing, payload=payload)


def nest_payload(path: str, rendered: str) -> Any:
    """`reply.body` -> {"reply": {"body": rendered}}; empty segments are skipped."""
    value: Any = rendered
    for segment in reversed([s for s in path.split(".") if s]):
        value = {segment: value}
    return value


def _non_blank(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()
