# ==============================
# Template Component
# ==============================
"""
The `text` operation: render(config, inputs) -> RenderResult.

Pipeline per call (nothing is shared between calls):
  config -> parse -> build context -> render -> assemble

Errors are raised by the engine pieces and converted to RenderErrorInfo here.
A failed call never carries partial text.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from stencil.config.schema import EngineConfig, Settings
from stencil.contracts.render_schema import (
    Invocation,
    RenderInputs,
    RenderResult,
    TemplateConfig,
)
from stencil.contracts.template_schema import Template
from stencil.engine.assembler import assemble
from stencil.engine.context_builder import build_context
from stencil.engine.errors import InvalidInput, InvocationError, TemplateError, UnsupportedOperation
from stencil.engine.parser import parse
from stencil.engine.renderer import render_template
from stencil.governance.scope import ensure_scope
from stencil.logging.logger import LogContext, with_context

SUPPORTED_OPERATION = "text"
COMPONENT_ID = "stencil.component-templates"
COMPONENT_NAME = "templates"
COMPONENT_VERSION = "0.1.0"
COMPONENT_ROLE = "tool"

ConfigInput = Union[TemplateConfig, Dict[str, Any]]
InputsInput = Union[RenderInputs, Dict[str, Any]]


def _invalid_input(exc: Exception) -> InvalidInput:
    if isinstance(exc, ValidationError):
        return InvalidInput("Invalid input", details={"errors": json.loads(exc.json(include_url=False))})
    return InvalidInput("Invalid input", details={"error": str(exc)})


class TemplateEngine:
    def __init__(self, *, config: Optional[EngineConfig] = None, logger: Optional[logging.Logger] = None) -> None:
        self.config = config or EngineConfig()
        self.logger = logger or logging.getLogger("stencil.component")

    @classmethod
    def from_settings(cls, settings: Settings) -> "TemplateEngine":
        return cls(config=settings.engine)

    # ==============================
    # Operations
    # ==============================
    def check(self, text: str) -> Template:
        """Parse only. Raises InvalidInput or a TemplateError."""
        if len(text) > self.config.max_template_chars:
            raise InvalidInput(
                "Template exceeds maximum length",
                details={"chars": len(text), "max_template_chars": self.config.max_template_chars},
            )
        return parse(text, max_depth=self.config.max_depth)

    def render(self, config: ConfigInput, inputs: InputsInput) -> RenderResult:
        try:
            cfg = self._config(config)
            call = inputs if isinstance(inputs, RenderInputs) else RenderInputs.model_validate(inputs)
        except (ValidationError, ValueError) as exc:
            return self._failed(_invalid_input(exc), None)

        log = with_context(self.logger, LogContext.from_message(call.msg))
        try:
            template = self.check(cfg.text)
            context = build_context(call.payload, call.msg, call.state)
        except (TemplateError, InvocationError) as exc:
            return self._failed(exc, log)
        except (ValidationError, ValueError) as exc:
            return self._failed(_invalid_input(exc), log)

        implicit = self.config.implicit_lookup if cfg.implicit_lookup is None else cfg.implicit_lookup
        try:
            rendered = render_template(template, context, implicit_lookup=implicit)
        except TemplateError as exc:
            return self._failed(exc, log)

        output = assemble(
            rendered,
            cfg,
            default_routing=self.config.default_routing,
            default_output_path=self.config.default_output_path,
        )
        log.info("render_completed", extra={"routing": output.routing, "chars": len(rendered)})
        return RenderResult.success(output)

    def invoke(self, operation: str, invocation: Union[Invocation, Dict[str, Any], str]) -> RenderResult:
        """Host-style entry: operation check, invocation validation, scope guard, render."""
        if operation != SUPPORTED_OPERATION:
            return self._failed(UnsupportedOperation(operation, supported=SUPPORTED_OPERATION), None)
        try:
            if isinstance(invocation, str):
                invocation = json.loads(invocation)
            inv = invocation if isinstance(invocation, Invocation) else Invocation.model_validate(invocation)
        except (ValidationError, ValueError, RecursionError) as exc:
            return self._failed(_invalid_input(exc), None)

        try:
            ensure_scope(inv.msg)
        except InvocationError as exc:
            return self._failed(exc, with_context(self.logger, LogContext.from_message(inv.msg)))
        return self.render(inv.config, inv.inputs())

    def describe(self) -> Dict[str, Any]:
        return {
            "component": {
                "id": COMPONENT_ID,
                "name": COMPONENT_NAME,
                "version": COMPONENT_VERSION,
                "role": COMPONENT_ROLE,
                "operations": [SUPPORTED_OPERATION],
            },
            "defaults": self.config.model_dump(),
            "schemas": {
                "config": TemplateConfig.model_json_schema(),
                "input": Invocation.model_json_schema(),
                "output": RenderResult.model_json_schema(),
            },
        }

    # ==============================
    # Helpers
    # ==============================
    @staticmethod
    def _config(config: ConfigInput) -> TemplateConfig:
        if isinstance(config, TemplateConfig):
            return config
        return TemplateConfig.from_component_config(config)

    def _failed(self, exc: Union[TemplateError, InvocationError], log: Optional[logging.LoggerAdapter]) -> RenderResult:
        error = exc.to_error()
        (log or self.logger).warning(
            "render_failed",
            extra={
                "kind": error.kind.value,
                "path": error.path,
                "position": error.position,
                "details": error.details or None,
            },
        )
        return RenderResult.fail(error)


# ==============================
# Module-level API
# ==============================
_default_engine = TemplateEngine()


def render(config: ConfigInput, inputs: InputsInput) -> RenderResult:
    return _default_engine.render(config, inputs)


def invoke(operation: str, invocation: Union[Invocation, Dict[str, Any], str]) -> RenderResult:
    return _default_engine.invoke(operation, invocation)


def describe() -> Dict[str, Any]:
    return _default_engine.describe()
