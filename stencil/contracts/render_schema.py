# ==============================
# Render Contracts
# ==============================
"""
Render contracts for stencil/.

These models define the stable configuration, invocation and result envelope of
the `text` operation. No module should invent its own result shape; use RenderResult.

Intended usage:
- Hosts build an Invocation (config + msg + payload + optional state)
- component.render()/invoke() return RenderResult
- Gateway API/CLI serialize RenderResult as-is
"""

# ==============================
# Imports
# ==============================
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from stencil.contracts.context_schema import MessageEnvelope, StateLayers

# ==============================
# Constants
# ==============================
DEFAULT_ROUTING = "out"
DEFAULT_OUTPUT_PATH = "text"
CONFIG_SECTION = "templates"
CONFIG_FIELDS = ("text", "routing", "output_path", "wrap", "implicit_lookup")


# ==============================
# Enums
# ==============================
class RenderErrorKind(str, Enum):
    """Machine-readable failure kinds."""
    PARSE_ERROR = "ParseError"
    MISSING_IDENTIFIER = "MissingIdentifier"
    TYPE_MISMATCH = "TypeMismatch"
    UNSUPPORTED_HELPER = "UnsupportedHelper"
    INVALID_INPUT = "InvalidInput"
    INVALID_SCOPE = "InvalidScope"
    UNSUPPORTED_OPERATION = "UnsupportedOperation"


# ==============================
# Configuration
# ==============================
class TemplateConfig(BaseModel):
    """Authoring-time configuration of the `text` operation."""
    model_config = ConfigDict(extra="forbid")

    text: str = Field(..., min_length=1, description="Template source.")
    routing: Optional[str] = Field(default=None, description="Routing tag (blank -> default).")
    output_path: Optional[str] = Field(default=None, description="Dotted path the text is nested under.")
    wrap: bool = Field(default=True, description="Nest the text under output_path; else emit the bare string.")
    implicit_lookup: Optional[bool] = Field(
        default=None,
        description="Enable single-segment fallback to state layers/payload (None -> engine default).",
    )

    @classmethod
    def from_component_config(cls, raw: Dict[str, Any]) -> "TemplateConfig":
        """
        Accept the config flat, nested under `templates`, or as dotted
        `templates.<field>` keys. Nested values win over dotted ones.
        """
        if not isinstance(raw, dict):
            raise ValueError("config must be an object")
        dotted = {
            key[len(CONFIG_SECTION) + 1 :]: value
            for key, value in raw.items()
            if key.startswith(CONFIG_SECTION + ".") and key[len(CONFIG_SECTION) + 1 :] in CONFIG_FIELDS
        }
        if CONFIG_SECTION not in raw and not dotted:
            return cls.model_validate(raw)
        nested = raw.get(CONFIG_SECTION) or {}
        if not isinstance(nested, dict):
            raise ValueError(f"config '{CONFIG_SECTION}' must be an object")
        merged: Dict[str, Any] = dict(dotted)
        merged.update(nested)
        return cls.model_validate(merged)


# ==============================
# Inputs
# ==============================
class RenderInputs(BaseModel):
    """Per-call inputs."""
    model_config = ConfigDict(extra="forbid")

    payload: Any = Field(default=None, description="Call payload (Value).")
    msg: MessageEnvelope = Field(..., description="Channel message envelope.")
    state: Optional[StateLayers] = Field(default=None, description="Optional state layers.")


class Invocation(BaseModel):
    """Host-style invocation: raw component config plus per-call inputs."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    config: Dict[str, Any] = Field(..., description="Component config (flat, nested or dotted).")
    msg: MessageEnvelope = Field(..., description="Channel message envelope.")
    payload: Any = Field(default=None, description="Call payload (Value).")
    state: Optional[StateLayers] = Field(default=None, description="Optional state layers.")
    connections: List[str] = Field(default_factory=list, description="Outgoing connections (unused by rendering).")

    def inputs(self) -> RenderInputs:
        return RenderInputs(payload=self.payload, msg=self.msg, state=self.state)


# ==============================
# Results
# ==============================
class TemplateOutput(BaseModel):
    """Successful render output."""
    model_config = ConfigDict(extra="forbid")

    text: str = Field(..., description="Rendered text.")
    routing: str = Field(default=DEFAULT_ROUTING, description="Routing tag for the next destination.")
    payload: Any = Field(default=None, description="Host-facing payload (wrapped text or bare string).")


class RenderErrorInfo(BaseModel):
    """Structured failure. Errors are data at the component boundary."""
    model_config = ConfigDict(extra="forbid")

    kind: RenderErrorKind = Field(..., description="Failure kind.")
    message: str = Field(..., description="Human readable message.")
    path: Optional[str] = Field(default=None, description="Offending identifier path.")
    position: Optional[int] = Field(default=None, description="0-based offset into the template.")
    line: Optional[int] = Field(default=None, description="1-based line of position.")
    column: Optional[int] = Field(default=None, description="1-based column of position.")
    expected: Optional[str] = Field(default=None, description="Expected value kind (TypeMismatch).")
    actual: Optional[str] = Field(default=None, description="Actual value kind (TypeMismatch).")
    name: Optional[str] = Field(default=None, description="Helper name (UnsupportedHelper).")
    details: Dict[str, Any] = Field(default_factory=dict, description="Optional structured details.")


class RenderResult(BaseModel):
    """
    Standard envelope for render results.

    Pattern:
      ok: bool
      output: TemplateOutput | None
      error: RenderErrorInfo | None
    """
    model_config = ConfigDict(extra="forbid")

    ok: bool = Field(..., description="True if rendering succeeded.")
    output: Optional[TemplateOutput] = Field(default=None, description="Render output if ok=True.")
    error: Optional[RenderErrorInfo] = Field(default=None, description="Render error if ok=False.")

    @model_validator(mode="after")
    def _enforce_error_contract(self) -> "RenderResult":
        if self.ok and (self.error is not None or self.output is None):
            raise ValueError("Render output is required and error must be None when ok=True")
        if not self.ok and (self.error is None or self.output is not None):
            raise ValueError("Render error is required and output must be None when ok=False")
        return self

    @classmethod
    def success(cls, output: TemplateOutput) -> "RenderResult":
        return cls(ok=True, output=output, error=None)

    @classmethod
    def fail(cls, error: RenderErrorInfo) -> "RenderResult":
        return cls(ok=False, output=None, error=error)

    def to_dict(self) -> Dict[str, Any]:
        """Stable serialization wrapper."""
        return self.model_dump(mode="json")
