# ==============================
# Context Contracts
# ==============================
"""
Rendering context contracts for stencil/.

These models define the per-call input shape the engine renders against:
- MessageEnvelope: channel message (sender/channel metadata + a Value payload)
- StateLayers: optional ordered state (tenant < team < user < session)
- Context: immutable snapshot composed by the context builder

Principles:
- A Context is built fresh per call and never mutated or shared.
- State layers are explicit inputs, never ambient/global state.
"""

# ==============================
# Imports
# ==============================
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stencil.contracts.value_schema import deep_merge, ensure_value

# ==============================
# Constants
# ==============================
# Lowest to highest precedence when merged.
STATE_LAYER_ORDER: Tuple[str, ...] = ("tenant", "team", "user", "session")


# ==============================
# Message Envelope
# ==============================
class TenantScope(BaseModel):
    """Tenant scope attached to every message."""
    model_config = ConfigDict(extra="forbid")

    env: str = Field(default="", description="Environment id (e.g., dev, prod).")
    tenant: str = Field(default="", description="Tenant id.")
    team: Optional[str] = Field(default=None, description="Optional team id.")
    user: Optional[str] = Field(default=None, description="Optional user id.")


class MessageEnvelope(BaseModel):
    """Channel message envelope passed through to templates as `msg`."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., min_length=1, description="Message id.")
    channel: str = Field(..., min_length=1, description="Channel name (chat, email, ...).")
    session_id: str = Field(default="", description="Conversation/session id.")
    tenant: TenantScope = Field(default_factory=TenantScope, description="Tenant scope.")

    sender: Optional[str] = Field(default=None, alias="from", description="Sender identifier.")
    to: List[str] = Field(default_factory=list, description="Recipients.")
    correlation_id: Optional[str] = Field(default=None)
    text: Optional[str] = Field(default=None, description="Message text, if any.")
    metadata: Dict[str, str] = Field(default_factory=dict, description="Free-form string metadata.")
    payload: Any = Field(default=None, description="Message payload (Value).")

    @field_validator("payload")
    @classmethod
    def _payload_is_value(cls, v: Any) -> Any:
        return ensure_value(v, where="msg.payload")

    def to_value(self) -> Dict[str, Any]:
        """Value view used as the `msg` section of the root context."""
        return ensure_value(self.model_dump(mode="json", by_alias=True), where="msg")


# ==============================
# State Layers
# ==============================
class StateLayers(BaseModel):
    """
    Optional layered state.

    Each layer is an Object or absent. When merged for lookup, later layers
    (session) override earlier ones (tenant) on conflicting fields.
    """
    model_config = ConfigDict(extra="forbid")

    tenant: Optional[Dict[str, Any]] = None
    team: Optional[Dict[str, Any]] = None
    user: Optional[Dict[str, Any]] = None
    session: Optional[Dict[str, Any]] = None

    @field_validator("tenant", "team", "user", "session", mode="before")
    @classmethod
    def _layer_is_object(cls, v: Any) -> Any:
        if v is None:
            return None
        if not isinstance(v, dict):
            raise ValueError("state layer must be an object")
        return ensure_value(v, where="state")

    def present(self) -> List[Tuple[str, Dict[str, Any]]]:
        """Supplied layers, lowest precedence first."""
        out: List[Tuple[str, Dict[str, Any]]] = []
        for name in STATE_LAYER_ORDER:
            layer = getattr(self, name)
            if layer is not None:
                out.append((name, layer))
        return out

    def is_empty(self) -> bool:
        return not self.present()

    def merged(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for _, layer in self.present():
            out = deep_merge(out, layer)
        return out


# ==============================
# Context
# ==============================
class Context(BaseModel):
    """
    Immutable per-call rendering context.

    `root` is the outermost scope frame: {"payload", "msg", "state"?}.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    payload: Any = Field(default=None, description="Call payload (Value).")
    msg: MessageEnvelope = Field(..., description="Message envelope.")
    state: StateLayers = Field(default_factory=StateLayers, description="Optional state layers.")
    root: Dict[str, Any] = Field(default_factory=dict, description="Root scope frame.")
