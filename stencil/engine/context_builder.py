# ==============================
# Context Builder
# ==============================
"""
Assembles the immutable per-call Context from payload, message envelope and
optional state layers.

Pure: no I/O, no templates inspected. Inputs are deep-copied as they are validated,
so the caller may mutate its own objects afterwards without affecting the Context.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union

from stencil.contracts.context_schema import STATE_LAYER_ORDER, Context, MessageEnvelope, StateLayers
from stencil.contracts.value_schema import ensure_value

MsgInput = Union[MessageEnvelope, Mapping[str, Any]]
StateInput = Union[StateLayers, Mapping[str, Any], None]


def build_context(payload: Any, msg: MsgInput, state_layers: StateInput = None) -> Context:
    """Build a fresh Context. Raises ValueError/pydantic.ValidationError on bad input."""
    payload_value = ensure_value(payload, where="payload")
    envelope = _to_envelope(msg)
    layers = _to_layers(state_layers)

    root: Dict[str, Any] = {
        "payload": payload_value,
        "msg": envelope.to_value(),
    }
    if not layers.is_empty():
        root["state"] = layers.merged()

    return Context(payload=payload_value, msg=envelope, state=layers, root=root)


def _to_envelope(msg: MsgInput) -> MessageEnvelope:
    if isinstance(msg, MessageEnvelope):
        return MessageEnvelope.model_validate(msg.model_dump(by_alias=True))
    if isinstance(msg, Mapping):
        return MessageEnvelope.model_validate(dict(msg))
    raise ValueError("msg must be a message envelope object")


def _to_layers(state_layers: StateInput) -> StateLayers:
    if state_layers is None:
        return StateLayers()
    if isinstance(state_layers, StateLayers):
        return StateLayers.model_validate(state_layers.model_dump())
    if isinstance(state_layers, Mapping):
        unknown = sorted(set(state_layers) - set(STATE_LAYER_ORDER))
        if unknown:
            raise ValueError(f"Unknown state layers: {', '.join(unknown)}")
        return StateLayers.model_validate(dict(state_layers))
    raise ValueError("state must be an object of layers")
