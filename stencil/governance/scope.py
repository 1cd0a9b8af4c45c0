# ==============================
# Scope Guard
# ==============================
"""
Fail-closed tenant scope check for incoming messages.

A message must carry a tenant id, an environment id and a session id; anything
less is rejected before a context is built.
"""

from __future__ import annotations

from stencil.contracts.context_schema import MessageEnvelope
from stencil.engine.errors import InvalidScope


def ensure_scope(msg: MessageEnvelope) -> None:
    missing = [
        name
        for name, value in (
            ("tenant", msg.tenant.tenant),
            ("env", msg.tenant.env),
            ("session_id", msg.session_id),
        )
        if not value.strip()
    ]
    if missing:
        raise InvalidScope(
            "Message is missing tenant scope",
            details={"missing": missing},
        )
