# ==============================
# Logging Bootstrap
# ==============================
"""
Logging bootstrap.

Goals:
- Centralize logger configuration using Settings.logging.
- Provide structured context fields (request_id, tenant, session_id, channel).
- stdlib logging + JSON-line formatter, optionally passed through SecurityRedactor.

No persistence here.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional, TextIO

from stencil.config.schema import Settings
from stencil.contracts.context_schema import MessageEnvelope
from stencil.governance.security import SecurityRedactor

CONTEXT_FIELDS = ("request_id", "tenant", "session_id", "channel")
EXTRA_FIELDS = CONTEXT_FIELDS + ("kind", "path", "position", "details", "routing", "chars")


@dataclass(frozen=True)
class LogContext:
    request_id: Optional[str] = None
    tenant: Optional[str] = None
    session_id: Optional[str] = None
    channel: Optional[str] = None

    @classmethod
    def from_message(cls, msg: MessageEnvelope) -> "LogContext":
        return cls(
            request_id=msg.id,
            tenant=msg.tenant.tenant or None,
            session_id=msg.session_id or None,
            channel=msg.channel,
        )


class JsonLineFormatter(logging.Formatter):
    def __init__(self, *, redactor: Optional[SecurityRedactor] = None) -> None:
        super().__init__()
        self.redactor = redactor

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        # Optional structured extras
        for k in EXTRA_FIELDS:
            if hasattr(record, k):
                payload[k] = getattr(record, k)
        if self.redactor is not None:
            payload = self.redactor.sanitize(payload)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def bootstrap_logger(settings: Settings, *, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Configure root logger based on settings.
    Returns a named logger ("stencil").

    stream defaults to stdout; the CLI passes stderr so its JSON output stays clean.
    """
    level = getattr(logging, settings.logging.level.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)

    # clear existing handlers to avoid duplicates in reload
    root.handlers = []

    if settings.logging.console:
        redactor = SecurityRedactor.from_settings(settings) if settings.logging.redact else None
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setLevel(level)
        handler.setFormatter(JsonLineFormatter(redactor=redactor))
        root.addHandler(handler)

    return logging.getLogger("stencil")


class ContextAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges per-call extras instead of replacing them."""

    def process(self, msg: Any, kwargs: Any) -> Any:
        kwargs["extra"] = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        return msg, kwargs


def with_context(logger: logging.Logger, ctx: LogContext) -> ContextAdapter:
    return ContextAdapter(
        logger,
        {k: getattr(ctx, k) for k in CONTEXT_FIELDS},
    )
