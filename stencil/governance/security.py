# ==============================
# Log Redaction
# ==============================
"""
Redaction of render logs.

What reaches the log from a render call:
- LogContext fields copied from the message envelope (request_id, tenant, session_id, channel)
- render_failed extras: kind, template path, position and error details

Error details are the risky part: validation errors echo the offending input back,
e.g. a bad `msg.metadata.api_token` value.

Rules:
- Mapping keys that look like credentials are masked whole, at any depth.
- A validation error entry whose `loc` names a credential key has its `input` masked.
- Every other string is scrubbed with regex patterns
  (defaults + Settings.logging.redact_patterns).
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional, Pattern, Sequence, Tuple

from stencil.config.schema import Settings


DEFAULT_MASK = "[REDACTED]"

CREDENTIAL_KEYS: Tuple[str, ...] = (
    "password",
    "passwd",
    "secret",
    "token",
    "api_key",
    "apikey",
    "authorization",
    "cookie",
    "private_key",
)

SECRET_PATTERNS: Tuple[str, ...] = (
    r"sk-[A-Za-z0-9]{20,}",
    r"(?i)\bbearer\s+[A-Za-z0-9._~+/=-]+",
    r"(?i)(?:api[_-]?key|password|token)\s*[:=]\s*\S+",
)


class SecurityRedactor:
    def __init__(
        self,
        *,
        patterns: Sequence[str] = (),
        credential_keys: Sequence[str] = CREDENTIAL_KEYS,
        mask: str = DEFAULT_MASK,
    ) -> None:
        self.mask = mask
        self.credential_keys = tuple(k.lower() for k in credential_keys)
        # patterns from settings are validated by LoggingConfig
        self.patterns: List[Pattern[str]] = [re.compile(p) for p in (*SECRET_PATTERNS, *patterns)]

    @classmethod
    def from_settings(cls, settings: Settings) -> "SecurityRedactor":
        return cls(patterns=settings.logging.redact_patterns)

    def is_credential_key(self, key: str) -> bool:
        lowered = key.lower()
        return any(hint in lowered for hint in self.credential_keys)

    def redact_text(self, text: str) -> str:
        for pattern in self.patterns:
            text = pattern.sub(self.mask, text)
        return text

    def sanitize(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Redacted copy of a log payload (formatter input)."""
        return {key: self._scrub(key, value) for key, value in record.items()}

    def _scrub(self, key: Optional[str], value: Any) -> Any:
        if key is not None and self.is_credential_key(key):
            return self.mask
        if isinstance(value, str):
            return self.redact_text(value)
        if value is None or isinstance(value, (bool, int, float)):
            return value
        if isinstance(value, Mapping):
            if self._names_credential(value):
                value = {**value, "input": self.mask}
            return {k: self._scrub(str(k), v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._scrub(None, item) for item in value]
        return self.redact_text(str(value))

    def _names_credential(self, entry: Mapping[str, Any]) -> bool:
        """True for a pydantic error entry whose `loc` names a credential key."""
        loc = entry.get("loc")
        if "input" not in entry or not isinstance(loc, (list, tuple)):
            return False
        return any(isinstance(part, str) and self.is_credential_key(part) for part in loc)
