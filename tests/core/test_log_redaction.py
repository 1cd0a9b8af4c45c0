from __future__ import annotations

# ==============================
# Log Redaction Tests
# ==============================

import io
import json
import logging

import pytest

from stencil.config.schema import LoggingConfig, Settings
from stencil.contracts.context_schema import MessageEnvelope
from stencil.engine.component import TemplateEngine
from stencil.governance.security import DEFAULT_MASK, SecurityRedactor
from stencil.logging.logger import JsonLineFormatter, LogContext, bootstrap_logger, with_context

from conftest import make_msg


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("stencil.test", logging.WARNING, __file__, 1, msg, None, None)
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_redactor_masks_patterns_and_keys() -> None:
    redactor = SecurityRedactor(patterns=[r"acct-\d+"])
    out = redactor.sanitize(
        {
            "msg": "key sk-abcdefghijklmnopqrstuvwxyz0123 for acct-42",
            "nested": {"api_token": "plain", "items": ["password=hunter2", 3, None]},
        }
    )
    assert out["msg"] == f"key {DEFAULT_MASK} for {DEFAULT_MASK}"
    assert out["nested"]["api_token"] == DEFAULT_MASK
    assert out["nested"]["items"] == [DEFAULT_MASK, 3, None]


def test_json_formatter_redacts() -> None:
    formatter = JsonLineFormatter(redactor=SecurityRedactor())
    line = formatter.format(_record("render_failed", path="Authorization: Bearer abc.def", kind="MissingIdentifier"))
    data = json.loads(line)
    assert data["msg"] == "render_failed"
    assert data["kind"] == "MissingIdentifier"
    assert "abc.def" not in line


def test_bootstrap_logger_writes_json_lines() -> None:
    stream = io.StringIO()
    settings = Settings(logging=LoggingConfig(level="DEBUG"))
    root = logging.getLogger()
    saved = (root.handlers[:], root.level)
    logger = bootstrap_logger(settings, stream=stream)
    try:
        log = with_context(logger, LogContext.from_message(MessageEnvelope.model_validate(make_msg())))
        log.info("render_completed", extra={"routing": "out", "chars": 2})
        data = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert data["logger"] == "stencil"
        assert data["tenant"] == "tenant"
        assert data["session_id"] == "session-1"
        assert (data["routing"], data["chars"]) == ("out", 2)
    finally:
        root.handlers, level = saved
        root.setLevel(level)


def test_render_failure_logs_kind_and_path(caplog) -> None:
    caplog.set_level(logging.INFO, logger="stencil.component")
    engine = TemplateEngine()
    secret = "sk-abcdefghijklmnopqrstuvwxyz0123"
    res = engine.render({"text": "{{payload.missing}}"}, {"payload": {"token": secret}, "msg": make_msg()})
    assert res.ok is False

    failed = [r for r in caplog.records if r.getMessage() == "render_failed"]
    assert failed, "Expected a render_failed record"
    record = failed[0]
    assert record.kind == "MissingIdentifier"
    assert record.path == "payload.missing"
    assert record.tenant == "tenant"
    assert secret not in caplog.text


def test_validation_details_do_not_leak_credentials(caplog) -> None:
    caplog.set_level(logging.INFO, logger="stencil.component")
    secret = "hunter2-metadata-value"
    msg = make_msg(metadata={"api_token": [secret], "locale": ["en"]})
    res = TemplateEngine().render({"text": "x"}, {"payload": {}, "msg": msg})
    assert res.error.kind.value == "InvalidInput"

    record = next(r for r in caplog.records if r.getMessage() == "render_failed")
    line = JsonLineFormatter(redactor=SecurityRedactor()).format(record)
    data = json.loads(line)
    assert secret not in line
    entries = {tuple(e["loc"]): e for e in data["details"]["errors"]}
    assert entries[("msg", "metadata", "api_token")]["input"] == DEFAULT_MASK
    # non-credential locations keep their input for debugging
    assert entries[("msg", "metadata", "locale")]["input"] == ["en"]


def test_custom_patterns_come_from_settings() -> None:
    settings = Settings(logging=LoggingConfig(redact_patterns=[r"acct-\d+"]))
    redactor = SecurityRedactor.from_settings(settings)
    assert redactor.sanitize({"path": "payload.acct-991"}) == {"path": f"payload.{DEFAULT_MASK}"}


def test_invalid_redact_pattern_is_rejected() -> None:
    with pytest.raises(ValueError):
        LoggingConfig(redact_patterns=["("])
