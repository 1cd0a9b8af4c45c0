# ==============================
# Testing Fixtures
# ==============================
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from stencil.config.schema import Settings
from stencil.engine.component import TemplateEngine


def make_msg(
    *,
    tenant: str = "tenant",
    env: str = "dev",
    session_id: str = "session-1",
    **overrides: Any,
) -> Dict[str, Any]:
    msg: Dict[str, Any] = {
        "id": "msg-1",
        "channel": "chat",
        "session_id": session_id,
        "tenant": {"env": env, "tenant": tenant},
        "text": "hello",
        "metadata": {},
    }
    msg.update(overrides)
    return msg


@pytest.fixture
def msg() -> Dict[str, Any]:
    """Scoped message envelope as a host would send it."""
    return make_msg()


@pytest.fixture
def make_invocation() -> Callable[..., Dict[str, Any]]:
    def _make(
        template: str,
        payload: Any = None,
        *,
        state: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
        msg: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        return {
            "config": config if config is not None else {"templates": {"text": template}},
            "msg": msg if msg is not None else make_msg(),
            "payload": payload if payload is not None else {},
            "state": state,
        }

    return _make


@pytest.fixture
def engine() -> TemplateEngine:
    return TemplateEngine.from_settings(Settings())


@pytest.fixture
def app_client(engine: TemplateEngine):
    """FastAPI test client wired to a default-settings engine."""
    from fastapi.testclient import TestClient

    from gateway.api import deps as gateway_deps
    from gateway.api.http_app import create_app

    gateway_deps.get_engine.cache_clear()
    gateway_deps.get_settings.cache_clear()
    app = create_app()
    app.dependency_overrides[gateway_deps.get_engine] = lambda: engine
    return TestClient(app)
