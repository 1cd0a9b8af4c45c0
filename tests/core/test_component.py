from __future__ import annotations

# ==============================
# Template Component Tests
# ==============================

import json

import pytest

from stencil.config.schema import EngineConfig
from stencil.contracts.render_schema import RenderErrorKind, RenderResult
from stencil.engine import component
from stencil.engine.component import TemplateEngine

from conftest import make_msg


def _inputs(payload=None, state=None, **msg_overrides):
    return {"payload": payload if payload is not None else {}, "msg": make_msg(**msg_overrides), "state": state}


# ==============================
# render()
# ==============================


def test_basic_render_wraps_text(engine) -> None:
    res = engine.render({"text": "Hello {{payload.user.name}}!"}, _inputs({"user": {"name": "Ana"}}))
    assert res.ok is True
    assert res.output.text == "Hello Ana!"
    assert res.output.routing == "out"
    assert res.output.payload == {"text": "Hello Ana!"}


def test_output_path_and_wrap(engine) -> None:
    cfg = {"text": "Hi {{msg.channel}}", "routing": "reply", "output_path": "reply.body"}
    res = engine.render(cfg, _inputs())
    assert res.output.routing == "reply"
    assert res.output.payload == {"reply": {"body": "Hi chat"}}

    res = engine.render({**cfg, "wrap": False}, _inputs())
    assert res.output.payload == "Hi chat"


def test_structured_value_is_escaped_compact_json(engine) -> None:
    res = engine.render({"text": "payload={{payload}}"}, _inputs({"foo": "bar"}))
    assert res.output.text == "payload={&quot;foo&quot;:&quot;bar&quot;}"
    assert "\n" not in res.output.text

    res = engine.render({"text": "{{{payload}}}"}, _inputs({"foo": "bar"}))
    assert res.output.text == '{"foo":"bar"}'


def test_whitespace_only_template_renders_itself(engine) -> None:
    res = engine.render({"text": "   "}, _inputs())
    assert res.ok is True
    assert res.output.text == "   "
    assert res.output.payload == {"text": "   "}


def test_missing_identifier_has_no_output(engine) -> None:
    res = engine.render({"text": "Hello {{payload.user.email}}"}, _inputs({"user": {}}))
    assert res.ok is False
    assert res.output is None
    assert res.error.kind is RenderErrorKind.MISSING_IDENTIFIER
    assert res.error.path == "payload.user.email"


def test_parse_error_reports_position(engine) -> None:
    res = engine.render({"text": "Hi {{#if}}x{{/if}}"}, _inputs())
    assert res.ok is False
    assert res.error.kind is RenderErrorKind.PARSE_ERROR
    assert res.error.position == 3
    assert (res.error.line, res.error.column) == (1, 4)


def test_unsupported_helper(engine) -> None:
    res = engine.render({"text": "{{#unless payload.x}}y{{/unless}}"}, _inputs({"x": True}))
    assert res.error.kind is RenderErrorKind.UNSUPPORTED_HELPER
    assert res.error.name == "unless"


def test_type_mismatch(engine) -> None:
    res = engine.render({"text": "{{#each payload.items}}x{{/each}}"}, _inputs({"items": "abc"}))
    assert res.error.kind is RenderErrorKind.TYPE_MISMATCH
    assert (res.error.expected, res.error.actual) == ("array", "string")


def test_render_is_deterministic(engine) -> None:
    cfg = {"text": "{{#each payload.items}}{{@index}}={{{this}}};{{/each}}"}
    inputs = _inputs({"items": [{"b": 1, "a": 2}, "x", None]})
    first = engine.render(cfg, inputs).to_dict()
    second = engine.render(cfg, inputs).to_dict()
    assert first == second
    assert first["output"]["text"] == '0={"a":2,"b":1};1=x;2=null;'


def test_implicit_lookup_engine_default_and_override() -> None:
    inputs = _inputs(state={"session": {"nickname": "ana"}})
    strict = TemplateEngine()
    assert strict.render({"text": "{{nickname}}"}, inputs).error.kind is RenderErrorKind.MISSING_IDENTIFIER
    assert strict.render({"text": "{{nickname}}", "implicit_lookup": True}, inputs).output.text == "ana"

    lenient = TemplateEngine(config=EngineConfig(implicit_lookup=True))
    assert lenient.render({"text": "{{nickname}}"}, inputs).output.text == "ana"
    res = lenient.render({"text": "{{nickname}}", "implicit_lookup": False}, inputs)
    assert res.ok is False


def test_template_length_limit() -> None:
    small = TemplateEngine(config=EngineConfig(max_template_chars=8))
    res = small.render({"text": "{{payload.name}}"}, _inputs({"name": "x"}))
    assert res.error.kind is RenderErrorKind.INVALID_INPUT
    assert res.error.details["max_template_chars"] == 8


def test_deeply_nested_blocks_fail_to_parse(engine) -> None:
    depth = 600
    text = "{{#if payload.a}}" * depth + "x" + "{{/if}}" * depth
    res = engine.render({"text": text}, _inputs({"a": True}))
    assert res.ok is False
    assert res.error.kind is RenderErrorKind.PARSE_ERROR
    assert res.error.position == len("{{#if payload.a}}") * 64


def test_max_depth_setting() -> None:
    shallow = TemplateEngine(config=EngineConfig(max_depth=2))
    two = "{{#if payload.a}}{{#each payload.items}}{{this}}{{/each}}{{/if}}"
    assert shallow.render({"text": two}, _inputs({"a": True, "items": [1]})).output.text == "1"
    three = "{{#if payload.a}}{{#if payload.a}}{{#if payload.a}}x{{/if}}{{/if}}{{/if}}"
    res = shallow.render({"text": three}, _inputs({"a": True}))
    assert res.error.kind is RenderErrorKind.PARSE_ERROR
    assert res.error.position == 2 * len("{{#if payload.a}}")

    with pytest.raises(ValueError):
        EngineConfig(max_depth=10_000)


def test_deeply_nested_payload_is_invalid_input(engine) -> None:
    payload: dict = {}
    node = payload
    for _ in range(2000):
        node["a"] = {}
        node = node["a"]
    res = engine.render({"text": "x"}, _inputs(payload))
    assert res.ok is False
    assert res.error.kind is RenderErrorKind.INVALID_INPUT


@pytest.mark.parametrize(
    "config",
    [
        {"text": ""},
        {"routing": "out"},
        {"text": "x", "unknown": 1},
        {"templates": "not-an-object"},
    ],
)
def test_invalid_config(engine, config) -> None:
    res = engine.render(config, _inputs())
    assert res.error.kind is RenderErrorKind.INVALID_INPUT


def test_invalid_inputs(engine) -> None:
    res = engine.render({"text": "x"}, {"payload": {}, "msg": {"channel": "chat"}})
    assert res.error.kind is RenderErrorKind.INVALID_INPUT
    assert res.error.details["errors"]

    res = engine.render({"text": "x"}, _inputs({"n": float("inf")}))
    assert res.error.kind is RenderErrorKind.INVALID_INPUT


# ==============================
# Config shapes
# ==============================


@pytest.mark.parametrize(
    "config",
    [
        {"text": "Hi {{payload.n}}", "routing": "next"},
        {"templates": {"text": "Hi {{payload.n}}", "routing": "next"}},
        {"templates.text": "Hi {{payload.n}}", "templates.routing": "next"},
    ],
)
def test_config_shapes_are_equivalent(engine, config) -> None:
    res = engine.render(config, _inputs({"n": 1}))
    assert (res.output.text, res.output.routing) == ("Hi 1", "next")


def test_nested_config_wins_over_dotted(engine) -> None:
    config = {"templates": {"text": "nested"}, "templates.text": "dotted"}
    assert engine.render(config, _inputs()).output.text == "nested"


# ==============================
# invoke()
# ==============================


def test_invoke_renders(engine, make_invocation) -> None:
    res = engine.invoke("text", make_invocation("Hi {{payload.name}}", {"name": "Ana"}))
    assert res.ok is True
    assert res.output.payload == {"text": "Hi Ana"}


def test_invoke_accepts_json_string(engine, make_invocation) -> None:
    raw = json.dumps(make_invocation("{{msg.session_id}}"))
    assert engine.invoke("text", raw).output.text == "session-1"


def test_invoke_rejects_bad_json(engine) -> None:
    res = engine.invoke("text", "{not json")
    assert res.error.kind is RenderErrorKind.INVALID_INPUT


def test_invoke_unsupported_operation(engine, make_invocation) -> None:
    res = engine.invoke("html", make_invocation("x"))
    assert res.error.kind is RenderErrorKind.UNSUPPORTED_OPERATION
    assert res.error.details == {"operation": "html", "supported": "text"}


@pytest.mark.parametrize("field", ["tenant", "env", "session_id"])
def test_invoke_requires_scope(engine, make_invocation, field) -> None:
    res = engine.invoke("text", make_invocation("x", msg=make_msg(**{field: " "})))
    assert res.error.kind is RenderErrorKind.INVALID_SCOPE
    assert res.error.details["missing"] == [field]


def test_tenants_do_not_leak(engine, make_invocation) -> None:
    tpl = "{{msg.tenant.tenant}}:{{state.plan}}"
    a = engine.invoke("text", make_invocation(tpl, state={"tenant": {"plan": "gold"}}, msg=make_msg(tenant="a")))
    b = engine.invoke("text", make_invocation(tpl, state={"tenant": {"plan": "free"}}, msg=make_msg(tenant="b")))
    assert (a.output.text, b.output.text) == ("a:gold", "b:free")


# ==============================
# describe() and module API
# ==============================


def test_describe(engine) -> None:
    info = engine.describe()
    assert info["component"]["operations"] == ["text"]
    assert info["defaults"]["default_routing"] == "out"
    assert "text" in info["schemas"]["config"]["properties"]
    assert "msg" in info["schemas"]["input"]["properties"]
    assert set(info["schemas"]["output"]["properties"]) == {"ok", "output", "error"}


def test_module_level_api() -> None:
    res = component.render({"text": "{{payload}}"}, _inputs("plain"))
    assert res.output.text == "plain"
    assert component.describe()["component"]["name"] == "templates"
    assert component.invoke("nope", {}).ok is False


def test_result_envelope_contract() -> None:
    with pytest.raises(ValueError):
        RenderResult(ok=True)
    with pytest.raises(ValueError):
        RenderResult(ok=False)
