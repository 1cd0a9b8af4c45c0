# ==============================
# CLI Entrypoint
# ==============================
"""
CLI for stencil/.

Supported commands:
  stencil describe
  stencil check --template 'Hello {{payload.name}}'
  stencil check --template-file greeting.hbs
  stencil render --template 'Hi {{payload.name}}' --payload '{"name":"Ana"}' --msg-file msg.json
  stencil render --template-file t.hbs --payload-file p.json --msg '{...}' --state '{"user":{"active":false}}'
  stencil render ... --routing reply --output-path reply.body --no-wrap --implicit-lookup
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from stencil.config.loader import load_settings
from stencil.engine.component import TemplateEngine
from stencil.engine.errors import InvocationError, TemplateError
from stencil.logging.logger import bootstrap_logger


def _json_load(text: str, *, what: str, require_object: bool = True) -> Any:
    try:
        value = json.loads(text)
    except ValueError as exc:
        raise SystemExit(f"Invalid JSON {what}: {exc}") from exc
    if require_object and not isinstance(value, dict):
        raise SystemExit(f"JSON {what} must be an object.")
    return value


def _text_arg(inline: Optional[str], path: Optional[str], *, what: str) -> Optional[str]:
    if inline is not None and path:
        raise SystemExit(f"Provide only one of --{what} or --{what}-file.")
    if path:
        try:
            return Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise SystemExit(f"Cannot read --{what}-file {path}: {exc.strerror or exc}") from exc
    return inline


def _json_arg(inline: Optional[str], path: Optional[str], *, what: str, require_object: bool = True) -> Any:
    text = _text_arg(inline, path, what=what)
    if text is None:
        return None
    return _json_load(text, what=what, require_object=require_object)


def _print_json(obj: Any) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def cmd_describe(engine: TemplateEngine) -> int:
    _print_json(engine.describe())
    return 0


def cmd_check(engine: TemplateEngine, *, template: str) -> int:
    try:
        parsed = engine.check(template)
    except (TemplateError, InvocationError) as exc:
        _print_json({"ok": False, "error": exc.to_error().model_dump(mode="json", exclude_none=True)})
        return 1
    _print_json({"ok": True, "nodes": len(parsed.nodes), "paths": [str(p) for p in parsed.variables()]})
    return 0


def cmd_render(
    engine: TemplateEngine,
    *,
    config: Dict[str, Any],
    msg: Dict[str, Any],
    payload: Any,
    state: Optional[Dict[str, Any]],
) -> int:
    invocation = {"config": config, "msg": msg, "payload": payload, "state": state}
    res = engine.invoke("text", invocation)
    _print_json(res.to_dict())
    return 0 if res.ok else 1


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="stencil")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("describe")

    ap_check = sub.add_parser("check")
    ap_check.add_argument("--template", help="Template source", default=None)
    ap_check.add_argument("--template-file", help="Path to template file", default=None)

    ap_render = sub.add_parser("render")
    ap_render.add_argument("--template", help="Template source", default=None)
    ap_render.add_argument("--template-file", help="Path to template file", default=None)
    ap_render.add_argument("--routing", help="Routing tag (default: out)", default=None)
    ap_render.add_argument("--output-path", help="Dotted path for the wrapped text (default: text)", default=None)
    ap_render.add_argument("--no-wrap", action="store_true", help="Emit the bare string as payload")
    ap_render.add_argument("--implicit-lookup", action="store_true", help="Enable single-segment fallback lookup")
    ap_render.add_argument("--payload", help="JSON value string", default=None)
    ap_render.add_argument("--payload-file", help="Path to JSON file with payload", default=None)
    ap_render.add_argument("--msg", help="JSON message envelope string", default=None)
    ap_render.add_argument("--msg-file", help="Path to JSON file with message envelope", default=None)
    ap_render.add_argument("--state", help="JSON object of state layers", default=None)
    ap_render.add_argument("--state-file", help="Path to JSON file with state layers", default=None)

    args = ap.parse_args(argv)

    settings = load_settings()
    bootstrap_logger(settings, stream=sys.stderr)
    engine = TemplateEngine.from_settings(settings)

    if args.cmd == "describe":
        return cmd_describe(engine)
    if args.cmd == "check":
        template = _text_arg(args.template, args.template_file, what="template")
        if template is None:
            raise SystemExit("Provide --template or --template-file.")
        return cmd_check(engine, template=template)
    if args.cmd == "render":
        template = _text_arg(args.template, args.template_file, what="template")
        if template is None:
            raise SystemExit("Provide --template or --template-file.")
        msg = _json_arg(args.msg, args.msg_file, what="msg")
        if msg is None:
            raise SystemExit("Provide --msg or --msg-file.")
        config: Dict[str, Any] = {"text": template, "wrap": not args.no_wrap}
        if args.routing is not None:
            config["routing"] = args.routing
        if args.output_path is not None:
            config["output_path"] = args.output_path
        if args.implicit_lookup:
            config["implicit_lookup"] = True
        return cmd_render(
            engine,
            config=config,
            msg=msg,
            payload=_json_arg(args.payload, args.payload_file, what="payload", require_object=False),
            state=_json_arg(args.state, args.state_file, what="state"),
        )

    raise SystemExit("Unknown command")


if __name__ == "__main__":
    raise SystemExit(main())
