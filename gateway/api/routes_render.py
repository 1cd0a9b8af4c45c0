# ==============================
# Render Routes
# ==============================
from __future__ import annotations

from typing import Any, Dict, NoReturn

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from gateway.api.deps import get_engine
from stencil.contracts.render_schema import Invocation, RenderErrorInfo, RenderResult
from stencil.engine.component import SUPPORTED_OPERATION, TemplateEngine
from stencil.engine.errors import InvocationError, TemplateError


router = APIRouter()


class ParseRequest(BaseModel):
    text: str = Field(..., description="Template source to check.")


def _ok(data: Dict[str, Any], *, meta: Dict[str, Any] | None = None) -> Dict[str, Any]:
    return {"ok": True, "data": data, "error": None, "meta": meta or {}}


def _error(error: RenderErrorInfo, *, meta: Dict[str, Any] | None = None) -> NoReturn:
    payload = {
        "ok": False,
        "data": None,
        "error": {
            "code": error.kind.value,
            "message": error.message,
            "details": error.model_dump(mode="json", exclude_none=True),
        },
        "meta": meta or {},
    }
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=payload)


def _respond(result: RenderResult, *, meta: Dict[str, Any] | None = None) -> Dict[str, Any]:
    if result.ok and result.output is not None:
        return _ok(result.output.model_dump(mode="json"), meta=meta)
    _error(result.error, meta=meta)


@router.get("/describe")
def describe(engine: TemplateEngine = Depends(get_engine)) -> Dict[str, Any]:
    return _ok(engine.describe())


@router.post("/render")
def render(
    req: Invocation,
    operation: str = SUPPORTED_OPERATION,
    engine: TemplateEngine = Depends(get_engine),
) -> Dict[str, Any]:
    res = engine.invoke(operation, req)
    return _respond(res, meta={"operation": operation, "request_id": req.msg.id})


@router.post("/parse")
def parse_template(
    req: ParseRequest,
    engine: TemplateEngine = Depends(get_engine),
) -> Dict[str, Any]:
    try:
        template = engine.check(req.text)
    except (TemplateError, InvocationError) as exc:
        _error(exc.to_error())
    return _ok({"nodes": len(template.nodes), "paths": [str(p) for p in template.variables()]})
