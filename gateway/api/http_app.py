# ==============================
# FastAPI App Factory
# ==============================
from __future__ import annotations

from fastapi import FastAPI

from gateway.api.routes_render import router as render_router
from stencil.engine.component import COMPONENT_VERSION


def create_app() -> FastAPI:
    app = FastAPI(title="stencil", version=COMPONENT_VERSION)
    app.include_router(render_router, prefix="/api")
    return app
