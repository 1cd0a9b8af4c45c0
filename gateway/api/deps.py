# ==============================
# API Dependencies / Singletons
# ==============================
from __future__ import annotations

from functools import lru_cache

from stencil.config.loader import load_settings
from stencil.config.schema import Settings
from stencil.engine.component import TemplateEngine


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def get_engine() -> TemplateEngine:
    return TemplateEngine.from_settings(get_settings())
