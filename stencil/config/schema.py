# ==============================
# Config Schemas (Pydantic)
# ==============================
"""
Pydantic settings models for stencil/.

Notes:
- No env reads here. No file IO here. Pure types + defaults.
- loader.py builds a single Settings object with precedence merging.
- Per-template options (TemplateConfig) live in contracts/render_schema.py and
  override the engine defaults below.

Precedence (implemented in loader.py):
env > .env > configs/*.yaml > defaults
"""

from __future__ import annotations

import re
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stencil.contracts.render_schema import DEFAULT_OUTPUT_PATH, DEFAULT_ROUTING
from stencil.contracts.template_schema import DEFAULT_MAX_DEPTH, MAX_DEPTH_LIMIT


# ==============================
# App Settings
# ==============================


class PathsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    repo_root: str = Field(default=".", description="Repo root (relative or absolute)")
    configs_dir: str = Field(default="configs", description="Configs directory")


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    env: str = Field(default="local", description="Environment name (local/stage/prod)")
    debug: bool = Field(default=False)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    paths: PathsConfig = Field(default_factory=PathsConfig)


# ==============================
# Engine Settings
# ==============================


class EngineConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    default_routing: str = Field(default=DEFAULT_ROUTING, min_length=1)
    default_output_path: str = Field(default=DEFAULT_OUTPUT_PATH, min_length=1)
    implicit_lookup: bool = Field(
        default=False,
        description="Default for single-segment fallback to state layers/payload.",
    )
    max_template_chars: int = Field(default=100_000, gt=0, description="Templates longer than this are rejected.")
    max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        gt=0,
        le=MAX_DEPTH_LIMIT,
        description="Deepest allowed block nesting; deeper templates fail to parse.",
    )


# ==============================
# Logging Settings
# ==============================


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str = Field(default="INFO")
    redact: bool = Field(default=True)
    redact_patterns: List[str] = Field(default_factory=list)
    console: bool = Field(default=True)

    @field_validator("redact_patterns")
    @classmethod
    def _patterns_compile(cls, v: List[str]) -> List[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"invalid redact pattern {pattern!r}: {exc}") from exc
        return v


# ==============================
# Top-Level Settings
# ==============================


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    app: AppConfig = Field(default_factory=AppConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
