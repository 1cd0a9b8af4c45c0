# ==============================
# Config Loader (only env reader)
# ==============================
"""
Config loader for stencil/.

Rules:
- This is the ONLY place allowed to read os.environ and .env.
- The engine never loads settings itself; gateway/CLI pass a validated Settings down.

Precedence:
env > .env > configs/*.yaml > defaults

Testability:
- All functions accept injected paths and env dict.
- No hardcoded absolute paths.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from stencil.config.schema import Settings
from stencil.contracts.value_schema import deep_merge

ENV_PREFIX = "STENCIL__"
CONFIG_SECTIONS = ("app", "engine", "logging")


# ==============================
# YAML Helpers
# ==============================


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    raw = path.read_text(encoding="utf-8").strip()
    if not raw:
        return {}
    data = yaml.safe_load(raw)
    return data if isinstance(data, dict) else {}


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Accept both `{name: {...}}` and a bare mapping in configs/<name>.yaml."""
    inner = data.get(name)
    if isinstance(inner, dict) and len(data) == 1:
        return inner
    return data


# ==============================
# .env Loader
# ==============================


def _read_dotenv(dotenv_path: Path) -> Dict[str, str]:
    """
    Minimal .env parser (KEY=VALUE).
    - Ignores comments and blank lines.
    - Strips surrounding quotes.
    """
    if not dotenv_path.exists():
        return {}
    envs: Dict[str, str] = {}
    for line in dotenv_path.read_text(encoding="utf-8").splitlines():
        s = line.strip()
        if not s or s.startswith("#") or "=" not in s:
            continue
        key, val = s.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")
        if key:
            envs[key] = val
    return envs


def _coerce(v: str) -> Any:
    vs = v.strip()
    if vs.lower() in {"true", "false"}:
        return vs.lower() == "true"
    if vs.isdigit() or (vs.startswith("-") and vs[1:].isdigit()):
        return int(vs)
    if "." in vs:
        try:
            return float(vs)
        except ValueError:
            pass
    return vs


def _apply_env_overrides(cfg: Dict[str, Any], env: Dict[str, str]) -> Dict[str, Any]:
    """
    Apply environment overrides with STENCIL__ style nesting.

Example:
  STENCIL__APP__PORT=8001
  STENCIL__ENGINE__IMPLICIT_LOOKUP=true
  STENCIL__LOGGING__LEVEL=DEBUG

Rules:
- Split by '__' after prefix STENCIL__
- Lowercase keys for dict insertion
- Coerce booleans/ints/floats when obvious
    """
    out = dict(cfg)
    for k, v in env.items():
        if not k.startswith(ENV_PREFIX):
            continue
        path = k[len(ENV_PREFIX) :].split("__")
        if not path or any(not p for p in path):
            continue
        cur: Dict[str, Any] = out
        for i, seg in enumerate(path):
            key = seg.lower()
            if i == len(path) - 1:
                cur[key] = _coerce(v)
            else:
                nxt = cur.get(key)
                if not isinstance(nxt, dict):
                    nxt = {}
                    cur[key] = nxt
                cur = nxt
    return out


# ==============================
# Public Loader API
# ==============================


def load_settings(
    *,
    repo_root: Optional[str] = None,
    configs_dir: Optional[str] = None,
    dotenv_file: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
) -> Settings:
    """
    Load and validate Settings.

Inputs:
- repo_root: defaults to current working directory
- configs_dir: defaults to <repo_root>/configs
- dotenv_file: defaults to <repo_root>/.env
- env: injected env vars (defaults to os.environ)
    """
    env_vars = dict(env) if env is not None else dict(os.environ)

    root = Path(repo_root or os.getcwd()).expanduser().resolve()
    cfg_dir = root / (configs_dir or "configs")

    merged: Dict[str, Any] = {}
    for name in CONFIG_SECTIONS:
        merged = deep_merge(merged, {name: _section(_read_yaml(cfg_dir / f"{name}.yaml"), name)})

    # .env (optional) never overrides the real environment
    dotenv_path = Path(dotenv_file) if dotenv_file else (root / ".env")
    effective_env = dict(env_vars)
    for k, v in _read_dotenv(dotenv_path).items():
        effective_env.setdefault(k, v)

    merged = _apply_env_overrides(merged, effective_env)

    # repo_root / configs_dir reflect what was actually loaded
    merged = deep_merge(
        merged,
        {"app": {"paths": {"repo_root": str(root), "configs_dir": configs_dir or "configs"}}},
    )

    try:
        return Settings.model_validate(merged)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}") from e
