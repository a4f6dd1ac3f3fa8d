"""Runtime settings loaded from the environment (and a repo-root .env if present)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from tradedsl.dsl.parser.conditions import MAX_PARSE_DEPTH
from tradedsl.dsl.sandbox import MAX_AST_DEPTH, MAX_EXECUTION_TIME_MS

ENV_PATH = Path(__file__).parent.parent / ".env"


@dataclass(frozen=True)
class Settings:
    """DSL core settings."""

    sandbox_max_depth: int = MAX_AST_DEPTH
    sandbox_timeout_ms: int = MAX_EXECUTION_TIME_MS
    max_parse_depth: int = MAX_PARSE_DEPTH
    log_level: str = "INFO"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def load_settings(env_path: Path | None = None) -> Settings:
    """Build Settings from TRADEDSL_* environment variables."""
    path = env_path or ENV_PATH
    if path.exists():
        load_dotenv(path)

    return Settings(
        sandbox_max_depth=_int_env("TRADEDSL_SANDBOX_MAX_DEPTH", MAX_AST_DEPTH),
        sandbox_timeout_ms=_int_env("TRADEDSL_SANDBOX_TIMEOUT_MS", MAX_EXECUTION_TIME_MS),
        max_parse_depth=_int_env("TRADEDSL_MAX_PARSE_DEPTH", MAX_PARSE_DEPTH),
        log_level=os.getenv("TRADEDSL_LOG_LEVEL", "INFO").upper(),
    )
