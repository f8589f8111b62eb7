from __future__ import annotations

# todo_backend/config.py
import os
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

# Resolution order (later wins):
# 1) built-in defaults
# 2) config.yaml at project root, or the file named by TODO_CONFIG
# 3) TODO_* environment variables
# 4) command-line flags (applied by __main__ through Settings.override)
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_DEFAULT_CONFIG = os.path.join(_PROJECT_ROOT, "config.yaml")
_DEFAULT_DB = os.path.join(_PROJECT_ROOT, "todo.db")

_ENV_KEYS = {
    "db_path": "TODO_DB_PATH",
    "http_host": "TODO_HTTP_HOST",
    "http_port": "TODO_HTTP_PORT",
    "log_level": "TODO_LOG_LEVEL",
    "log_time_format": "TODO_LOG_TIME_FORMAT",
    "pool_size": "TODO_POOL_SIZE",
    "pool_timeout": "TODO_POOL_TIMEOUT",
    "statement_timeout": "TODO_STATEMENT_TIMEOUT",
}

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")
# numeric levels used by the original service flags: Debug(-1) Info(0) Warn(1) Error(2)
_NUMERIC_LOG_LEVELS = {"-1": "debug", "0": "info", "1": "warning", "2": "error", "3": "critical"}


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    db_path: str = Field(_DEFAULT_DB, min_length=1)
    http_host: str = "127.0.0.1"
    http_port: int = Field(8080, ge=1, le=65535)
    log_level: str = "info"
    log_time_format: str = ""
    pool_size: int = Field(5, ge=1)
    max_overflow: int = Field(10, ge=0)
    pool_timeout: float = Field(30.0, ge=0)
    busy_timeout: float = Field(5.0, ge=0)
    statement_timeout: float = Field(0.0, ge=0)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> str:
        s = str(value).strip().lower()
        s = _NUMERIC_LOG_LEVELS.get(s, s)
        if s == "warn":
            s = "warning"
        if s not in LOG_LEVELS:
            raise ValueError(f"unknown log level: '{value}'")
        return s

    def override(self, values: Mapping[str, Any]) -> "Settings":
        """Return a validated copy with every non-None entry of ``values`` applied."""
        picked = {k: v for k, v in values.items() if k in type(self).model_fields and v is not None}
        try:
            return type(self).model_validate({**self.model_dump(), **picked})
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigError(f"invalid settings -> {problems}") from e


def _read_config_yaml(path: str) -> dict:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return {}
    if not isinstance(cfg, dict):
        return {}
    return cfg


def _read_env(environ: Mapping[str, str]) -> dict:
    out = {}
    for key, env_key in _ENV_KEYS.items():
        v = environ.get(env_key)
        if v is not None and v.strip():
            out[key] = v.strip()
    return out


def load_settings(config_path: str | None = None, environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    path = config_path or env.get("TODO_CONFIG") or _DEFAULT_CONFIG
    values = _read_config_yaml(path)
    values.update(_read_env(env))
    return Settings().override(values)
