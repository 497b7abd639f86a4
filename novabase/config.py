"""
NovaBase — Configuration System

All configuration is Pydantic-validated and loaded from:
1. a YAML file (defaults for a deployment)
2. Environment variables (overrides, NOVABASE_ prefix, "__" for nesting)

Only the concrete collaborators (Redis, Postgres, logging) and the
executor-wide defaults are configured here. Per-action options are passed to
the Executor in code.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from novabase.core.types import DaoOptions, RateOptions

# ─── Sub-configs ──────────────────────────────────────────────────


class PostgresConfig(BaseModel):
    host: str = "localhost"
    port: int = 5432
    database: str = "novabase"
    username: str = "novabase"
    password: str = ""
    min_pool_size: int = 1
    pool_size: int = 10
    ssl: bool = False

    @property
    def dsn(self) -> str:
        return (
            f"postgresql://{self.username}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )


class RedisConfig(BaseModel):
    url: str = "redis://localhost:6379/0"
    prefix: str = "nova"
    password: str = ""

    @property
    def full_url(self) -> str:
        """Build URL with password injected."""
        clean_pw = self.password.strip() if self.password else ""
        if clean_pw and "://" in self.url:
            scheme, rest = self.url.split("://", 1)
            return f"{scheme}://:{clean_pw}@{rest}"
        return self.url


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"  # "console" | "json"
    stream: str = "stdout"  # "stdout" | "stderr"
    # Per-library levels applied on top of `level`
    libraries: dict[str, str] = Field(
        default_factory=lambda: {"asyncpg": "WARNING", "redis": "WARNING", "asyncio": "WARNING"}
    )

    @model_validator(mode="after")
    def _check_levels(self) -> LoggingConfig:
        for level in (self.level, *self.libraries.values()):
            if level.upper() not in logging.getLevelNamesMapping():
                raise ValueError(f"Unknown log level {level!r}")
        return self


class ExecutorConfig(BaseModel):
    """Defaults applied to every Executor built by NovaBaseService."""

    dao_options: DaoOptions = Field(default_factory=lambda: DaoOptions(start_transaction=True))
    # Global limit shared by all actions; None disables it
    rate_limits: RateOptions | None = None
    # "local" keeps counters in process memory, "redis" shares them
    limiter: str = "local"
    dispatch: bool = True
    notify: bool = True
    settings: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_limiter(self) -> ExecutorConfig:
        if self.limiter not in ("local", "redis"):
            raise ValueError(f"Unknown limiter {self.limiter!r}; expected 'local' or 'redis'")
        return self


# ─── Root Configuration ──────────────────────────────────────────


class NovaBaseConfig(BaseSettings):
    """
    Root configuration. Loads from YAML, overridable by env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOVABASE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    executor: ExecutorConfig = Field(default_factory=ExecutorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: str | Path | None = None) -> NovaBaseConfig:
    """
    Load configuration from YAML file, then apply environment variable overrides.

    Secrets (passwords) are read from the environment only when set there, so
    they never have to live in the YAML file.
    """
    raw: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                raw = yaml.safe_load(f) or {}

    overrides: dict[str, Any] = {}
    if pg_pw := os.environ.get("NOVABASE_POSTGRES_PASSWORD"):
        overrides.setdefault("postgres", {})["password"] = pg_pw
    if redis_pw := os.environ.get("NOVABASE_REDIS_PASSWORD"):
        overrides.setdefault("redis", {})["password"] = redis_pw
    if redis_url := os.environ.get("NOVABASE_REDIS__URL"):
        overrides.setdefault("redis", {})["url"] = redis_url
    if log_level := os.environ.get("NOVABASE_LOGGING__LEVEL"):
        overrides.setdefault("logging", {})["level"] = log_level

    return NovaBaseConfig(**_deep_merge(raw, overrides))
