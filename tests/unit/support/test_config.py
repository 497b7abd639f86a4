"""
Unit tests for configuration loading.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from novabase.config import (
    ExecutorConfig,
    LoggingConfig,
    NovaBaseConfig,
    PostgresConfig,
    RedisConfig,
    load_config,
)

_ENV_VARS = (
    "NOVABASE_POSTGRES_PASSWORD",
    "NOVABASE_REDIS_PASSWORD",
    "NOVABASE_REDIS__URL",
    "NOVABASE_LOGGING__LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = NovaBaseConfig()

    assert config.executor.dao_options.start_transaction is True
    assert config.executor.rate_limits is None
    assert config.executor.limiter == "local"
    assert config.logging.level == "INFO"


def test_load_from_yaml(tmp_path):
    path = tmp_path / "novabase.yaml"
    path.write_text(
        "postgres:\n"
        "  host: db.internal\n"
        "  database: ledger\n"
        "executor:\n"
        "  limiter: redis\n"
        "  rate_limits:\n"
        "    window: 60\n"
        "    limit: 100\n"
        "  settings:\n"
        "    region: eu\n"
    )

    config = load_config(path)

    assert config.postgres.host == "db.internal"
    assert config.postgres.database == "ledger"
    assert config.executor.limiter == "redis"
    assert config.executor.rate_limits.limit == 100
    assert config.executor.settings == {"region": "eu"}


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "absent.yaml")

    assert config.redis.url == "redis://localhost:6379/0"


def test_env_overrides_yaml(tmp_path, monkeypatch):
    path = tmp_path / "novabase.yaml"
    path.write_text("redis:\n  url: redis://cache:6379/1\nlogging:\n  level: DEBUG\n")
    monkeypatch.setenv("NOVABASE_REDIS__URL", "redis://override:6379/2")
    monkeypatch.setenv("NOVABASE_POSTGRES_PASSWORD", "s3cret")
    monkeypatch.setenv("NOVABASE_LOGGING__LEVEL", "WARNING")

    config = load_config(path)

    assert config.redis.url == "redis://override:6379/2"
    assert config.postgres.password == "s3cret"
    assert config.logging.level == "WARNING"


def test_redis_password_injected_into_url():
    config = RedisConfig(url="redis://cache:6379/0", password=" pw ")

    assert config.full_url == "redis://:pw@cache:6379/0"
    assert RedisConfig(url="redis://cache:6379/0").full_url == "redis://cache:6379/0"


def test_postgres_dsn():
    config = PostgresConfig(host="db", port=5433, database="d", username="u", password="p")

    assert config.dsn == "postgresql://u:p@db:5433/d"


def test_unknown_limiter_rejected():
    with pytest.raises(ValidationError, match="Unknown limiter"):
        ExecutorConfig(limiter="memcached")


def test_invalid_rate_window_rejected():
    with pytest.raises(ValidationError):
        ExecutorConfig(rate_limits={"window": 0, "limit": 1})


def test_logging_defaults_quiet_client_libraries():
    config = NovaBaseConfig()

    assert config.logging.libraries["asyncpg"] == "WARNING"
    assert config.logging.stream == "stdout"


def test_unknown_log_level_rejected():
    with pytest.raises(ValidationError, match="Unknown log level"):
        LoggingConfig(level="LOUD")
