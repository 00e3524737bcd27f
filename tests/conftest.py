"""Pytest fixtures for testing."""

from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog

from arc.core.config import DatabaseConfig, RedisConfig

ENV_VARS = (
    "SERVER_HOST",
    "SERVER_PORT",
    "DB_USER",
    "DB_PASS",
    "DB_HOST",
    "DB_PORT",
    "DB_NAME",
    "DB_ECHO",
    "REDIS_ADDR",
    "REDIS_PASS",
    "REDIS_DB",
    "REDIS_PROTOCOL",
    "LOG_LEVEL",
    "LOG_JSON",
)


@pytest.fixture
def sample_env() -> dict[str, str]:
    """Well-formed environment for the loader."""
    return {
        "SERVER_HOST": "0.0.0.0",
        "SERVER_PORT": "3000",
        "DB_USER": "arc",
        "DB_PASS": "s3cret",
        "DB_HOST": "127.0.0.1",
        "DB_PORT": "3306",
        "DB_NAME": "arc",
        "REDIS_ADDR": "127.0.0.1:6379",
        "REDIS_PASS": "",
        "REDIS_DB": "2",
        "REDIS_PROTOCOL": "3",
    }


@pytest.fixture
def clean_environ(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every variable the loader reads from the process environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def write_env(
    tmp_path: Path, clean_environ: pytest.MonkeyPatch
) -> Callable[[dict[str, str]], Path]:
    """Write a dotenv file and return its path."""

    def _write(values: dict[str, str]) -> Path:
        path = tmp_path / ".env"
        path.write_text(
            "".join(f"{key}={value}\n" for key, value in values.items()),
            encoding="utf-8",
        )
        return path

    return _write


@pytest.fixture
def database_config() -> DatabaseConfig:
    return DatabaseConfig(
        user="arc",
        password="s3cret",
        host="127.0.0.1",
        port="3306",
        name="arc",
        echo=False,
    )


@pytest.fixture
def redis_config() -> RedisConfig:
    return RedisConfig(addr="127.0.0.1:6379", password="", db=2, protocol=3)


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Undo logging configuration made by a test."""
    yield
    structlog.reset_defaults()
