"""Application configuration using Pydantic Settings."""

import re
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from arc.core.exceptions import ConfigurationError

logger = structlog.get_logger()

DEFAULT_ENV_FILE = ".env"

# Optional sign followed by ASCII digits, bounded to a signed 64-bit value.
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class EnvironmentSettings(BaseSettings):
    """Raw environment variables, read from the process and the `.env` file."""

    model_config = SettingsConfigDict(
        env_file=DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Server
    SERVER_HOST: str = ""
    SERVER_PORT: str = ""

    # Database
    DB_USER: str = ""
    DB_PASS: str = ""
    DB_HOST: str = ""
    DB_PORT: str = ""
    DB_NAME: str = ""
    DB_ECHO: bool = True

    # Redis
    REDIS_ADDR: str = ""
    REDIS_PASS: str = ""
    REDIS_DB: int
    REDIS_PROTOCOL: int

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    @field_validator("REDIS_DB", "REDIS_PROTOCOL", mode="before")
    @classmethod
    def parse_strict_integer(cls, v: Any) -> Any:
        """Accept only plain decimal integers that fit in 64 bits."""
        if isinstance(v, str):
            if not INTEGER_PATTERN.fullmatch(v):
                raise ValueError(f"invalid integer {v!r}")
            v = int(v)
        if isinstance(v, int) and not isinstance(v, bool):
            if not INT64_MIN <= v <= INT64_MAX:
                raise ValueError(f"integer {v} out of 64-bit range")
        return v


class ServerConfig(BaseModel):
    """Network endpoint the hosting application listens on."""

    model_config = ConfigDict(frozen=True)

    host: str = ""
    port: str = ""


class DatabaseConfig(BaseModel):
    """Relational store credentials."""

    model_config = ConfigDict(frozen=True)

    user: str = ""
    password: str = Field(default="", repr=False)
    host: str = ""
    port: str = ""
    name: str = ""
    echo: bool = True


class RedisConfig(BaseModel):
    """Cache store credentials."""

    model_config = ConfigDict(frozen=True)

    addr: str = ""
    password: str = Field(default="", repr=False)
    db: int
    protocol: int


class Config(BaseModel):
    """Immutable configuration aggregate built by `load_config`."""

    model_config = ConfigDict(frozen=True)

    server: ServerConfig
    database: DatabaseConfig
    redis: RedisConfig
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_environment(cls, env: EnvironmentSettings) -> "Config":
        """Group raw environment values into their sections."""
        return cls(
            server=ServerConfig(host=env.SERVER_HOST, port=env.SERVER_PORT),
            database=DatabaseConfig(
                user=env.DB_USER,
                password=env.DB_PASS,
                host=env.DB_HOST,
                port=env.DB_PORT,
                name=env.DB_NAME,
                echo=env.DB_ECHO,
            ),
            redis=RedisConfig(
                addr=env.REDIS_ADDR,
                password=env.REDIS_PASS,
                db=env.REDIS_DB,
                protocol=env.REDIS_PROTOCOL,
            ),
            log_level=env.LOG_LEVEL,
            log_json=env.LOG_JSON,
        )


def load_config(env_file: str | Path | None = DEFAULT_ENV_FILE) -> Config:
    """
    Load a fresh configuration aggregate from the environment.

    Every call re-reads the process environment and the env file; nothing
    is cached between calls.

    Args:
        env_file: Path to the dotenv file. ``None`` reads the process
            environment only.

    Returns:
        Fully populated configuration.

    Raises:
        ConfigurationError: If the env file is missing, or REDIS_DB /
            REDIS_PROTOCOL is absent or not an integer.
    """
    if env_file is not None and not Path(env_file).is_file():
        logger.error("Environment file not found", env_file=str(env_file))
        raise ConfigurationError(
            f"Environment file not found: {env_file}",
            {"env_file": str(env_file)},
        )

    try:
        env = EnvironmentSettings(_env_file=env_file)
    except ValidationError as e:
        fields = sorted({str(error["loc"][0]) for error in e.errors() if error["loc"]})
        logger.error("Invalid environment", fields=fields)
        raise ConfigurationError(
            f"Invalid environment variables: {', '.join(fields)}",
            {"fields": fields},
        ) from e

    return Config.from_environment(env)
