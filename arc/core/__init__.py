"""Core module for configuration and store connections."""

from arc.core.config import Config, load_config
from arc.core.database import connect_database
from arc.core.exceptions import (
    ArcError,
    ConfigurationError,
    DatabaseConnectionError,
    MigrationError,
    RedisConnectionError,
    ServiceConnectionError,
)
from arc.core.redis import connect_redis

__all__ = [
    "Config",
    "load_config",
    "connect_database",
    "connect_redis",
    "ArcError",
    "ConfigurationError",
    "ServiceConnectionError",
    "DatabaseConnectionError",
    "MigrationError",
    "RedisConnectionError",
]
