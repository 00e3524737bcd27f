"""Exceptions raised while bootstrapping configuration and store connections."""

from typing import Any


class ArcError(Exception):
    """Base exception for all bootstrap failures."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(ArcError):
    """Exception raised when the environment cannot be loaded or is malformed."""

    pass


class ServiceConnectionError(ArcError):
    """Base exception for failures talking to an external store."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class DatabaseConnectionError(ServiceConnectionError):
    """Exception raised when the relational store cannot be opened."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("Database", message, details)


class MigrationError(ServiceConnectionError):
    """Exception raised when registered schema declarations cannot be applied."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("Database", message, details)


class RedisConnectionError(ServiceConnectionError):
    """Exception raised when the cache store fails its liveness check."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("Redis", message, details)
