"""Redis client creation and liveness probing."""

import asyncio

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from arc.core.config import RedisConfig
from arc.core.exceptions import ConfigurationError, RedisConnectionError

logger = structlog.get_logger()

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6379
PING_TIMEOUT_SECONDS = 5.0

# Values below 2 select the client default (RESP3).
DEFAULT_PROTOCOL = 3
MAX_PROTOCOL = 3


def resolve_protocol(protocol: int) -> int:
    """
    Map a configured protocol version to the one sent to the server.

    Raises:
        ConfigurationError: If the version is above 3.
    """
    if protocol < 2:
        return DEFAULT_PROTOCOL
    if protocol > MAX_PROTOCOL:
        raise ConfigurationError(
            f"REDIS_PROTOCOL must be at most {MAX_PROTOCOL}, got {protocol}",
            {"field": "REDIS_PROTOCOL"},
        )
    return protocol


def parse_address(addr: str) -> tuple[str, int]:
    """
    Split a ``host:port`` address.

    An empty address, host or port falls back to ``localhost:6379``.

    Raises:
        ConfigurationError: If the port is not numeric.
    """
    if not addr:
        return DEFAULT_HOST, DEFAULT_PORT

    host, sep, port = addr.rpartition(":")
    if not sep:
        return addr, DEFAULT_PORT

    if not port:
        return host or DEFAULT_HOST, DEFAULT_PORT

    try:
        return host or DEFAULT_HOST, int(port)
    except ValueError as e:
        raise ConfigurationError(
            f"REDIS_ADDR port must be numeric, got {addr!r}",
            {"field": "REDIS_ADDR"},
        ) from e


def create_redis_client(
    config: RedisConfig,
    timeout: float = PING_TIMEOUT_SECONDS,
) -> Redis:
    """
    Build an asyncio Redis client without connecting it.

    Raises:
        ConfigurationError: If the address or protocol is invalid.
    """
    protocol = resolve_protocol(config.protocol)
    host, port = parse_address(config.addr)
    return Redis(
        host=host,
        port=port,
        password=config.password or None,
        db=config.db,
        protocol=protocol,
        decode_responses=True,
        socket_connect_timeout=timeout,
    )


async def connect_redis(
    config: RedisConfig,
    timeout: float = PING_TIMEOUT_SECONDS,
) -> Redis:
    """
    Create a Redis client and verify it with a bounded PING.

    Args:
        config: Cache store credentials.
        timeout: Upper bound in seconds for the PING round trip.

    Returns:
        Connected Redis client.

    Raises:
        ConfigurationError: If the address or protocol is invalid.
        RedisConnectionError: If the PING fails or times out.
    """
    client = create_redis_client(config, timeout)
    host, port = parse_address(config.addr)

    try:
        response = await asyncio.wait_for(client.ping(), timeout=timeout)
    except (RedisError, OSError, asyncio.TimeoutError) as e:
        await client.aclose()
        logger.error(
            "Failed to connect to Redis",
            host=host,
            port=port,
            db=config.db,
            error=str(e) or type(e).__name__,
        )
        raise RedisConnectionError(
            f"ping failed for {host}:{port}",
            {"host": host, "port": port, "db": config.db},
        ) from e

    logger.info(
        "Redis connected",
        host=host,
        port=port,
        db=config.db,
        response="PONG" if response is True else response,
    )
    return client


async def health_check(client: Redis) -> dict[str, str]:
    """
    Check Redis connection health.

    Returns:
        Health status dictionary.
    """
    try:
        await client.ping()
        info = await client.info("server")
        return {
            "status": "healthy",
            "version": info.get("redis_version", "unknown"),
        }
    except (RedisError, OSError) as e:
        return {"status": "unhealthy", "error": str(e)}


async def close_redis(client: Redis) -> None:
    """Close the client and release its connections."""
    await client.aclose()
    logger.info("Redis client closed")
