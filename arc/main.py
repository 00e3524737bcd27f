"""Bootstrap entry point: load configuration and open both stores."""

import argparse
import asyncio
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncEngine

from arc.core import database as db
from arc.core import redis as cache
from arc.core.config import DEFAULT_ENV_FILE, Config, load_config
from arc.core.exceptions import ArcError
from arc.core.logging import configure_logging

logger = structlog.get_logger()


@dataclass
class Infrastructure:
    """Handles opened by `lifespan`. A store that was skipped is ``None``."""

    config: Config
    database: AsyncEngine | None = None
    redis: Redis | None = None

    async def health_check(self) -> dict[str, Any]:
        status: dict[str, Any] = {}
        if self.database is not None:
            status["database"] = await db.health_check(self.database)
        if self.redis is not None:
            status["redis"] = await cache.health_check(self.redis)
        return status

    async def close(self) -> None:
        """Close every opened handle. Safe to call more than once."""
        if self.redis is not None:
            await cache.close_redis(self.redis)
            self.redis = None
        if self.database is not None:
            await db.close_database(self.database)
            self.database = None


@asynccontextmanager
async def lifespan(
    config: Config,
    *,
    database: bool = True,
    redis: bool = True,
) -> AsyncGenerator[Infrastructure, None]:
    """
    Open the requested stores for the duration of the block.

    Startup:
    - Connect the relational store and apply migrations
    - Connect Redis and PING it

    Shutdown:
    - Close Redis and dispose of the database engine

    Handles opened before a failing connect are closed before the
    error propagates.
    """
    infra = Infrastructure(config=config)
    try:
        if database:
            infra.database = await db.connect_database(config.database)
        if redis:
            infra.redis = await cache.connect_redis(config.redis)
        yield infra
    finally:
        await infra.close()


async def check(
    env_file: str | Path | None = DEFAULT_ENV_FILE,
    *,
    database: bool = True,
    redis: bool = True,
) -> dict[str, Any]:
    """Load configuration, connect the stores and report their health."""
    config = load_config(env_file)
    configure_logging(config.log_level, config.log_json)

    async with lifespan(config, database=database, redis=redis) as infra:
        status = await infra.health_check()

    logger.info("Connectivity check complete", **status)
    return status


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="arc",
        description="Verify that the configured database and Redis are reachable.",
    )
    parser.add_argument(
        "--env-file",
        default=DEFAULT_ENV_FILE,
        help="Path to the dotenv file (default: %(default)s)",
    )
    parser.add_argument(
        "--no-env-file",
        action="store_true",
        help="Read the process environment only",
    )
    parser.add_argument("--skip-database", action="store_true", help="Do not connect the database")
    parser.add_argument("--skip-redis", action="store_true", help="Do not connect Redis")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the connectivity check. Returns the process exit status."""
    args = parse_args(argv)
    env_file = None if args.no_env_file else args.env_file

    try:
        asyncio.run(
            check(
                env_file,
                database=not args.skip_database,
                redis=not args.skip_redis,
            )
        )
    except ArcError as e:
        logger.error("Bootstrap failed", error=e.message, **e.details)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
