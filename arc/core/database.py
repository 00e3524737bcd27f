"""Relational store connection and schema declarations."""

from collections.abc import Mapping
from typing import Any

import structlog
from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from arc.core.config import DatabaseConfig
from arc.core.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    MigrationError,
)

logger = structlog.get_logger()

DRIVER_NAME = "mysql+aiomysql"
CHARSET = "utf8mb4"


class Base(DeclarativeBase):
    """Base class for models whose tables are created on connect."""

    pass


# Schema entity name -> model class. Tables are created when missing.
MIGRATIONS: dict[str, type[Base]] = {}


def register_migration(name: str, model: type[Base]) -> None:
    """Register a model so its table is created by `connect_database`."""
    MIGRATIONS[name] = model


def build_database_url(config: DatabaseConfig) -> URL:
    """
    Build the driver URL for the configured MySQL database.

    aiomysql returns DATETIME columns as naive local datetimes, so no
    time parsing options are needed beyond the character set.

    Raises:
        ConfigurationError: If the port is not numeric.
    """
    port: int | None = None
    if config.port:
        try:
            port = int(config.port)
        except ValueError as e:
            raise ConfigurationError(
                f"DB_PORT must be numeric, got {config.port!r}",
                {"field": "DB_PORT"},
            ) from e

    return URL.create(
        drivername=DRIVER_NAME,
        username=config.user or None,
        password=config.password or None,
        host=config.host or None,
        port=port,
        database=config.name or None,
        query={"charset": CHARSET},
    )


async def connect_database(
    config: DatabaseConfig,
    migrations: Mapping[str, type[Base]] | None = None,
) -> AsyncEngine:
    """
    Open the relational store described by ``config``.

    Args:
        config: Database credentials.
        migrations: Schema declarations to apply. Defaults to the
            `MIGRATIONS` registry.

    Returns:
        Engine whose connection has already been verified.

    Raises:
        ConfigurationError: If the credentials cannot form a URL.
        DatabaseConnectionError: If the database cannot be reached.
        MigrationError: If a schema declaration cannot be applied.
    """
    url = build_database_url(config)
    return await open_database(url, echo=config.echo, migrations=migrations)


async def open_database(
    url: str | URL,
    echo: bool = True,
    migrations: Mapping[str, type[Base]] | None = None,
) -> AsyncEngine:
    """Create an engine for ``url``, connect eagerly and apply migrations."""
    engine = create_async_engine(url, echo=echo)
    safe_url = engine.url.render_as_string(hide_password=True)

    try:
        await ping_database(engine)
    except (SQLAlchemyError, OSError) as e:
        await engine.dispose()
        logger.error("Failed to connect to database", url=safe_url, error=str(e))
        raise DatabaseConnectionError(
            "failed to open connection", {"url": safe_url}
        ) from e

    try:
        await apply_migrations(engine, MIGRATIONS if migrations is None else migrations)
    except BaseException:
        await engine.dispose()
        raise

    logger.info("Database connected", url=safe_url)
    return engine


async def apply_migrations(
    engine: AsyncEngine,
    migrations: Mapping[str, type[Base]],
) -> None:
    """
    Create the tables of the given models if they do not exist yet.

    Raises:
        MigrationError: If table creation fails.
    """
    tables = [model.__table__ for model in migrations.values()]

    if tables:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all, tables=tables)
        except SQLAlchemyError as e:
            logger.error(
                "Failed to apply migrations",
                entities=list(migrations),
                error=str(e),
            )
            raise MigrationError(
                "failed to apply migrations", {"entities": list(migrations)}
            ) from e

    logger.info("Migrations applied", entities=list(migrations))


async def ping_database(engine: AsyncEngine) -> None:
    """Round-trip a trivial statement to verify the connection."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def health_check(engine: AsyncEngine) -> dict[str, Any]:
    """
    Check database connection health.

    Returns:
        Health status dictionary.
    """
    try:
        await ping_database(engine)
        return {"status": "healthy", "dialect": engine.dialect.name}
    except (SQLAlchemyError, OSError) as e:
        return {"status": "unhealthy", "error": str(e)}


async def close_database(engine: AsyncEngine) -> None:
    """Dispose of the engine and its pooled connections."""
    await engine.dispose()
    logger.info("Database engine disposed")
