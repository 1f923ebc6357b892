"""
Database base configuration following kkb_fastapi pattern.

Builds engine URLs from the ``[db]`` config table and runs migrations.
"""
import asyncio
import contextlib
import functools
import logging
from pathlib import Path
from typing import Any

from alembic import command
from alembic.config import Config as alembic_config
from sqlalchemy import text
from sqlalchemy.engine.url import URL
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from carbonnet.core.config import Config

DEFAULT_DRIVER = "postgresql+asyncpg"

# Engine options for PostgreSQL behind a transaction pooler
asyncpg_engine_kw = {
    "pool_pre_ping": True,
    "pool_size": 2,
    "max_overflow": 4,
    "pool_recycle": 3600,
    "connect_args": {
        "prepared_statement_cache_size": 0,
        "statement_cache_size": 0,
    },
}

SYNC_DRIVERS = {
    "postgresql+asyncpg": "postgresql+psycopg2",
    "sqlite+aiosqlite": "sqlite",
}


def _db_params(config: Config) -> dict[str, Any]:
    params = dict(config.data["db"])
    if "user" in params and "username" not in params:
        params["username"] = params.pop("user")
    return params


def get_db_url(config: Config) -> URL:
    """
    Construct database URL from config.
    """
    params = _db_params(config)
    drivername = params.pop("drivername", DEFAULT_DRIVER)
    return URL.create(drivername=drivername, **params)


def get_engine_kw(async_db_url: URL) -> dict[str, Any]:
    """Engine keyword arguments suited to the URL's driver."""
    if async_db_url.drivername == "postgresql+asyncpg":
        return dict(asyncpg_engine_kw)
    return {}


def get_async_engine(async_db_url: URL) -> AsyncEngine:
    return create_async_engine(async_db_url, **get_engine_kw(async_db_url))


def get_sync_db_url(config: Config) -> str:
    """URL for Alembic, which runs on a synchronous driver."""
    async_url = get_db_url(config)
    sync_driver = SYNC_DRIVERS.get(async_url.drivername, async_url.drivername)
    return async_url.set(drivername=sync_driver).render_as_string(hide_password=False)


async def create_database(config: Config) -> bool:
    """
    Ensures the PostgreSQL database named in the config exists.

    Connects to the 'postgres' maintenance database to issue CREATE DATABASE.
    Other drivers create their database on first connect, so this is a no-op
    for them.

    Returns:
        True if the database was newly created, False otherwise

    Raises:
        ValueError: If the database name is missing in the configuration
    """
    params = _db_params(config)
    drivername = params.pop("drivername", DEFAULT_DRIVER)
    if not drivername.startswith("postgresql"):
        return False

    target_database_name = params.pop("database", None)
    if not target_database_name:
        logging.error("Database name not found in configuration for creation.")
        raise ValueError("Database name missing in configuration for creation.")

    maintenance_url = URL.create(drivername=drivername, **{**params, "database": "postgres"})
    maintenance_engine = None
    try:
        maintenance_engine = get_async_engine(maintenance_url)
        logging.info(
            f"Attempting to create database '{target_database_name}' in {params.get('host')} if it does not exist."
        )
        async with maintenance_engine.connect() as connection:
            # CREATE DATABASE cannot run inside a transaction block
            autocommit_connection = await connection.execution_options(
                isolation_level="AUTOCOMMIT"
            )
            await autocommit_connection.execute(
                text(f'CREATE DATABASE "{target_database_name}"')
            )
        logging.info(f"Database '{target_database_name}' created successfully.")
        return True
    except DBAPIError as e:
        # 42P04 = duplicate_database
        with contextlib.suppress(AttributeError):
            if getattr(e.orig, "pgcode", None) == "42P04" or "already exists" in str(e.orig):
                logging.warning(
                    f"Database '{target_database_name}' already exists. No action taken."
                )
                return False

        logging.error(
            f"A DBAPIError occurred while trying to create database '{target_database_name}': {e}"
        )
        raise
    finally:
        if maintenance_engine:
            await maintenance_engine.dispose()


async def apply_db_migration(config: Config):
    """
    Create the database if needed and upgrade it to the latest migration.

    Alembic runs in the default executor so the event loop is not blocked.
    """
    await create_database(config)

    alembic_cfg = alembic_config(str(Path.cwd() / "alembic.ini"))
    alembic_cfg.set_main_option(
        "script_location", str(Path.cwd() / "alembic_migrations")
    )
    alembic_cfg.set_main_option("sqlalchemy.url", get_sync_db_url(config))

    logging.info("Starting database migrations...")
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(
        None, functools.partial(command.upgrade, alembic_cfg, "head")
    )
    logging.info("Database migration completed successfully")
