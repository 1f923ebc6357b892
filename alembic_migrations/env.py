"""
Alembic environment.

The URL is set by ``carbonnet.database.base.apply_db_migration``; when
alembic is run from the command line it is built from the config file
named by the ENVIRONMENT variable.
"""
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from carbonnet.core.config import get_environment_config
from carbonnet.database import Base
from carbonnet.database.base import get_sync_db_url
from carbonnet.database.schemas import (  # noqa: F401
    ActivityDBModel,
    EmissionFactorDBModel,
    ReportDBModel,
)

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", get_sync_db_url(get_environment_config()))

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
