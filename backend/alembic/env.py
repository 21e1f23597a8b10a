import asyncio
import os
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from needled.core.db import Base, normalize_database_url
# Registers every table on Base.metadata
import needled.models  # noqa: F401

config = context.config

# DATABASE_URL wins over alembic.ini so deploys and the app share one setting
db_url = os.environ.get("DATABASE_URL")
if db_url:
    config.set_main_option("sqlalchemy.url", normalize_database_url(db_url))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    Only a URL is configured, so the generated SQL is emitted to the
    script output instead of being executed.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url is not None and url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    section = config.get_section(config.config_ini_section, {})
    connect_args = {}

    # asyncpg does not understand sslmode in the query string
    current_url = section.get("sqlalchemy.url")
    if current_url and "sslmode" in current_url:
        from urllib.parse import parse_qs, urlencode, urlparse

        u = urlparse(current_url)
        q = parse_qs(u.query)
        mode = q.pop("sslmode")[0]
        if mode in ("require", "verify-full"):
            connect_args["ssl"] = "require"
        elif mode == "disable":
            connect_args["ssl"] = False
        section["sqlalchemy.url"] = u._replace(query=urlencode(q, doseq=True)).geturl()

    connectable = async_engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        connect_args=connect_args,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
