"""Alembic environment configuration.

URL resolution: the URL passed by app.db.migrate, then the DATABASE_URL
environment variable, then alembic.ini.
"""
import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import create_engine

# Make the app package importable when alembic runs from the project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.db.base import Base  # noqa: E402
import app.db.models  # noqa: E402,F401

config = context.config

# Keep the application's logging when invoked from app.db.migrate
if config.config_file_name is not None and "database_url" not in config.attributes:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

database_url = (
    config.attributes.get("database_url")
    or os.getenv("DATABASE_URL")
    or config.get_main_option("sqlalchemy.url")
)
if not database_url:
    raise ValueError("Database URL not configured. Set DATABASE_URL or sqlalchemy.url in alembic.ini.")

config.set_main_option("sqlalchemy.url", database_url)


def run_migrations_offline() -> None:
    """Emit SQL without connecting."""
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(database_url, pool_pre_ping=True)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
