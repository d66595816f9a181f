"""
Database migration runner for Alembic migrations.
"""
import logging
import os
from alembic.config import Config
from alembic import command
from sqlalchemy import create_engine, text

from app.core import config as app_config

logger = logging.getLogger(__name__)

# Serialises concurrent startups on PostgreSQL
ADVISORY_LOCK_ID = 6142021


def alembic_config(database_url: str) -> Config:
    alembic_ini_path = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "alembic.ini")
    alembic_cfg = Config(alembic_ini_path)
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    alembic_cfg.attributes["database_url"] = database_url
    return alembic_cfg


def run_migrations(database_url: str = None):
    """
    Run Alembic migrations to head revision.

    On PostgreSQL an advisory lock keeps two instances from migrating at once.
    """
    database_url = database_url or app_config.DATABASE_URL
    if not database_url:
        raise ValueError("DATABASE_URL is not set")

    logger.info("RUN_MIGRATIONS=1 -> running alembic upgrade head")
    alembic_cfg = alembic_config(database_url)

    engine = create_engine(database_url, pool_pre_ping=True)
    lock_conn = None
    is_postgres = database_url.startswith("postgresql")

    try:
        if is_postgres:
            # Keep the connection open to hold the lock
            lock_conn = engine.connect()
            lock_conn.execute(text(f"SELECT pg_advisory_lock({ADVISORY_LOCK_ID})"))
            lock_conn.commit()
            logger.info("Migration lock acquired")

        command.upgrade(alembic_cfg, "head")
        logger.info("Migrations complete")

    except Exception:
        logger.exception("Migration failed")
        raise
    finally:
        if lock_conn is not None:
            lock_conn.execute(text(f"SELECT pg_advisory_unlock({ADVISORY_LOCK_ID})"))
            lock_conn.commit()
            lock_conn.close()
        engine.dispose()
