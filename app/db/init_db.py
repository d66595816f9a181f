import logging

from app.db.base import Base
from app.db.session import engine, SessionLocal
import app.db.models  # noqa: F401  registers every model on Base.metadata
from app.services.plan_service import seed_plans

logger = logging.getLogger(__name__)


def init_db(bind=None, session_factory=None, create_tables: bool = True):
    """
    Create missing tables and seed the plan catalog.

    create_tables is off when Alembic owns the schema.
    """
    bind = bind or engine
    session_factory = session_factory or SessionLocal

    if create_tables:
        Base.metadata.create_all(bind=bind)

    db = session_factory()
    try:
        seeded = seed_plans(db)
        logger.info(f"Database initialised, {seeded} plan(s) created")
    finally:
        db.close()
