"""
Create or update the vendor plan catalog.
Run: python -m scripts.seed_plans
"""
import logging
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db.session import SessionLocal
from app.services.plan_service import seed_plans

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


if __name__ == "__main__":
    db = SessionLocal()
    try:
        created = seed_plans(db)
        logger.info(f"Plan catalog seeded, {created} new plan(s)")
    finally:
        db.close()
