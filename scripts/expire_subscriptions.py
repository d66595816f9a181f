"""
Expire vendor subscriptions past their end date and notify the vendors.
Run: python -m scripts.expire_subscriptions
"""
import logging
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.context import build_context
from app.db.session import SessionLocal

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main() -> int:
    context = build_context(SessionLocal)
    context.start()
    expired = context.expire_subscriptions()
    context.dispatcher.drain()
    context.dispatcher.unregister(context.bus)
    logger.info(f"Expired {expired} subscription(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
