"""
Create an admin account or promote an existing member to admin.
Run: python -m scripts.make_admin admin@example.com [password]
"""
import logging
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.security import hash_password
from app.db.models.user import User, UserRole
from app.db.session import SessionLocal

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def make_admin(email: str, password: str = None) -> bool:
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()

        if not user:
            if not password:
                logger.error(f"User {email} not found and no password provided. Cannot create user.")
                return False
            user = User(
                email=email.lower(),
                full_name="Administrator",
                password_hash=hash_password(password),
            )
            db.add(user)
            logger.info(f"Creating new admin: {email}")

        user.role = UserRole.ADMIN.value
        db.commit()
        logger.info(f"{email} is now an admin (ID: {user.id})")
        return True
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python -m scripts.make_admin <email> [password]")
        sys.exit(1)
    sys.exit(0 if make_admin(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None) else 1)
