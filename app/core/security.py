import logging
import bcrypt
from passlib.context import CryptContext
from datetime import datetime, timedelta
from typing import Optional
from jose import jwt, JWTError
from app.core.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES

logger = logging.getLogger(__name__)

# passlib verifies hashes created before the switch to bcrypt directly
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Token subject kinds
USER_TOKEN = "user"
VENDOR_TOKEN = "vendor"
# Single-purpose token emailed to a new vendor; never accepted as a bearer token
VENDOR_VERIFY_TOKEN = "vendor_verify"

BCRYPT_MAX_BYTES = 72


def _truncate(password: str) -> bytes:
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        logger.warning("Password exceeds 72 bytes, truncating before hashing")
        password_bytes = password_bytes[:BCRYPT_MAX_BYTES]
    return password_bytes


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Passwords longer than bcrypt's 72-byte limit are truncated; request
    schemas reject them before this point.
    """
    try:
        return bcrypt.hashpw(_truncate(password), bcrypt.gensalt()).decode("utf-8")
    except ValueError as e:
        logger.error(f"Password hashing failed: {e}")
        raise ValueError("Invalid password") from e


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt or passlib hash."""
    try:
        return bcrypt.checkpw(_truncate(password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        try:
            return pwd_context.verify(password, hashed)
        except ValueError:
            return False


def create_access_token(data: dict, expires_delta: timedelta = None, kind: str = USER_TOKEN):
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "kind": kind})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Return the token claims, or None when the token is invalid or expired."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
