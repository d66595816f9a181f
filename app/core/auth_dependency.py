from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.errors import Unauthenticated
from app.core.security import USER_TOKEN, VENDOR_TOKEN, decode_access_token
from app.db.models.user import User
from app.db.models.vendor import Vendor
from app.db.session import get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


@dataclass
class Identity:
    """The authenticated caller: a member/admin User or a Vendor."""
    kind: str
    user: Optional[User] = None
    vendor: Optional[Vendor] = None

    @property
    def id(self) -> int:
        return self.user.id if self.kind == USER_TOKEN else self.vendor.id


def get_identity(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Identity:
    """Resolve the bearer token to a User or Vendor."""
    if not token:
        raise Unauthenticated("Not authenticated")

    payload = decode_access_token(token)
    if payload is None or not payload.get("sub"):
        raise Unauthenticated("Invalid token")

    email = payload["sub"]
    kind = payload.get("kind", USER_TOKEN)

    if kind == VENDOR_TOKEN:
        vendor = db.query(Vendor).filter(Vendor.email == email).first()
        if vendor is None:
            raise Unauthenticated("Vendor not found")
        return Identity(kind=VENDOR_TOKEN, vendor=vendor)

    if kind == USER_TOKEN:
        user = db.query(User).filter(User.email == email).first()
        if user is None:
            raise Unauthenticated("User not found")
        return Identity(kind=USER_TOKEN, user=user)

    raise Unauthenticated("Invalid token")
