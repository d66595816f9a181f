import logging

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from app.core.errors import Conflict, Unauthenticated
from app.core.rate_limit import login_limiter
from app.core.responses import ok
from app.core.security import USER_TOKEN, create_access_token, hash_password, verify_password
from app.db.models.profile import Profile
from app.db.models.user import User
from app.db.session import get_db
from app.schemas.auth import SignupRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/signup", status_code=201)
def signup(body: SignupRequest, db: Session = Depends(get_db)):
    existing_user = db.query(User).filter(User.email == body.email).first()
    if existing_user:
        raise Conflict("Email already registered", code="EMAIL_EXISTS")

    user = User(
        full_name=body.full_name,
        email=body.email,
        password_hash=hash_password(body.password),
    )
    db.add(user)
    db.flush()
    db.add(Profile(user_id=user.id, display_name=body.full_name))
    db.commit()
    db.refresh(user)

    logger.info(f"Member signed up: user_id={user.id}")
    return ok({"userId": user.id}, "User created successfully")


# OAuth2 password form so Swagger's Authorize button works
@router.post("/login", dependencies=[Depends(login_limiter.dependency("user-login"))])
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    # Swagger sends "username", but we treat it as email
    user = db.query(User).filter(User.email == form_data.username).first()

    if not user or not verify_password(form_data.password, user.password_hash):
        raise Unauthenticated("Invalid credentials")

    token = create_access_token({"sub": user.email}, kind=USER_TOKEN)

    # Top-level token fields for OAuth2 clients
    return {
        "success": True,
        "access_token": token,
        "token_type": "bearer",
        "data": {"userId": user.id, "role": user.role},
    }
