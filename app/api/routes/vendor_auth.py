import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.context import AppContext, get_context
from app.core.errors import Forbidden, Unauthenticated
from app.core.rate_limit import login_limiter
from app.core.responses import ok
from app.core.security import verify_password
from app.db.models.vendor import Vendor
from app.db.session import get_db
from app.schemas.auth import (
    VendorLoginRequest,
    VendorRegisterRequest,
    VendorResendVerificationRequest,
    VendorVerifyEmailRequest,
)
from app.services import vendor_auth_service
from app.services.vendor_admin_service import serialize_vendor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vendors/auth", tags=["Vendor Auth"])


@router.post("/register", status_code=201)
def register(
    body: VendorRegisterRequest,
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    vendor, email_sent = vendor_auth_service.register_vendor(db, context.email_sender, body.model_dump())
    return ok(
        {"vendor": serialize_vendor(vendor), "verificationEmailSent": email_sent},
        "Registration successful. Check your email to verify your account.",
    )


@router.post("/verify-email")
def verify_email(body: VendorVerifyEmailRequest, db: Session = Depends(get_db)):
    vendor = vendor_auth_service.verify_email(db, body.token)
    return ok(
        {
            "accessToken": vendor_auth_service.access_token(vendor),
            "tokenType": "bearer",
            "vendor": serialize_vendor(vendor),
        },
        "Email verified",
    )


@router.post("/resend-verification", dependencies=[Depends(login_limiter.dependency("vendor-verify"))])
def resend_verification(
    body: VendorResendVerificationRequest,
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    vendor_auth_service.resend_verification(db, context.email_sender, body.email)
    return ok(message="If the account exists and is unverified, a new link has been sent")


@router.post("/login", dependencies=[Depends(login_limiter.dependency("vendor-login"))])
def login(body: VendorLoginRequest, db: Session = Depends(get_db)):
    vendor = db.query(Vendor).filter(Vendor.email == body.email).first()
    if not vendor or not verify_password(body.password, vendor.password_hash):
        raise Unauthenticated("Invalid credentials")
    if not vendor.is_verified:
        raise Forbidden("Please verify your email before logging in", code="EMAIL_NOT_VERIFIED")

    token = vendor_auth_service.access_token(vendor)
    return ok({"accessToken": token, "tokenType": "bearer", "vendor": serialize_vendor(vendor)})
