"""
Vendor registration and email verification.

A new vendor account starts unverified. Registration emails a signed link;
following it marks the account verified and returns the first access
token. Login stays closed until then.
"""
import logging
from datetime import timedelta
from typing import Dict, Tuple

from sqlalchemy.orm import Session

from app.core.config import FRONTEND_URL, VENDOR_VERIFY_TOKEN_HOURS
from app.core.errors import Conflict, ValidationError
from app.core.security import (
    VENDOR_TOKEN,
    VENDOR_VERIFY_TOKEN,
    create_access_token,
    decode_access_token,
    hash_password,
)
from app.db.models.vendor import OnboardingStatus, Vendor

logger = logging.getLogger(__name__)


def verification_token(vendor: Vendor) -> str:
    return create_access_token(
        {"sub": vendor.email},
        expires_delta=timedelta(hours=VENDOR_VERIFY_TOKEN_HOURS),
        kind=VENDOR_VERIFY_TOKEN,
    )


def send_verification_email(email_sender, vendor: Vendor) -> bool:
    """Email the verification link. Returns False when the email could not be sent."""
    link = f"{FRONTEND_URL}/vendor/verify-email?token={verification_token(vendor)}"
    body = (
        f"Welcome to Milan, {vendor.owner_name}. Confirm your email to continue setting up "
        f"{vendor.business_name}: {link} (valid for {VENDOR_VERIFY_TOKEN_HOURS} hours)"
    )
    try:
        email_sender.send(vendor.email, "Verify your Milan vendor account", body)
    except Exception as e:
        logger.error(f"Verification email failed: vendor_id={vendor.id}: {e}")
        return False
    logger.info(f"Verification email sent: vendor_id={vendor.id}")
    return True


def register_vendor(db: Session, email_sender, data: Dict) -> Tuple[Vendor, bool]:
    if db.query(Vendor).filter(Vendor.email == data["email"]).first():
        raise Conflict("Email already registered", code="EMAIL_EXISTS")

    vendor = Vendor(
        email=data["email"],
        password_hash=hash_password(data["password"]),
        business_name=data["business_name"],
        owner_name=data["owner_name"],
        phone_number=data.get("phone_number"),
        is_verified=False,
        onboarding_status=OnboardingStatus.REGISTERED.value,
    )
    db.add(vendor)
    db.commit()
    db.refresh(vendor)
    logger.info(f"Vendor registered: vendor_id={vendor.id}")

    return vendor, send_verification_email(email_sender, vendor)


def verify_email(db: Session, token: str) -> Vendor:
    payload = decode_access_token(token)
    if payload is None or payload.get("kind") != VENDOR_VERIFY_TOKEN or not payload.get("sub"):
        raise ValidationError("Invalid or expired verification link", code="INVALID_VERIFICATION_TOKEN")

    vendor = db.query(Vendor).filter(Vendor.email == payload["sub"]).first()
    if vendor is None:
        raise ValidationError("Invalid or expired verification link", code="INVALID_VERIFICATION_TOKEN")
    if vendor.is_verified:
        raise Conflict("Email already verified", code="ALREADY_VERIFIED")

    vendor.is_verified = True
    db.commit()
    db.refresh(vendor)
    logger.info(f"Vendor email verified: vendor_id={vendor.id}")
    return vendor


def resend_verification(db: Session, email_sender, email: str) -> None:
    """Send a fresh link to an unverified vendor; unknown or verified addresses are ignored."""
    vendor = db.query(Vendor).filter(Vendor.email == email).first()
    if vendor is None or vendor.is_verified:
        return
    send_verification_email(email_sender, vendor)


def access_token(vendor: Vendor) -> str:
    return create_access_token({"sub": vendor.email}, kind=VENDOR_TOKEN)
