"""
Vendor onboarding: plan selection, stepwise profile completion and
submission for review.
"""
import logging
from typing import Dict

from sqlalchemy.orm import Session

from app.core.errors import InvalidPlan, InvalidStateTransition, NotFound, ProfileIncomplete
from app.db.models.vendor import OnboardingStatus, Vendor, VendorProfile
from app.services import plan_service
from app.services.vendor_workflow import (
    PLAN_SELECTABLE,
    PROFILE_EDITABLE,
    current_status,
    missing_profile_fields,
    transition,
)

logger = logging.getLogger(__name__)


def get_vendor(db: Session, vendor_id: int) -> Vendor:
    vendor = db.query(Vendor).filter(Vendor.id == vendor_id).first()
    if vendor is None:
        raise NotFound("Vendor not found", code="VENDOR_NOT_FOUND")
    return vendor


def _ensure_profile(db: Session, vendor: Vendor) -> VendorProfile:
    if vendor.profile is None:
        vendor.profile = VendorProfile(vendor_id=vendor.id)
        db.add(vendor.profile)
        db.flush()
    return vendor.profile


def _advance_if_complete(vendor: Vendor) -> None:
    if current_status(vendor) == OnboardingStatus.PLAN_SELECTED and not missing_profile_fields(vendor.profile):
        transition(vendor, OnboardingStatus.PROFILE_COMPLETED)


def get_onboarding_status(db: Session, vendor_id: int) -> Dict:
    vendor = get_vendor(db, vendor_id)
    missing = missing_profile_fields(vendor.profile)
    return {
        "status": vendor.onboarding_status,
        "businessName": vendor.business_name,
        "plan": plan_service.serialize_plan(vendor.plan) if vendor.plan else None,
        "profile": serialize_profile(vendor.profile),
        "isProfileComplete": not missing,
        "missingFields": missing,
        "rejectionReason": vendor.rejection_reason,
    }


def select_plan(db: Session, vendor_id: int, plan_code: str) -> Vendor:
    """
    Record the vendor's plan choice.

    REGISTERED vendors move to PLAN_SELECTED; vendors that already chose a
    plan may change it without moving.
    """
    vendor = get_vendor(db, vendor_id)
    status = current_status(vendor)
    if status not in PLAN_SELECTABLE:
        raise InvalidStateTransition(status.value, OnboardingStatus.PLAN_SELECTED.value)

    plan = plan_service.get_plan_by_code(db, plan_code)
    if not plan_service.is_selectable(plan):
        raise InvalidPlan("Invalid plan selected")

    vendor.plan_id = plan.id
    vendor.plan = plan
    if status == OnboardingStatus.REGISTERED:
        transition(vendor, OnboardingStatus.PLAN_SELECTED)
        _advance_if_complete(vendor)

    db.commit()
    db.refresh(vendor)
    logger.info(f"Plan selected: vendor_id={vendor.id}, plan={plan.code}, status={vendor.onboarding_status}")
    return vendor


def update_profile_step(db: Session, vendor_id: int, data: Dict) -> Dict:
    """
    Persist a partial profile update and report what is still missing.

    The vendor moves from PLAN_SELECTED to PROFILE_COMPLETED as soon as every
    mandatory field is filled.
    """
    vendor = get_vendor(db, vendor_id)
    status = current_status(vendor)
    if status not in PROFILE_EDITABLE:
        raise InvalidStateTransition(status.value, OnboardingStatus.PROFILE_COMPLETED.value)

    profile = _ensure_profile(db, vendor)
    for field_name, value in data.items():
        setattr(profile, field_name, value)

    _advance_if_complete(vendor)
    db.commit()
    db.refresh(vendor)

    missing = missing_profile_fields(vendor.profile)
    logger.info(
        f"Profile step saved: vendor_id={vendor.id}, fields={sorted(data)}, "
        f"missing={missing}, status={vendor.onboarding_status}"
    )
    return {
        "status": vendor.onboarding_status,
        "profile": serialize_profile(vendor.profile),
        "missingFields": missing,
        "isProfileComplete": not missing,
    }


def submit_for_review(db: Session, vendor_id: int) -> Vendor:
    """
    Send the vendor to the admin approval queue.

    Idempotent for vendors already pending. Rejected vendors re-enter the
    queue directly once their profile is complete.
    """
    vendor = get_vendor(db, vendor_id)
    status = current_status(vendor)

    if status == OnboardingStatus.PENDING_APPROVAL:
        return vendor

    if status not in (OnboardingStatus.PLAN_SELECTED, OnboardingStatus.PROFILE_COMPLETED, OnboardingStatus.REJECTED):
        raise InvalidStateTransition(status.value, OnboardingStatus.PENDING_APPROVAL.value)

    missing = missing_profile_fields(vendor.profile)
    if missing:
        raise ProfileIncomplete(missing)

    if status == OnboardingStatus.PLAN_SELECTED:
        transition(vendor, OnboardingStatus.PROFILE_COMPLETED)
    transition(vendor, OnboardingStatus.PENDING_APPROVAL)

    db.commit()
    db.refresh(vendor)
    logger.info(f"Vendor submitted for review: vendor_id={vendor.id}")
    return vendor


def get_selected_plan(db: Session, vendor_id: int) -> Dict:
    vendor = get_vendor(db, vendor_id)
    if vendor.plan is None:
        raise NotFound("No plan selected", code="NO_PLAN_SELECTED")
    return plan_service.serialize_plan(vendor.plan)


PROFILE_FIELDS = {
    "tagline": "tagline",
    "description": "description",
    "logo": "logo",
    "cover_image": "coverImage",
    "images": "images",
    "address": "address",
    "city": "city",
    "state": "state",
    "country": "country",
    "pincode": "pincode",
    "years_in_business": "yearsInBusiness",
    "team_size": "teamSize",
    "website": "website",
    "social_links": "socialLinks",
}


def serialize_profile(profile) -> Dict:
    if profile is None:
        return None
    return {alias: getattr(profile, attr) for attr, alias in PROFILE_FIELDS.items()}
