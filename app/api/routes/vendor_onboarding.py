import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.context import AppContext, get_context
from app.core.auth_dependency import Identity
from app.core.errors import InvalidPlan
from app.core.policy import Capability, require
from app.core.responses import ok
from app.db.session import get_db
from app.schemas.vendor import (
    CouponValidateRequest,
    CreateCheckoutRequest,
    PlanSelectRequest,
    ProfileStepRequest,
    VerifyPaymentRequest,
)
from app.services import payment_service, plan_service, vendor_onboarding_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vendors/onboarding", tags=["Vendor Onboarding"])

vendor_only = require(Capability.VENDOR)


@router.get("/plans")
def list_plans(db: Session = Depends(get_db)):
    """Public vendor plan catalog, cheapest first."""
    plans = plan_service.list_active_plans(db, plan_service.VENDOR_CATEGORY)
    return ok([plan_service.serialize_plan(p) for p in plans])


@router.get("/plans/selected")
def selected_plan(identity: Identity = Depends(vendor_only), db: Session = Depends(get_db)):
    return ok(vendor_onboarding_service.get_selected_plan(db, identity.vendor.id))


@router.post("/plans/select")
def select_plan(
    body: PlanSelectRequest,
    identity: Identity = Depends(vendor_only),
    db: Session = Depends(get_db),
):
    vendor = vendor_onboarding_service.select_plan(db, identity.vendor.id, body.plan_code)
    return ok(
        {"status": vendor.onboarding_status, "plan": plan_service.serialize_plan(vendor.plan)},
        "Plan selected successfully",
    )


@router.get("/status")
def onboarding_status(identity: Identity = Depends(vendor_only), db: Session = Depends(get_db)):
    return ok(vendor_onboarding_service.get_onboarding_status(db, identity.vendor.id))


@router.patch("/profile/step")
def update_profile_step(
    body: ProfileStepRequest,
    identity: Identity = Depends(vendor_only),
    db: Session = Depends(get_db),
):
    result = vendor_onboarding_service.update_profile_step(db, identity.vendor.id, body.changes())
    return ok(result, "Profile updated")


@router.post("/review/submit")
def submit_for_review(identity: Identity = Depends(vendor_only), db: Session = Depends(get_db)):
    vendor = vendor_onboarding_service.submit_for_review(db, identity.vendor.id)
    return ok({"status": vendor.onboarding_status}, "Submitted for review")


@router.post("/payment/create-checkout")
def create_checkout(
    body: Optional[CreateCheckoutRequest] = None,
    identity: Identity = Depends(vendor_only),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    body = body or CreateCheckoutRequest()
    vendor = vendor_onboarding_service.get_vendor(db, identity.vendor.id)
    result = payment_service.create_checkout(
        db,
        context.gateway,
        context.bus,
        vendor,
        success_url=body.success_url,
        cancel_url=body.cancel_url,
        coupon_code=body.coupon_code,
    )
    return ok(result)


@router.post("/payment/verify")
def verify_payment(
    body: VerifyPaymentRequest,
    identity: Identity = Depends(vendor_only),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    result = payment_service.verify_payment(
        db, context.gateway, context.bus, body.session_id, vendor_id=identity.vendor.id
    )
    return ok(result)


@router.post("/coupons/validate")
def validate_coupon(body: CouponValidateRequest, db: Session = Depends(get_db)):
    plan = plan_service.get_plan_by_code(db, body.plan_code)
    if not plan_service.is_selectable(plan):
        raise InvalidPlan("Invalid plan selected")

    coupon = plan_service.validate_coupon(plan, body.coupon_code)
    pricing = plan_service.effective_price(plan, body.coupon_code)
    return ok({
        "valid": coupon["valid"],
        "message": coupon.get("message"),
        "originalPrice": pricing["original_price"],
        "discount": pricing["plan_discount"] + pricing["coupon_discount"],
        "finalPrice": pricing["amount"],
    })
