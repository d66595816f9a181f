"""
Plan catalog: seeding, lookup, pricing and coupon validation.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import PAYMENT_CURRENCY
from app.db.models.plan import Plan

logger = logging.getLogger(__name__)

VENDOR_CATEGORY = "vendor"

# Seeded at startup; existing rows are updated to match
VENDOR_PLANS: List[Dict] = [
    {
        "code": "VENDOR_BASIC",
        "name": "Basic Presence",
        "price": 999,
        "duration_days": 365,
        "is_invite_only": False,
        "features": ["3 photos", "Basic analytics", "Standard listing"],
    },
    {
        "code": "VENDOR_FEATURED",
        "name": "Featured Spotlight",
        "price": 2499,
        "duration_days": 365,
        "is_invite_only": False,
        "features": ["10 photos", "1 video", "Priority support", "Highlight badge"],
    },
    {
        "code": "VENDOR_PREMIUM",
        "name": "Premium Showcase",
        "price": 4999,
        "duration_days": 365,
        "is_invite_only": False,
        "features": ["Unlimited photos", "5 videos", "Top placement", "Verified badge", "Analytics dashboard"],
    },
    {
        "code": "VENDOR_ELITE",
        "name": "Exclusive Elite",
        "price": 9999,
        "duration_days": 365,
        "is_invite_only": True,
        "features": ["All features", "Dedicated support", "Category lock", "Custom branding"],
    },
]


def seed_plans(db: Session) -> int:
    """
    Insert or update the vendor plan catalog.

    Returns:
        Number of plans created
    """
    created = 0
    for data in VENDOR_PLANS:
        plan = db.query(Plan).filter(Plan.code == data["code"]).first()
        if plan is None:
            plan = Plan(code=data["code"], category=VENDOR_CATEGORY, currency=PAYMENT_CURRENCY.upper())
            db.add(plan)
            created += 1
        plan.name = data["name"]
        plan.price = data["price"]
        plan.duration_days = data["duration_days"]
        plan.is_invite_only = data["is_invite_only"]
        plan.features = list(data["features"])
    db.commit()
    return created


def list_active_plans(db: Session, category: str = VENDOR_CATEGORY) -> List[Plan]:
    return (
        db.query(Plan)
        .filter(Plan.category == category, Plan.is_active.is_(True), Plan.is_invite_only.is_(False))
        .order_by(Plan.price.asc())
        .all()
    )


def get_plan_by_code(db: Session, code: str) -> Optional[Plan]:
    if not code:
        return None
    return db.query(Plan).filter(Plan.code == code.strip().upper()).first()


def is_selectable(plan: Optional[Plan]) -> bool:
    """Whether a vendor may pick this plan during onboarding."""
    return (
        plan is not None
        and plan.is_active
        and not plan.is_invite_only
        and plan.category == VENDOR_CATEGORY
    )


def plan_discount(plan: Plan) -> float:
    """Built-in plan discount; a fixed amount wins over a percentage."""
    if plan.discount_amount and plan.discount_amount > 0:
        return float(plan.discount_amount)
    if plan.discount_percent and plan.discount_percent > 0:
        return round(plan.price * plan.discount_percent / 100)
    return 0.0


def validate_coupon(plan: Plan, code: Optional[str], now: Optional[datetime] = None) -> Dict:
    """
    Check a coupon code against the plan it is attached to.

    Returns:
        Dictionary with 'valid' and the coupon's discount, or 'valid' and 'message'
    """
    if not code:
        return {"valid": False, "message": "Coupon code is required"}
    if not plan.coupon_code or plan.coupon_code.upper() != code.strip().upper():
        return {"valid": False, "message": "Invalid coupon code"}

    now = now or datetime.now(timezone.utc)
    valid_until = plan.coupon_valid_until
    if valid_until is not None:
        if valid_until.tzinfo is None:
            valid_until = valid_until.replace(tzinfo=timezone.utc)
        if valid_until < now:
            return {"valid": False, "message": "Coupon has expired"}

    if plan_discount(plan) <= 0:
        return {"valid": False, "message": "Coupon has no discount configured"}

    return {
        "valid": True,
        "code": plan.coupon_code,
        "discount_amount": plan.discount_amount or 0,
        "discount_percent": plan.discount_percent or 0,
    }


def effective_price(plan: Plan, coupon_code: Optional[str] = None) -> Dict:
    """
    Price to charge for a plan.

    A plan without a coupon code gets its discount automatically; a plan with
    one only gets it when the matching, unexpired coupon is presented.

    Returns:
        Dictionary with amount, original_price, plan_discount, coupon_discount
    """
    original = float(plan.price)
    discount = 0.0 if plan.coupon_code else plan_discount(plan)
    amount = max(0.0, original - discount)

    coupon_discount = 0.0
    if coupon_code:
        coupon = validate_coupon(plan, coupon_code)
        if coupon["valid"]:
            coupon_discount = plan_discount(plan)
            amount = max(0.0, amount - coupon_discount)
        else:
            logger.warning(f"Ignoring coupon for plan={plan.code}: {coupon['message']}")

    return {
        "amount": amount,
        "original_price": original,
        "plan_discount": discount,
        "coupon_discount": coupon_discount,
    }


def serialize_plan(plan: Plan) -> Dict:
    return {
        "id": plan.id,
        "code": plan.code,
        "name": plan.name,
        "price": plan.price,
        "currency": plan.currency,
        "durationDays": plan.duration_days,
        "discountAmount": plan.discount_amount or 0,
        "discountPercent": plan.discount_percent or 0,
        "effectivePrice": effective_price(plan)["amount"],
        "hasCoupon": bool(plan.coupon_code),
        "features": plan.features or [],
    }
