from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.context import AppContext, get_context
from app.core.auth_dependency import Identity
from app.core.policy import Capability, require
from app.core.responses import ok
from app.db.session import get_db
from app.services import payment_service, subscription_service

router = APIRouter(tags=["Payments"])


@router.post("/payments/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    """Stripe webhook; the raw body is needed for signature verification."""
    payload = await request.body()
    result = await run_in_threadpool(
        payment_service.handle_webhook, db, context.gateway, context.bus, payload, stripe_signature
    )
    return ok(result)


@router.get("/vendors/payments/history")
def payment_history(identity: Identity = Depends(require(Capability.VENDOR)), db: Session = Depends(get_db)):
    return ok({
        "payments": payment_service.payment_history(db, identity.vendor.id),
        "activeSubscription": subscription_service.serialize_subscription(
            subscription_service.get_active_subscription(db, identity.vendor.id)
        ),
    })
