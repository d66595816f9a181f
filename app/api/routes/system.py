from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.context import AppContext, get_context
from app.db.session import get_db
from app.events.bus import NotificationEvent, SubscriptionEvent

router = APIRouter(prefix="/system", tags=["System"])


@router.get("/health")
def system_health(db: Session = Depends(get_db), context: AppContext = Depends(get_context)):
    db_ok = True
    try:
        db.execute(text("SELECT 1"))
    except Exception:
        db_ok = False

    return {
        "status": "ok",
        "database": "connected" if db_ok else "error",
        "eventHandlers": {
            "notification": context.bus.handler_count(NotificationEvent),
            "subscription": context.bus.handler_count(SubscriptionEvent),
        },
        "paymentGateway": context.gateway.name,
        "emailEnabled": bool(getattr(context.email_sender, "enabled", False)),
        "api_version": "1.0.0",
        "service": "Milan API"
    }
