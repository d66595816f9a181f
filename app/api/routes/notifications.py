from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth_dependency import Identity, get_identity
from app.core.policy import Capability, require
from app.core.responses import ok, paginate
from app.db.session import get_db
from app.services import notification_service

router = APIRouter(tags=["Notifications"])


def _inbox(identity: Identity, db: Session, page: int, limit: int, unread_only: bool) -> dict:
    items, total, unread = notification_service.list_notifications(
        db, identity.kind, identity.id, page, limit, unread_only
    )
    return {**paginate(items, page, limit, total), "unreadCount": unread}


@router.get("/notifications")
def my_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False, alias="unreadOnly"),
    identity: Identity = Depends(require(Capability.MEMBER)),
    db: Session = Depends(get_db),
):
    return ok(_inbox(identity, db, page, limit, unread_only))


@router.get("/vendors/notifications")
def vendor_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False, alias="unreadOnly"),
    identity: Identity = Depends(require(Capability.VENDOR)),
    db: Session = Depends(get_db),
):
    return ok(_inbox(identity, db, page, limit, unread_only))


@router.put("/notifications/{notification_id}/read")
def mark_read(notification_id: int, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    """Members and vendors mark their own notifications as read."""
    return ok(notification_service.mark_read(db, identity.kind, identity.id, notification_id))
