"""
In-app notification inbox for members and vendors.
"""
from datetime import datetime, timezone
from typing import Dict, Tuple

from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.db.models.notification import Notification


def list_notifications(
    db: Session, recipient_type: str, recipient_id: int, page: int = 1, limit: int = 20, unread_only: bool = False
) -> Tuple[list, int, int]:
    """Returns (items, total, unread_count)."""
    base = db.query(Notification).filter(
        Notification.recipient_type == recipient_type,
        Notification.recipient_id == recipient_id,
    )
    unread = base.filter(Notification.read_at.is_(None)).count()
    query = base.filter(Notification.read_at.is_(None)) if unread_only else base
    total = query.count()
    rows = (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return [serialize_notification(n) for n in rows], total, unread


def mark_read(db: Session, recipient_type: str, recipient_id: int, notification_id: int) -> Dict:
    notification = (
        db.query(Notification)
        .filter(
            Notification.id == notification_id,
            Notification.recipient_type == recipient_type,
            Notification.recipient_id == recipient_id,
        )
        .first()
    )
    if notification is None:
        raise NotFound("Notification not found")
    if notification.read_at is None:
        notification.read_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(notification)
    return serialize_notification(notification)


def serialize_notification(notification: Notification) -> Dict:
    return {
        "id": notification.id,
        "type": notification.type,
        "title": notification.title,
        "body": notification.body,
        "priority": notification.priority,
        "metadata": notification.extra or {},
        "isRead": notification.read_at is not None,
        "readAt": notification.read_at.isoformat() if notification.read_at else None,
        "createdAt": notification.created_at.isoformat() if notification.created_at else None,
    }
