"""
Member safety: blocking, reporting and photo privacy.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError
from app.db.models.profile import DEFAULT_PRIVACY_LEVEL, Photo, Profile
from app.db.models.safety import Block, Report, ReportStatus
from app.db.models.user import User
from app.events.bus import EventBus, NotificationEvent

logger = logging.getLogger(__name__)


# Blocks

def block_user(db: Session, blocker_user_id: int, blocked_user_id: int, reason: Optional[str] = None) -> Dict:
    """Block a member. Blocking someone already blocked returns the existing block."""
    if blocker_user_id == blocked_user_id:
        raise ValidationError("You cannot block yourself")
    if db.query(User).filter(User.id == blocked_user_id).first() is None:
        raise NotFound("User not found")

    existing = _get_block(db, blocker_user_id, blocked_user_id)
    if existing is not None:
        logger.info(f"User already blocked: blocker={blocker_user_id}, blocked={blocked_user_id}")
        return {**serialize_block(existing), "alreadyBlocked": True}

    block = Block(blocker_user_id=blocker_user_id, blocked_user_id=blocked_user_id, reason=reason)
    db.add(block)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with an identical request
        db.rollback()
        existing = _get_block(db, blocker_user_id, blocked_user_id)
        return {**serialize_block(existing), "alreadyBlocked": True}

    db.refresh(block)
    logger.info(f"User blocked: block_id={block.id}, blocker={blocker_user_id}, blocked={blocked_user_id}")
    return {**serialize_block(block), "alreadyBlocked": False}


def unblock_user(db: Session, blocker_user_id: int, blocked_user_id: int) -> None:
    block = _get_block(db, blocker_user_id, blocked_user_id)
    if block is None:
        raise NotFound("Block not found")
    db.delete(block)
    db.commit()
    logger.info(f"User unblocked: blocker={blocker_user_id}, blocked={blocked_user_id}")


def list_blocked_users(db: Session, user_id: int) -> list:
    rows = (
        db.query(Block, Profile)
        .outerjoin(Profile, Profile.user_id == Block.blocked_user_id)
        .filter(Block.blocker_user_id == user_id)
        .order_by(Block.created_at.desc(), Block.id.desc())
        .all()
    )
    return [
        {
            **serialize_block(block),
            "profile": {
                "id": profile.id,
                "displayName": profile.display_name,
                "headline": profile.headline,
                "location": profile.location,
            } if profile else None,
        }
        for block, profile in rows
    ]


def is_blocked_between(db: Session, user_a: int, user_b: int) -> bool:
    """True if either member has blocked the other."""
    return (
        db.query(Block)
        .filter(
            ((Block.blocker_user_id == user_a) & (Block.blocked_user_id == user_b))
            | ((Block.blocker_user_id == user_b) & (Block.blocked_user_id == user_a))
        )
        .first()
        is not None
    )


def _get_block(db: Session, blocker_user_id: int, blocked_user_id: int) -> Optional[Block]:
    return (
        db.query(Block)
        .filter(Block.blocker_user_id == blocker_user_id, Block.blocked_user_id == blocked_user_id)
        .first()
    )


def serialize_block(block: Block) -> Dict:
    return {
        "id": block.id,
        "blockedUserId": block.blocked_user_id,
        "reason": block.reason,
        "createdAt": block.created_at.isoformat() if block.created_at else None,
    }


# Reports

def create_report(
    db: Session,
    reporter_user_id: int,
    reported_profile_id: int,
    reason: str,
    details: Optional[str] = None,
    screenshot_url: Optional[str] = None,
) -> Dict:
    """
    File a report against a profile.

    A second report while the first is still pending returns the pending one.
    """
    profile = db.query(Profile).filter(Profile.id == reported_profile_id).first()
    if profile is None:
        raise NotFound("Reported profile not found")
    if profile.user_id == reporter_user_id:
        raise ValidationError("You cannot report your own profile")

    existing = (
        db.query(Report)
        .filter(
            Report.reporter_user_id == reporter_user_id,
            Report.reported_profile_id == reported_profile_id,
            Report.status == ReportStatus.PENDING.value,
        )
        .first()
    )
    if existing is not None:
        logger.info(f"Duplicate report prevented: reporter={reporter_user_id}, report_id={existing.id}")
        return {**serialize_report(existing), "duplicate": True}

    report = Report(
        reporter_user_id=reporter_user_id,
        reported_profile_id=reported_profile_id,
        reason=reason,
        details=details,
        screenshot_url=screenshot_url,
        status=ReportStatus.PENDING.value,
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    logger.info(f"Report created: report_id={report.id}, reporter={reporter_user_id}, reason={reason}")
    return {**serialize_report(report), "duplicate": False}


def list_reports(db: Session, status: Optional[str] = None, page: int = 1, limit: int = 20) -> Tuple[list, int]:
    query = db.query(Report)
    if status:
        query = query.filter(Report.status == status)
    total = query.count()
    rows = query.order_by(Report.created_at.desc(), Report.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return [serialize_report(r) for r in rows], total


def review_report(
    db: Session,
    bus: EventBus,
    report_id: int,
    admin_user_id: int,
    status: str,
    admin_notes: Optional[str] = None,
) -> Dict:
    if status == ReportStatus.PENDING.value:
        raise ValidationError("A reviewed report cannot be set back to pending")

    report = db.query(Report).filter(Report.id == report_id).first()
    if report is None:
        raise NotFound("Report not found")

    report.status = status
    report.admin_notes = admin_notes
    report.reviewed_by = admin_user_id
    report.reviewed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(report)
    logger.info(f"Report reviewed: report_id={report.id}, status={status}, admin_user_id={admin_user_id}")

    bus.publish(NotificationEvent(
        recipient_type="user",
        recipient_id=report.reporter_user_id,
        type="report_reviewed",
        metadata={"reportId": report.id, "status": status},
    ))
    return serialize_report(report)


def serialize_report(report: Report) -> Dict:
    return {
        "id": report.id,
        "reporterUserId": report.reporter_user_id,
        "reportedProfileId": report.reported_profile_id,
        "reason": report.reason,
        "details": report.details,
        "screenshotUrl": report.screenshot_url,
        "status": report.status,
        "adminNotes": report.admin_notes,
        "reviewedBy": report.reviewed_by,
        "reviewedAt": report.reviewed_at.isoformat() if report.reviewed_at else None,
        "createdAt": report.created_at.isoformat() if report.created_at else None,
    }


# Photo privacy

def _get_profile(db: Session, user_id: int) -> Profile:
    profile = db.query(Profile).filter(Profile.user_id == user_id).first()
    if profile is None:
        raise NotFound("Profile not found")
    return profile


def get_privacy_settings(db: Session, user_id: int) -> Dict:
    profile = _get_profile(db, user_id)
    photo = (
        db.query(Photo)
        .filter(Photo.profile_id == profile.id, Photo.deleted_at.is_(None))
        .order_by(Photo.id)
        .first()
    )
    return {"photoPrivacy": photo.privacy_level if photo else DEFAULT_PRIVACY_LEVEL}


def update_photo_privacy(db: Session, user_id: int, privacy_level: str) -> Dict:
    profile = _get_profile(db, user_id)
    updated = (
        db.query(Photo)
        .filter(Photo.profile_id == profile.id, Photo.deleted_at.is_(None))
        .update({Photo.privacy_level: privacy_level}, synchronize_session=False)
    )
    db.commit()
    logger.info(f"Photo privacy updated: user_id={user_id}, level={privacy_level}, photos={updated}")
    return {"privacyLevel": privacy_level, "photosUpdated": updated}
