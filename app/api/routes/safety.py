from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.context import AppContext, get_context
from app.core.auth_dependency import Identity
from app.core.policy import Capability, require
from app.core.responses import ok, paginate
from app.db.session import get_db
from app.schemas.safety import BlockRequest, PhotoPrivacyRequest, ReportCreate, ReportReviewRequest
from app.services import photo_cleanup_service, safety_service

router = APIRouter(tags=["Member Safety"])

member = require(Capability.MEMBER)
admin_only = require(Capability.ADMIN)


# Blocks

@router.post("/blocks", status_code=201)
def block_user(body: BlockRequest, identity: Identity = Depends(member), db: Session = Depends(get_db)):
    result = safety_service.block_user(db, identity.user.id, body.blocked_user_id, body.reason)
    message = "User is already blocked" if result["alreadyBlocked"] else "User blocked successfully"
    return ok(result, message)


@router.delete("/blocks/{blocked_user_id}")
def unblock_user(blocked_user_id: int, identity: Identity = Depends(member), db: Session = Depends(get_db)):
    safety_service.unblock_user(db, identity.user.id, blocked_user_id)
    return ok(message="User unblocked successfully")


@router.get("/blocks")
def blocked_users(identity: Identity = Depends(member), db: Session = Depends(get_db)):
    return ok(safety_service.list_blocked_users(db, identity.user.id))


# Reports

@router.post("/reports", status_code=201)
def create_report(body: ReportCreate, identity: Identity = Depends(member), db: Session = Depends(get_db)):
    result = safety_service.create_report(
        db, identity.user.id, body.reported_profile_id, body.reason, body.details, body.screenshot_url
    )
    message = "You have already reported this profile" if result["duplicate"] else "Report submitted"
    return ok(result, message)


@router.get("/admin/reports", dependencies=[Depends(admin_only)])
def list_reports(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, total = safety_service.list_reports(db, status, page, limit)
    return ok(paginate(items, page, limit, total))


@router.put("/admin/reports/{report_id}")
def review_report(
    report_id: int,
    body: ReportReviewRequest,
    admin: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    return ok(safety_service.review_report(db, context.bus, report_id, admin.user.id, body.status, body.admin_notes))


@router.post("/admin/photos/cleanup", dependencies=[Depends(admin_only)])
def cleanup_photos(
    dry_run: bool = Query(False, alias="dryRun"),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    return ok(photo_cleanup_service.cleanup_orphan_photos(db, context.storage, dry_run=dry_run))


# Privacy

@router.get("/privacy")
def privacy_settings(identity: Identity = Depends(member), db: Session = Depends(get_db)):
    return ok(safety_service.get_privacy_settings(db, identity.user.id))


@router.put("/privacy/photos")
def update_photo_privacy(
    body: PhotoPrivacyRequest,
    identity: Identity = Depends(member),
    db: Session = Depends(get_db),
):
    return ok(safety_service.update_photo_privacy(db, identity.user.id, body.privacy_level),
              "Photo privacy updated successfully")
