"""
Admin review of vendors. Every route requires the ADMIN capability, checked
before the request body is validated.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.context import AppContext, get_context
from app.core.auth_dependency import Identity
from app.core.policy import Capability, require
from app.core.responses import ok, paginate
from app.db.session import get_db
from app.schemas.vendor import ReviewReasonRequest, VendorActionRequest
from app.services import subscription_service, vendor_admin_service

admin_only = require(Capability.ADMIN)

router = APIRouter(prefix="/vendor-admin", tags=["Vendor Admin"], dependencies=[Depends(admin_only)])


@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db)):
    return ok(vendor_admin_service.dashboard(db))


@router.get("/vendors")
def list_vendors(
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, total = vendor_admin_service.list_vendors(db, status=status, search=search, page=page, limit=limit)
    return ok(paginate(items, page, limit, total))


@router.get("/vendors/pending")
def pending_vendors(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, total = vendor_admin_service.pending_vendors(db, page=page, limit=limit)
    return ok(paginate(items, page, limit, total))


@router.get("/vendors/{vendor_id}")
def vendor_details(vendor_id: int, db: Session = Depends(get_db)):
    return ok(vendor_admin_service.vendor_details(db, vendor_id))


@router.post("/vendors/{vendor_id}/action")
def vendor_action(
    vendor_id: int,
    body: VendorActionRequest,
    admin: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    vendor = vendor_admin_service.handle_action(
        db, context.bus, vendor_id, admin.user.id, body.action.value, body.reason
    )
    return ok(vendor_admin_service.serialize_vendor(vendor), f"Vendor {body.action.value} completed")


@router.put("/vendors/{vendor_id}/approve")
def approve_vendor(
    vendor_id: int,
    admin: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    vendor = vendor_admin_service.approve(db, context.bus, vendor_id, admin.user.id)
    return ok(vendor_admin_service.serialize_vendor(vendor), "Vendor approved")


@router.put("/vendors/{vendor_id}/reject")
def reject_vendor(
    vendor_id: int,
    body: Optional[ReviewReasonRequest] = None,
    admin: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    reason = body.reason if body else None
    vendor = vendor_admin_service.reject(db, context.bus, vendor_id, admin.user.id, reason)
    return ok(vendor_admin_service.serialize_vendor(vendor), "Vendor rejected")


@router.put("/vendors/{vendor_id}/suspend")
def suspend_vendor(
    vendor_id: int,
    body: Optional[ReviewReasonRequest] = None,
    admin: Identity = Depends(admin_only),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    reason = body.reason if body else None
    vendor = vendor_admin_service.suspend(db, context.bus, vendor_id, admin.user.id, reason)
    return ok(vendor_admin_service.serialize_vendor(vendor), "Vendor suspended")


@router.post("/subscriptions/expire")
def expire_subscriptions(db: Session = Depends(get_db), context: AppContext = Depends(get_context)):
    expired = subscription_service.expire_subscriptions(db, context.bus)
    return ok({"expired": expired}, f"{expired} subscription(s) expired")
