"""
Tests for the admin vendor review endpoints and their access policy.
"""
import pytest

from app.db.models.vendor import OnboardingStatus, Vendor
from tests.conftest import COMPLETE_PROFILE, make_vendor, vendor_header

ADMIN_ENDPOINTS = [
    ("get", "/vendor-admin/dashboard"),
    ("get", "/vendor-admin/vendors"),
    ("get", "/vendor-admin/vendors/pending"),
    ("get", "/vendor-admin/vendors/{id}"),
    ("post", "/vendor-admin/vendors/{id}/action"),
    ("put", "/vendor-admin/vendors/{id}/approve"),
    ("put", "/vendor-admin/vendors/{id}/reject"),
    ("put", "/vendor-admin/vendors/{id}/suspend"),
    ("post", "/vendor-admin/subscriptions/expire"),
]

# Valid, invalid and empty bodies must all be refused the same way
BODIES = [None, {"action": "approve"}, {"action": "explode", "reason": "x" * 600}]


@pytest.fixture
def pending_vendor(db):
    return make_vendor(db, status=OnboardingStatus.PENDING_APPROVAL, plan_code="VENDOR_BASIC",
                       profile=COMPLETE_PROFILE)


def _call(client, method, path, vendor_id, headers=None, body=None):
    kwargs = {"headers": headers or {}}
    if body is not None and method != "get":
        kwargs["json"] = body
    return getattr(client, method)(path.format(id=vendor_id), **kwargs)


@pytest.mark.parametrize("method,path", ADMIN_ENDPOINTS)
@pytest.mark.parametrize("body", BODIES)
def test_member_is_forbidden(client, db, member_headers, pending_vendor, method, path, body):
    response = _call(client, method, path, pending_vendor.id, member_headers, body)
    assert response.status_code == 403
    assert response.json()["success"] is False


@pytest.mark.parametrize("method,path", ADMIN_ENDPOINTS)
@pytest.mark.parametrize("body", BODIES)
def test_vendor_is_forbidden(client, db, pending_vendor, method, path, body):
    response = _call(client, method, path, pending_vendor.id, vendor_header(pending_vendor), body)
    assert response.status_code == 403


@pytest.mark.parametrize("method,path", ADMIN_ENDPOINTS)
def test_anonymous_is_unauthenticated(client, db, pending_vendor, method, path):
    response = _call(client, method, path, pending_vendor.id)
    assert response.status_code == 401


def test_forbidden_calls_do_not_change_status(client, db, member_headers, pending_vendor):
    client.put(f"/vendor-admin/vendors/{pending_vendor.id}/approve", headers=member_headers)
    db.expire_all()
    vendor = db.query(Vendor).filter(Vendor.id == pending_vendor.id).one()
    assert vendor.onboarding_status == "PENDING_APPROVAL"


def test_list_and_filter_vendors(client, db, admin_headers):
    make_vendor(db, email="a@example.com", business_name="Alpona Events")
    make_vendor(db, email="b@example.com", business_name="Bokul Caterers",
                status=OnboardingStatus.PENDING_APPROVAL)
    make_vendor(db, email="c@example.com", business_name="Champa Florists",
                status=OnboardingStatus.PENDING_APPROVAL)

    everything = client.get("/vendor-admin/vendors", headers=admin_headers).json()["data"]
    assert everything["pagination"]["total"] == 3

    pending = client.get("/vendor-admin/vendors?status=pending_approval", headers=admin_headers).json()["data"]
    assert {v["businessName"] for v in pending["items"]} == {"Bokul Caterers", "Champa Florists"}

    searched = client.get("/vendor-admin/vendors?search=florist", headers=admin_headers).json()["data"]
    assert [v["businessName"] for v in searched["items"]] == ["Champa Florists"]

    paged = client.get("/vendor-admin/vendors?limit=2&page=2", headers=admin_headers).json()["data"]
    assert len(paged["items"]) == 1
    assert paged["pagination"]["pages"] == 2


def test_unknown_status_filter(client, admin_headers):
    response = client.get("/vendor-admin/vendors?status=sleeping", headers=admin_headers)
    assert response.status_code == 400


def test_pending_queue(client, db, admin_headers, pending_vendor):
    make_vendor(db, email="other@example.com")
    data = client.get("/vendor-admin/vendors/pending", headers=admin_headers).json()["data"]
    assert [v["id"] for v in data["items"]] == [pending_vendor.id]


def test_vendor_details(client, admin_headers, pending_vendor):
    data = client.get(f"/vendor-admin/vendors/{pending_vendor.id}", headers=admin_headers).json()["data"]
    assert data["businessName"] == "Shapla Studio"
    assert data["missingFields"] == []
    assert data["subscription"] is None
    assert data["bookingStats"]["pending"] == 0
    assert data["reviewStats"] == {"total": 0, "averageRating": None}


def test_vendor_details_not_found(client, admin_headers):
    response = client.get("/vendor-admin/vendors/9999", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "VENDOR_NOT_FOUND"


def test_reason_too_long(client, admin_headers, pending_vendor):
    response = client.put(
        f"/vendor-admin/vendors/{pending_vendor.id}/reject", json={"reason": "x" * 501}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_action_endpoint(client, db, admin_headers, pending_vendor):
    response = client.post(
        f"/vendor-admin/vendors/{pending_vendor.id}/action",
        json={"action": "reject", "reason": "Blurry logo"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "REJECTED"
    assert response.json()["data"]["rejectionReason"] == "Blurry logo"


def test_suspend_approved_vendor_notifies_immediately(client, db, context, admin_headers, email_sender):
    """Suspension is delivered without waiting for the queue."""
    vendor = make_vendor(db, status=OnboardingStatus.APPROVED, plan_code="VENDOR_BASIC", profile=COMPLETE_PROFILE)
    response = client.put(f"/vendor-admin/vendors/{vendor.id}/suspend", json={"reason": "Fake reviews"},
                          headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "SUSPENDED"
    assert context.dispatcher.queue_length == 0
    assert email_sender.sent[-1]["to"] == vendor.email


def test_dashboard(client, db, admin_headers, pending_vendor):
    data = client.get("/vendor-admin/dashboard", headers=admin_headers).json()["data"]
    assert data["vendors"]["total"] == 1
    assert data["vendors"]["byStatus"]["PENDING_APPROVAL"] == 1
    assert data["recentPending"][0]["id"] == pending_vendor.id
