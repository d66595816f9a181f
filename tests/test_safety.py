"""
Tests for member blocks, profile reports and photo privacy.
"""
import pytest

from app.db.models.profile import Photo, Profile
from app.services import safety_service
from tests.conftest import auth_header, make_user


@pytest.fixture
def other(db):
    user = make_user(db, email="rahim@example.com", full_name="Rahim")
    db.add(Profile(user_id=user.id, display_name="Rahim"))
    db.commit()
    return user


@pytest.fixture
def other_profile(db, other):
    return db.query(Profile).filter(Profile.user_id == other.id).one()


def test_block_and_unblock(client, db, member, member_headers, other):
    response = client.post("/blocks", json={"blockedUserId": other.id, "reason": "Rude"}, headers=member_headers)
    assert response.status_code == 201
    assert response.json()["data"]["alreadyBlocked"] is False
    assert safety_service.is_blocked_between(db, other.id, member.id)

    again = client.post("/blocks", json={"blockedUserId": other.id}, headers=member_headers)
    assert again.json()["data"]["alreadyBlocked"] is True
    assert again.json()["message"] == "User is already blocked"

    listed = client.get("/blocks", headers=member_headers).json()["data"]
    assert [b["blockedUserId"] for b in listed] == [other.id]

    assert client.delete(f"/blocks/{other.id}", headers=member_headers).status_code == 200
    assert client.delete(f"/blocks/{other.id}", headers=member_headers).status_code == 404
    assert not safety_service.is_blocked_between(db, member.id, other.id)


def test_cannot_block_self_or_unknown_user(client, member, member_headers):
    assert client.post("/blocks", json={"blockedUserId": member.id}, headers=member_headers).status_code == 400
    assert client.post("/blocks", json={"blockedUserId": 9999}, headers=member_headers).status_code == 404


def test_report_profile_once_while_pending(client, member_headers, other_profile):
    body = {"reportedProfileId": other_profile.id, "reason": "Fake profile", "details": "Stock photos"}

    first = client.post("/reports", json=body, headers=member_headers)
    assert first.status_code == 201
    assert first.json()["data"]["status"] == "pending"
    assert first.json()["data"]["duplicate"] is False

    second = client.post("/reports", json=body, headers=member_headers)
    assert second.json()["data"]["duplicate"] is True
    assert second.json()["data"]["id"] == first.json()["data"]["id"]


def test_report_validation(client, db, member, member_headers, other_profile):
    bad_reason = client.post("/reports", json={"reportedProfileId": other_profile.id, "reason": "Bored"},
                             headers=member_headers)
    assert bad_reason.status_code == 400

    own = Profile(user_id=member.id, display_name="Me")
    db.add(own)
    db.commit()
    self_report = client.post("/reports", json={"reportedProfileId": own.id, "reason": "Spam or scam"},
                              headers=member_headers)
    assert self_report.status_code == 400


def test_admin_reviews_report(client, db, context, member, member_headers, admin_headers, other_profile):
    report = client.post("/reports", json={"reportedProfileId": other_profile.id, "reason": "Harassment or Abuse"},
                         headers=member_headers).json()["data"]

    # Members cannot see or change reports
    assert client.get("/admin/reports", headers=member_headers).status_code == 403
    assert client.put(f"/admin/reports/{report['id']}", json={"status": "actioned"},
                      headers=member_headers).status_code == 403

    listed = client.get("/admin/reports?status=pending", headers=admin_headers).json()["data"]
    assert listed["pagination"]["total"] == 1

    reviewed = client.put(f"/admin/reports/{report['id']}", json={"status": "actioned", "adminNotes": "Banned"},
                          headers=admin_headers)
    assert reviewed.json()["data"]["status"] == "actioned"
    assert reviewed.json()["data"]["reviewedBy"] is not None

    back_to_pending = client.put(f"/admin/reports/{report['id']}", json={"status": "pending"},
                                 headers=admin_headers)
    assert back_to_pending.status_code == 400

    context.dispatcher.drain()
    inbox = client.get("/notifications", headers=member_headers).json()["data"]
    assert [n["type"] for n in inbox["items"]] == ["report_reviewed"]

    read = client.put(f"/notifications/{inbox['items'][0]['id']}/read", headers=member_headers)
    assert read.json()["data"]["isRead"] is True
    assert client.get("/notifications", headers=member_headers).json()["data"]["unreadCount"] == 0


def test_photo_privacy(client, db, other, other_profile):
    headers = auth_header(other.email)
    assert client.get("/privacy", headers=headers).json()["data"] == {"photoPrivacy": "connections"}

    db.add_all([Photo(profile_id=other_profile.id, object_key="p/1.jpg"),
                Photo(profile_id=other_profile.id, object_key="p/2.jpg")])
    db.commit()

    response = client.put("/privacy/photos", json={"privacyLevel": "request"}, headers=headers)
    assert response.json()["data"] == {"privacyLevel": "request", "photosUpdated": 2}
    assert client.get("/privacy", headers=headers).json()["data"] == {"photoPrivacy": "request"}

    invalid = client.put("/privacy/photos", json={"privacyLevel": "everyone"}, headers=headers)
    assert invalid.status_code == 400
