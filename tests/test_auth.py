"""
Tests for member signup and login.
"""
import pytest

from app.core.errors import RateLimited
from app.core.rate_limit import RateLimiter
from app.db.models.profile import Profile
from app.db.models.user import User
from tests.conftest import auth_header


def test_signup_success(client, db):
    """Test successful member registration."""
    response = client.post("/auth/signup", json={
        "fullName": "Nusrat Jahan",
        "email": "nusrat@example.com",
        "password": "testpass123",
    })

    assert response.status_code == 201
    assert response.json()["message"] == "User created successfully"

    db.expire_all()
    user = db.query(User).filter(User.email == "nusrat@example.com").first()
    assert user is not None
    assert user.role == "user"
    assert user.password_hash != "testpass123"
    assert db.query(Profile).filter(Profile.user_id == user.id).one().display_name == "Nusrat Jahan"


def test_signup_duplicate_email(client, member):
    """Test signup with existing email returns 409."""
    response = client.post("/auth/signup", json={
        "fullName": "Someone Else",
        "email": member.email,
        "password": "testpass123",
    })
    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "Email already registered", "code": "EMAIL_EXISTS"}


@pytest.mark.parametrize("password", ["short", "x" * 73])
def test_signup_password_length(client, password):
    response = client.post("/auth/signup", json={
        "fullName": "Test", "email": "pw@example.com", "password": password,
    })
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_login_success(client, member):
    """Test successful login returns an access token."""
    response = client.post(
        "/auth/login",
        data={"username": member.email, "password": "testpass123"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["data"]["userId"] == member.id

    token = body["access_token"]
    inbox = client.get("/notifications", headers={"Authorization": f"Bearer {token}"})
    assert inbox.status_code == 200


def test_login_wrong_password(client, member):
    response = client.post("/auth/login", data={"username": member.email, "password": "wrongpass"})
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"


def test_login_is_rate_limited(client, member):
    for _ in range(10):
        client.post("/auth/login", data={"username": member.email, "password": "wrongpass"})
    response = client.post("/auth/login", data={"username": member.email, "password": "testpass123"})
    assert response.status_code == 429
    assert response.json()["code"] == "RATE_LIMITED"


def test_rate_limiter_window():
    now = [0.0]
    limiter = RateLimiter(max_requests=2, window_seconds=60, clock=lambda: now[0])
    limiter.check("ip")
    limiter.check("ip")
    with pytest.raises(RateLimited):
        limiter.check("ip")

    now[0] = 61
    limiter.check("ip")
    # Keys are independent
    limiter.check("other-ip")


def test_invalid_and_unknown_tokens(client, db):
    assert client.get("/notifications", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401
    assert client.get("/notifications", headers=auth_header("ghost@example.com")).status_code == 401


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200


def test_make_admin_script(db, member, monkeypatch):
    from scripts import make_admin
    from tests.conftest import TestSessionLocal

    monkeypatch.setattr(make_admin, "SessionLocal", TestSessionLocal)

    assert make_admin.make_admin(member.email) is True
    assert make_admin.make_admin("nobody@example.com") is False
    assert make_admin.make_admin("boss@example.com", "bosspass123") is True

    db.expire_all()
    roles = {u.email: u.role for u in db.query(User).all()}
    assert roles[member.email] == "admin"
    assert roles["boss@example.com"] == "admin"
