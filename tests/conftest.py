"""
Shared fixtures: in-memory SQLite, a fake payment gateway and email sender,
and a TestClient wired to both through the application context.
"""
import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.context import build_context
from app.core.errors import PaymentGatewayError
from app.core.rate_limit import login_limiter
from app.core.security import USER_TOKEN, VENDOR_TOKEN, create_access_token, hash_password
from app.db.base import Base
from app.db.models.plan import Plan
from app.db.models.user import User, UserRole
from app.db.models.vendor import OnboardingStatus, Vendor, VendorProfile
from app.db.session import get_db
from app.main import create_app
from app.services.plan_service import seed_plans
from app.services.storage import LocalUploadStorage


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

COMPLETE_PROFILE = {
    "description": "Wedding photography across Bangladesh",
    "city": "Dhaka",
    "state": "Dhaka Division",
    "years_in_business": 6,
    "team_size": 8,
    "logo": "vendors/logo.png",
    "cover_image": "vendors/cover.jpg",
}


class FakeGateway:
    """Stands in for StripeGateway; session states are set by the test."""

    name = "fake"

    def __init__(self):
        self.created = []
        self.states = {}
        self.fail_create = False

    def create_checkout_session(self, payment_id, vendor_id, vendor_email, plan_code, plan_name,
                                amount, currency, success_url=None, cancel_url=None):
        if self.fail_create:
            raise PaymentGatewayError("Failed to create checkout session")
        session_id = f"cs_test_{payment_id}"
        self.created.append({"session_id": session_id, "amount": amount, "plan_code": plan_code})
        return {"url": f"https://checkout.test/{session_id}", "session_id": session_id}

    def retrieve_session(self, session_id):
        state = self.states.get(session_id, "paid")
        return {"state": state, "raw": {"session_id": session_id, "payment_status": state}}

    def verify_webhook(self, body, signature):
        if signature != "valid-signature":
            raise ValueError("Invalid signature")
        return json.loads(body)


class FakeEmailSender:
    enabled = True

    def __init__(self):
        self.sent = []
        self.failures_left = 0

    def send(self, to, subject, body):
        if self.failures_left > 0:
            self.failures_left -= 1
            raise RuntimeError("SMTP unavailable")
        self.sent.append({"to": to, "subject": subject, "body": body})
        return {"id": f"email_{len(self.sent)}"}


@pytest.fixture(scope="function")
def db():
    """Create a fresh database with the plan catalog for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    seed_plans(db)
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def context(db, gateway, email_sender, tmp_path):
    context = build_context(
        TestSessionLocal,
        gateway=gateway,
        email_sender=email_sender,
        storage=LocalUploadStorage(str(tmp_path)),
    )
    context.start()
    return context


@pytest.fixture
def bus(context):
    return context.bus


@pytest.fixture
def client(context):
    app = create_app(context=context, run_init_db=False)

    def override_get_db():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    login_limiter.reset()
    yield TestClient(app)
    login_limiter.reset()


def make_user(db, email="member@example.com", role=UserRole.USER.value, full_name="Test Member"):
    user = User(full_name=full_name, email=email, password_hash=hash_password("testpass123"), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_vendor(db, email="vendor@example.com", status=OnboardingStatus.REGISTERED, plan_code=None,
                profile=None, business_name="Shapla Studio", is_verified=True):
    vendor = Vendor(
        email=email,
        password_hash=hash_password("testpass123"),
        business_name=business_name,
        owner_name="Karim Ahmed",
        is_verified=is_verified,
        onboarding_status=status.value,
    )
    if plan_code:
        vendor.plan = db.query(Plan).filter(Plan.code == plan_code).one()
    db.add(vendor)
    db.flush()
    if profile is not None:
        db.add(VendorProfile(vendor_id=vendor.id, **profile))
    db.commit()
    db.refresh(vendor)
    return vendor


def auth_header(email, kind=USER_TOKEN):
    token = create_access_token({"sub": email}, kind=kind)
    return {"Authorization": f"Bearer {token}"}


def vendor_header(vendor):
    return auth_header(vendor.email, VENDOR_TOKEN)


@pytest.fixture
def admin(db):
    return make_user(db, email="admin@example.com", role=UserRole.ADMIN.value, full_name="Admin")


@pytest.fixture
def admin_headers(admin):
    return auth_header(admin.email)


@pytest.fixture
def member(db):
    return make_user(db)


@pytest.fixture
def member_headers(member):
    return auth_header(member.email)
