import os

# Configure before msme_passport is imported: the settings are cached on first use
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MAINTENANCE_CRON_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["MAILGUN_API_KEY"] = ""
os.environ["MAILGUN_DOMAIN"] = ""
os.environ["SENDGRID_API_KEY"] = ""
os.environ["SERVER_BASE_URL"] = "http://testserver"

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from msme_passport.database import Base, get_db
from msme_passport.dependencies import get_now
from msme_passport.main import app
from msme_passport.models import BusinessProfile, MainAffiliate, PaymentStatus, ReviewStatus, SecondaryAffiliate, User
from msme_passport.seed import seed_affiliates
from msme_passport.services.auth import create_access_token, get_password_hash

from factories import NOW

PASSWORD = "secret1"

COMPLETE_PROFILE = {
    "phone_number": "+60 12-345 6789",
    "date_of_birth": "1990-05-17",
    "gender": "female",
    "ic_document": "data:image/png;base64,aWMtZnJvbnQ=",
}


class Clock:
    """Mutable stand-in for get_now."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    seed_affiliates(session)
    yield session
    session.close()


@pytest.fixture
def clock():
    return Clock(NOW)


@pytest.fixture
def outbox(monkeypatch):
    """Records every email the routers try to send instead of calling a provider."""
    sent = []

    def recorder(kind):
        def _send(to_email, *args):
            sent.append({"kind": kind, "to": to_email, "args": args})
            return True
        return _send

    monkeypatch.setattr("msme_passport.routers.auth.send_verification_email", recorder("verification"))
    monkeypatch.setattr(
        "msme_passport.routers.collaborations.send_collaboration_invitation_email", recorder("invitation")
    )
    monkeypatch.setattr("msme_passport.routers.admin.send_business_verified_email", recorder("business_verified"))
    monkeypatch.setattr("msme_passport.routers.admin.send_business_rejected_email", recorder("business_rejected"))
    return sent


@pytest.fixture
def client(session_factory, db, clock, outbox):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = clock
    # No context manager: startup (create_all on the real engine, scheduler) stays off
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(email, *, complete=True, verified=True, admin=False, email_verified=True, **fields):
        values = {"first_name": "Siti", "last_name": "Rahman"}
        if complete:
            values.update(COMPLETE_PROFILE)
        values.update(fields)
        user = User(
            email=email,
            hashed_password=get_password_hash(PASSWORD),
            email_verified=email_verified,
            verified=verified,
            is_admin=admin,
            **values,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}
    return _headers


@pytest.fixture
def main_affiliate(db):
    return db.query(MainAffiliate).filter(MainAffiliate.name == "Malay Chambers").one()


@pytest.fixture
def secondary_affiliates(db):
    return db.query(SecondaryAffiliate).order_by(SecondaryAffiliate.name).all()


@pytest.fixture
def business_payload(main_affiliate):
    def _payload(**overrides):
        payload = {
            "business_name": "Kedai Kopi Siti",
            "business_email": "hello@kedaikopi.com.my",
            "category": "Food & Beverage",
            "address": "12 Jalan Sultan, Bandar Seri Begawan",
            "phone": "+673 222 3344",
            "website": "https://kedaikopi.com.my",
            "tagline": "Kopi since 1998",
            "business_registration_number": "RC/2019/0042",
            "owner_name": ["Siti Rahman", "Ahmad Rahman"],
            "year_established": "1998",
            "number_of_employees": "1-10",
            "primary_affiliate_id": main_affiliate.id,
            "registration_certificate_documents": ["data:application/pdf;base64,cmVnLWNlcnQ="],
        }
        payload.update(overrides)
        return payload
    return _payload


@pytest.fixture
def create_business(client, auth_headers, business_payload):
    """Create a business through the API for `owner`; returns the response JSON."""
    def _create(owner, **overrides):
        r = client.post("/businesses", json=business_payload(**overrides), headers=auth_headers(owner))
        assert r.status_code == 201, r.text
        return r.json()
    return _create


@pytest.fixture
def set_review(db):
    """Put a stored business directly into a review/payment state."""
    def _set(business_id, review_status=ReviewStatus.verified, payment_status=PaymentStatus.paid):
        db.expire_all()
        business = db.get(BusinessProfile, business_id)
        business.review_status = review_status
        business.payment_status = payment_status
        db.commit()
        return business
    return _set
