"""
Shared fixtures: in-memory database, test client and captured outgoing email.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.core.exceptions import DispatchFailure
from app.models.user import User  # noqa: F401
from app.models.trip import Trip, TripShare  # noqa: F401
from app.services import email_service

PASSWORD = "secret1"


class Outbox:
    """Collects messages instead of sending them."""

    def __init__(self):
        self.messages = []
        self.fail = False

    def record(self, kind: str, to: str, **fields):
        if self.fail:
            raise DispatchFailure()
        self.messages.append({"kind": kind, "to": to, **fields})

    def last(self, kind: str, to: str = None) -> dict:
        for message in reversed(self.messages):
            if message["kind"] == kind and (to is None or message["to"] == to):
                return message
        raise AssertionError(f"No {kind} message sent to {to}")

    def last_otp(self, email: str) -> str:
        return self.last("otp", email)["otp"]


@pytest.fixture
def outbox(monkeypatch):
    box = Outbox()

    async def fake_send_otp_email(email, name, otp):
        box.record("otp", email, name=name, otp=otp)

    async def fake_send_password_reset_email(email, name, token):
        box.record("reset", email, name=name, token=token)

    async def fake_send_contact_email(name, email, subject, message, issue_type):
        box.record("contact", "support", name=name, email=email, subject=subject,
                   message=message, issue_type=issue_type)

    monkeypatch.setattr(email_service, "send_otp_email", fake_send_otp_email)
    monkeypatch.setattr(email_service, "send_password_reset_email", fake_send_password_reset_email)
    monkeypatch.setattr(email_service, "send_contact_email", fake_send_contact_email)
    return box


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory, outbox):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client, outbox):
    """Register and verify a user over HTTP; returns auth headers."""
    def _signup(email: str, name: str = "Traveller", password: str = PASSWORD) -> dict:
        response = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password}
        )
        assert response.status_code == 201, response.json()
        response = client.post(
            "/api/auth/verify-otp",
            json={"email": email, "otp": outbox.last_otp(email.lower())}
        )
        assert response.status_code == 200, response.json()
        token = response.json()["data"]["token"]
        return {"Authorization": f"Bearer {token}"}
    return _signup
