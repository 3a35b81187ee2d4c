import os
import re
import time

# Configure the app before anything imports authflow.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ["RESET_PASSWORD_URL"] = "http://testserver/reset-password"
os.environ.pop("LOG_FILE", None)
for var in ("EMAIL_SENDER", "EMAIL_PASSWORD", "SMTP_SERVER"):
    os.environ.pop(var, None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from authflow.database import get_db
from authflow.models import Base
from authflow.notifications import Mailer, get_mailer

PASSWORD = "s3cret-Passw0rd"


class RecordingMailer(Mailer):
    """Keeps every message instead of sending it. Set ``fail`` to simulate a dispatch failure
    and ``delay`` to simulate a slow SMTP server."""

    def __init__(self):
        self.sent = []
        self.fail = False
        self.delay = 0

    def send(self, to, subject, body):
        if self.delay:
            time.sleep(self.delay)
        if self.fail:
            return False
        self.sent.append({"to": to, "subject": subject, "body": body})
        return True

    def last_otp(self):
        return re.search(r"is: (\d{6})", self.sent[-1]["body"]).group(1)

    def last_reset_token(self):
        return re.search(r"/reset-password/([0-9a-f]{64})", self.sent[-1]["body"]).group(1)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def client(session_factory, mailer):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def signup_payload():
    return {
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "password": PASSWORD,
        "age": 36,
        "city": "London",
        "state": "Greater London",
        "mobileNumber": "5551234567",
        "role": "user",
    }


@pytest.fixture
def registered_user(client, mailer, signup_payload):
    """Runs the full signup flow and returns the verify response body."""
    resp = client.post("/auth/signup/initiate", json=signup_payload)
    assert resp.status_code == 200
    resp = client.post(
        "/auth/signup/verify",
        json={"email": signup_payload["email"], "otp": mailer.last_otp()},
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def auth_header():
    def build(access_token):
        return {"Authorization": f"Bearer {access_token}"}
    return build
