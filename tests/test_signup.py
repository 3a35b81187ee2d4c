from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Query

from authflow.auth.auth_handler import save_otp, verify_password
from authflow.models import OTPRecord, PendingSignup, User


def test_initiate_signup_sends_otp_and_sets_session_cookie(client, mailer, signup_payload, session_factory):
    resp = client.post("/auth/signup/initiate", json=signup_payload)

    assert resp.status_code == 200
    assert resp.json() == {"message": "OTP sent successfully", "email": "ada@example.com"}
    assert "signup_session" in resp.cookies
    assert len(mailer.sent) == 1
    assert mailer.sent[0]["to"] == "ada@example.com"

    with session_factory() as db:
        record = db.query(OTPRecord).filter_by(email="ada@example.com").one()
        assert record.otp == mailer.last_otp()
        pending = db.query(PendingSignup).one()
        assert pending.email == "ada@example.com"
        assert pending.hashed_password != signup_payload["password"]


def test_verify_creates_user_with_hashed_password(client, mailer, signup_payload, session_factory):
    client.post("/auth/signup/initiate", json=signup_payload)
    resp = client.post("/auth/signup/verify", json={"email": "ada@example.com", "otp": mailer.last_otp()})

    assert resp.status_code == 201
    body = resp.json()
    assert body["email"] == "ada@example.com"
    assert body["name"] == "Ada Lovelace"
    assert body["accessToken"]
    assert body["refreshToken"]

    with session_factory() as db:
        user = db.query(User).one()
        assert user.id == body["id"]
        assert user.hashed_password != signup_payload["password"]
        assert verify_password(signup_payload["password"], user.hashed_password)
        assert user.refresh_token == body["refreshToken"]
        assert user.mobile_number == "5551234567"
        # OTP and pending signup are consumed
        assert db.query(OTPRecord).count() == 0
        assert db.query(PendingSignup).count() == 0


def test_verify_with_wrong_code_creates_no_user(client, mailer, signup_payload, session_factory):
    client.post("/auth/signup/initiate", json=signup_payload)
    wrong = "000000" if mailer.last_otp() != "000000" else "111111"

    resp = client.post("/auth/signup/verify", json={"email": "ada@example.com", "otp": wrong})

    assert resp.status_code == 400
    assert resp.json()["error"] == "INVALID_OTP"
    with session_factory() as db:
        assert db.query(User).count() == 0


def test_verify_without_pending_signup(client, mailer, signup_payload):
    client.post("/auth/signup/initiate", json=signup_payload)
    otp = mailer.last_otp()
    client.cookies.clear()

    resp = client.post("/auth/signup/verify", json={"email": "ada@example.com", "otp": otp})

    assert resp.status_code == 400
    assert resp.json()["error"] == "NO_PENDING_SIGNUP"


def test_verify_rejects_expired_otp(client, mailer, signup_payload, session_factory):
    client.post("/auth/signup/initiate", json=signup_payload)
    with session_factory() as db:
        db.query(OTPRecord).update({"expires_at": datetime.now(timezone.utc) - timedelta(seconds=1)})
        db.commit()

    resp = client.post("/auth/signup/verify", json={"email": "ada@example.com", "otp": mailer.last_otp()})

    assert resp.status_code == 400
    assert resp.json()["error"] == "INVALID_OTP"


def test_verify_rejects_email_other_than_the_pending_one(client, mailer, signup_payload):
    client.post("/auth/signup/initiate", json=signup_payload)

    resp = client.post("/auth/signup/verify", json={"email": "eve@example.com", "otp": mailer.last_otp()})

    assert resp.status_code == 400
    assert resp.json()["error"] == "INVALID_OTP"


def test_second_initiate_replaces_the_otp(client, mailer, signup_payload, session_factory):
    client.post("/auth/signup/initiate", json=signup_payload)
    client.post("/auth/signup/initiate", json=signup_payload)

    with session_factory() as db:
        records = db.query(OTPRecord).filter_by(email="ada@example.com").all()
        assert len(records) == 1
        assert records[0].otp == mailer.last_otp()
        # same session cookie, so still a single pending signup
        assert db.query(PendingSignup).count() == 1


def test_initiate_for_registered_email_fails(client, registered_user, signup_payload):
    resp = client.post("/auth/signup/initiate", json=signup_payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "ALREADY_EXISTS", "message": "User already exists"}


def test_initiate_reports_notification_failure(client, mailer, signup_payload, session_factory):
    mailer.fail = True

    resp = client.post("/auth/signup/initiate", json=signup_payload)

    assert resp.status_code == 500
    assert resp.json() == {"error": "NOTIFICATION_FAILURE", "message": "Failed to send OTP"}
    with session_factory() as db:
        assert db.query(PendingSignup).count() == 0


def test_initiate_rejects_short_password(client, signup_payload):
    signup_payload["password"] = "short"

    resp = client.post("/auth/signup/initiate", json=signup_payload)

    assert resp.status_code == 400
    assert resp.json()["error"] == "VALIDATION_ERROR"


def test_verify_rejects_expired_pending_signup(client, mailer, signup_payload, session_factory):
    client.post("/auth/signup/initiate", json=signup_payload)
    with session_factory() as db:
        db.query(PendingSignup).update({"expires_at": datetime.now(timezone.utc) - timedelta(seconds=1)})
        db.commit()

    resp = client.post("/auth/signup/verify", json={"email": "ada@example.com", "otp": mailer.last_otp()})

    assert resp.status_code == 400
    assert resp.json()["error"] == "NO_PENDING_SIGNUP"


def test_expired_signup_rows_are_purged(client, signup_payload, session_factory):
    for n in range(5):
        client.cookies.clear()
        client.post("/auth/signup/initiate", json=dict(signup_payload, email=f"user{n}@example.com"))
    two_days_ago = datetime.now(timezone.utc) - timedelta(days=2)
    with session_factory() as db:
        db.query(PendingSignup).update({"expires_at": two_days_ago})
        db.query(OTPRecord).update({"expires_at": two_days_ago})
        db.commit()

    client.cookies.clear()
    resp = client.post("/auth/signup/initiate", json=signup_payload)

    assert resp.status_code == 200
    with session_factory() as db:
        assert db.query(PendingSignup).count() == 1
        assert [r.email for r in db.query(OTPRecord).all()] == ["ada@example.com"]


def test_save_otp_recovers_when_a_concurrent_insert_wins(session_factory, monkeypatch):
    real_first = Query.first
    future = datetime.now(timezone.utc) + timedelta(minutes=5)

    def first_after_competing_insert(query):
        # Another request inserts the row between our SELECT and our INSERT
        monkeypatch.setattr(Query, "first", real_first)
        with session_factory() as other:
            other.add(OTPRecord(email="ada@example.com", otp="111111", expires_at=future))
            other.commit()
        return None

    with session_factory() as db:
        monkeypatch.setattr(Query, "first", first_after_competing_insert)
        save_otp(db, "ada@example.com", "222222")

    with session_factory() as db:
        records = db.query(OTPRecord).filter_by(email="ada@example.com").all()
        assert len(records) == 1
        assert records[0].otp == "222222"
