## Setup Libraries
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


## Specify the User Data to work with
class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String)
    age = Column(Integer, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    mobile_number = Column(String, nullable=True)
    role = Column(String, default="user")
    refresh_token = Column(String, nullable=True)               # The single active refresh token
    # Set together and cleared together
    reset_password_token = Column(String, nullable=True, index=True)  # sha256 hex of the reset token
    reset_password_expires = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class OTPRecord(Base):
    __tablename__ = "otp_records"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)   # One live OTP per email
    otp = Column(String, nullable=False)                               # The 6-digit OTP
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False)


class PendingSignup(Base):
    """Unconfirmed registration data, keyed by the signup session cookie."""
    __tablename__ = "pending_signups"
    session_id = Column(String, primary_key=True)
    email = Column(String, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    name = Column(String)
    age = Column(Integer, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    mobile_number = Column(String, nullable=True)
    role = Column(String, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
