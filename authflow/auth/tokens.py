## Setup Dependencies
import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError

from ..config import (
    ALGORITHM, JWT_ACCESS_SECRET, JWT_REFRESH_SECRET,
    ACCESS_TOKEN_EXPIRE_MINUTES, REFRESH_TOKEN_EXPIRE_DAYS,
)
from ..errors import InvalidAccessToken, InvalidRefreshToken

ACCESS = "access"
REFRESH = "refresh"


def _create_token(user_id: int, token_type: str, secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": str(user_id),
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
        # Makes tokens minted within the same second distinct
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    return _create_token(
        user_id, ACCESS, JWT_ACCESS_SECRET,
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    return _create_token(
        user_id, REFRESH, JWT_REFRESH_SECRET,
        expires_delta or timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
    )


def _decode(token: str, secret: str, token_type: str, error):
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        raise error()
    if payload.get("type") != token_type:
        raise error()
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise error()


def decode_access_token(token: str) -> int:
    """Returns the user id carried by a valid access token."""
    return _decode(token, JWT_ACCESS_SECRET, ACCESS, InvalidAccessToken)


def decode_refresh_token(token: str) -> int:
    """Returns the user id carried by a valid refresh token."""
    return _decode(token, JWT_REFRESH_SECRET, REFRESH, InvalidRefreshToken)
