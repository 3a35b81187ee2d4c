## Setup Libraries
import logging
import os
from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv

## Load the .env file before anything reads the environment
load_dotenv()


def _as_bool(value, default=False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


## Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./auth.db")

## Tokens (access and refresh are signed with distinct secrets)
JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "change-me-access")
JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "change-me-refresh")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15"))
REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7"))

## Signup / OTP
OTP_EXPIRE_MINUTES = int(os.getenv("OTP_EXPIRE_MINUTES", "5"))
PENDING_SIGNUP_EXPIRE_MINUTES = int(os.getenv("PENDING_SIGNUP_EXPIRE_MINUTES", str(24 * 60)))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "signup_session")
SESSION_COOKIE_SECURE = _as_bool(os.getenv("SESSION_COOKIE_SECURE"), default=False)

## Password reset
PASSWORD_RESET_TOKEN_EXPIRE_MINUTES = int(os.getenv("PASSWORD_RESET_TOKEN_EXPIRE_MINUTES", "10"))
RESET_PASSWORD_URL = os.getenv("RESET_PASSWORD_URL", "http://localhost:3000/reset-password")

## Email (SMTP). Leave EMAIL_SENDER / EMAIL_PASSWORD / SMTP_SERVER unset to simulate sends.
EMAIL_SENDER = os.getenv("EMAIL_SENDER")
EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD")
SMTP_SERVER = os.getenv("SMTP_SERVER")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_TIMEOUT = float(os.getenv("SMTP_TIMEOUT", "10"))

## HTTP
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

## Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(module)s:%(lineno)d] %(message)s"


def configure_logging():
    """Attach a stream handler (and a rotating file handler when LOG_FILE is set) to the package logger."""
    logger = logging.getLogger("authflow")
    if logger.handlers:
        return logger
    logger.setLevel(LOG_LEVEL)

    formatter = logging.Formatter(LOG_FORMAT)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if LOG_FILE:
        log_dir = os.path.dirname(os.path.abspath(LOG_FILE))
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(LOG_FILE, maxBytes=1024 * 1024, backupCount=5)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    return logger
