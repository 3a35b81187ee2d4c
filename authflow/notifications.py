## Setup Libraries
import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from . import config

logger = logging.getLogger(__name__)


class Mailer:
    """Sends a single email. ``send`` returns True when the message was handed off."""

    def send(self, to: str, subject: str, body: str) -> bool:
        raise NotImplementedError


class SmtpMailer(Mailer):
    def __init__(self, sender: str, password: str, server: str, port: int = 587, timeout: float = 10):
        self.sender = sender
        self.password = password
        self.server = server
        self.port = port
        self.timeout = timeout

    def send(self, to: str, subject: str, body: str) -> bool:
        msg = MIMEMultipart()
        msg['From'] = self.sender
        msg['To'] = to
        msg['Subject'] = subject
        msg.attach(MIMEText(body, 'plain'))

        try:
            with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as server:
                server.starttls() # Secure the connection
                server.login(self.sender, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Error sending email to %s: %s", to, e)
            return False
        logger.info("Email sent successfully to %s", to)
        return True


class ConsoleMailer(Mailer):
    """Logs the email instead of sending it. Used when SMTP is not configured."""

    def send(self, to: str, subject: str, body: str) -> bool:
        logger.warning("Email sending configuration missing, SIMULATING EMAIL TO: %s (%s)", to, subject)
        # The body carries codes and reset links, so it only shows with LOG_LEVEL=DEBUG
        logger.debug("Simulated email body:\n%s", body)
        return True


def get_mailer() -> Mailer:
    if config.EMAIL_SENDER and config.EMAIL_PASSWORD and config.SMTP_SERVER:
        return SmtpMailer(config.EMAIL_SENDER, config.EMAIL_PASSWORD, config.SMTP_SERVER,
                          config.SMTP_PORT, config.SMTP_TIMEOUT)
    return ConsoleMailer()


def send_otp_email(mailer: Mailer, email: str, otp: str) -> bool:
    """Sends the 6-digit signup verification code."""
    body = (
        f"Hello,\n\nYour 6-digit One-Time Password (OTP) for email verification is: {otp}\n\n"
        f"This OTP is valid for {config.OTP_EXPIRE_MINUTES} minutes.\n\n"
        "Please enter this code on the registration verification page to complete your signup.\n\n"
        "If you did not attempt to register, please ignore this email.\n\n"
        "Thanks,\nYour App Team"
    )
    return mailer.send(email, "Verify Your Email for Registration", body)


def send_reset_password_link(mailer: Mailer, email: str, reset_url: str) -> bool:
    body = (
        f"Hello,\n\nPlease click the following link to reset your password:\n\n"
        f"{reset_url}\n\n"
        f"This link is valid for {config.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES} minutes.\n\n"
        "If you did not request this, please ignore this email.\n\n"
        "Thanks,\nYour App Team"
    )
    return mailer.send(email, "Your Password Reset Link", body)
