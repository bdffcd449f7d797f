"""SMTP email sender for delivering OTP codes."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Awaitable, Callable

import anyio

from app.core.config import settings

logger = logging.getLogger(__name__)

EmailSender = Callable[[str, str, str], Awaitable[bool]]

OTP_SUBJECT = "Email Verification OTP"


async def send_email(to: str, subject: str, html_body: str) -> bool:
    """Send an HTML email via SMTP and report whether it was accepted.

    The blocking SMTP conversation runs in a worker thread so the event loop
    keeps serving requests. Failures are logged and reported as False.
    """

    def _send() -> None:
        if not all([settings.SMTP_SERVER, settings.SMTP_USERNAME, settings.SMTP_PASSWORD, settings.FROM_EMAIL]):
            raise RuntimeError("SMTP settings are incomplete.")

        message = MIMEMultipart()
        message["From"] = settings.FROM_EMAIL
        message["To"] = to
        message["Subject"] = subject
        message.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(settings.SMTP_SERVER, int(settings.SMTP_PORT), timeout=20) as server:
            server.ehlo()
            server.starttls()
            server.ehlo()
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(message)

    try:
        await anyio.to_thread.run_sync(_send)
    except Exception as exc:  # pragma: no cover - SMTP network path
        logger.warning("email_send_failed", extra={"to": to, "error": str(exc)})
        return False
    logger.info("email_sent", extra={"to": to, "subject": subject})
    return True


def render_otp_email(otp_code: str) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2 style="color: #333; text-align: center;">Email Verification</h2>
        <p>To complete your registration, please use the following One-Time Password (OTP):</p>
        <div style="background-color: #f5f5f5; padding: 15px; text-align: center; font-size: 24px;
                    font-weight: bold; letter-spacing: 5px; margin: 20px 0;">
            {otp_code}
        </div>
        <p>This OTP is valid for {settings.OTP_EXPIRE_MINUTES} minutes.</p>
        <p>If you did not request this verification, please ignore this email.</p>
    </div>
    """


async def send_otp_email(sender: EmailSender, email: str, otp_code: str) -> bool:
    """Deliver an OTP through the given sender."""
    return await sender(email, OTP_SUBJECT, render_otp_email(otp_code))
