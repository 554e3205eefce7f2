import logging
from email.message import EmailMessage

import aiosmtplib

from app.config import settings

logger = logging.getLogger(__name__)

SMTPS_PORT = 465


def build_message(to: str, subject: str, text: str, html: str | None = None) -> EmailMessage:
    """Plain-text message with an optional HTML alternative."""
    message = EmailMessage()
    message["From"] = settings.SMTP_FROM_EMAIL
    message["To"] = to
    message["Subject"] = subject
    message.set_content(text)
    if html is not None:
        message.add_alternative(html, subtype="html")
    return message


async def send_email(message: EmailMessage) -> bool:
    """Deliver over SMTP. Failures are logged; callers get False."""
    recipient = message["To"]
    if not settings.SMTP_HOST:
        logger.warning("SMTP_HOST is empty, skipping email to %s", recipient)
        return False

    implicit_tls = settings.SMTP_PORT == SMTPS_PORT
    try:
        await aiosmtplib.send(
            message,
            hostname=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME or None,
            password=settings.SMTP_PASSWORD or None,
            use_tls=implicit_tls,
            start_tls=not implicit_tls,
        )
    except (aiosmtplib.SMTPException, OSError):
        logger.exception("SMTP delivery to %s failed", recipient)
        return False

    logger.info("Sent %r to %s", message["Subject"], recipient)
    return True


async def send_password_reset_otp(to: str, otp: str) -> bool:
    minutes = settings.PASSWORD_RESET_TTL_SECONDS // 60
    text = (
        f"Your Aiki password reset code is {otp}.\n"
        f"It expires in {minutes} minutes. "
        "If you did not ask to reset your password, ignore this message."
    )
    html = (
        "<h2>Reset your Aiki password</h2>"
        f"<p>Your one-time code is <strong style=\"letter-spacing: 4px\">{otp}</strong>.</p>"
        f"<p>It expires in {minutes} minutes.</p>"
        "<p>If you did not ask to reset your password, ignore this message.</p>"
    )
    return await send_email(build_message(to, "Your Aiki password reset code", text, html))
