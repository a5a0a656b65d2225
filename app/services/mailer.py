# app/services/mailer.py
import logging
import smtplib
from email.message import EmailMessage

from fastapi.concurrency import run_in_threadpool

from app.config import settings

logger = logging.getLogger(__name__)

RESET_SUBJECT = "AbleSpace - Password Reset OTP"

RESET_TEMPLATE = """\
<div style="font-family: 'Segoe UI', Tahoma, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #667eea; text-align: center;">AbleSpace</h1>
  <h2 style="text-align: center;">Password Reset OTP</h2>
  <p>Hi <strong>{name}</strong>,</p>
  <p>We received a request to reset your password. Use the OTP below to reset your password:</p>
  <p style="text-align: center; font-size: 32px; font-weight: bold; letter-spacing: 8px;">{otp}</p>
  <p style="color: #888; text-align: center;">
    This OTP will expire in <strong>{minutes} minutes</strong>.<br>
    If you didn't request this, please ignore this email.
  </p>
  <p style="color: #aaa; font-size: 12px; text-align: center;">Do not share this OTP with anyone.</p>
</div>
"""


def send_email(to_addr: str, subject: str, html_body: str) -> None:
    """Blocking SMTP send. Raises smtplib.SMTPException / OSError on failure."""
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.EMAIL_HOST_USER
    msg["To"] = to_addr
    msg.set_content("Please view this email in an HTML-compatible email client.")
    msg.add_alternative(html_body, subtype="html")

    if settings.EMAIL_USE_SSL:
        with smtplib.SMTP_SSL(settings.EMAIL_HOST, settings.EMAIL_PORT, timeout=30) as server:
            server.login(settings.EMAIL_HOST_USER, settings.EMAIL_HOST_PASSWORD)
            server.send_message(msg)
    else:
        with smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT, timeout=30) as server:
            server.starttls()
            server.login(settings.EMAIL_HOST_USER, settings.EMAIL_HOST_PASSWORD)
            server.send_message(msg)


async def send_password_reset_otp(to_addr: str, name: str, otp: str) -> bool:
    """Returns False when SMTP is not configured and nothing was sent."""
    if not settings.email_enabled:
        logger.warning("Email delivery is not configured; password reset OTP for %s not sent", to_addr)
        return False
    html = RESET_TEMPLATE.format(name=name, otp=otp, minutes=settings.RESET_OTP_EXPIRE_MINUTES)
    await run_in_threadpool(send_email, to_addr, RESET_SUBJECT, html)
    logger.info("Password reset OTP sent to %s", to_addr)
    return True
