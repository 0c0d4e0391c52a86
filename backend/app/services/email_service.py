"""
Transactional email service.

Supported providers:
1. console: writes the message to the application log (development and tests)
2. sendgrid: SendGrid v3 mail/send HTTP API

Every send either completes or raises DispatchFailure.
"""
import logging
from html import escape
from typing import Optional
import httpx
from app.core.config import settings
from app.core.exceptions import DispatchFailure

logger = logging.getLogger(__name__)


async def _deliver(
    to_email: str,
    subject: str,
    text: str,
    html: Optional[str] = None,
    reply_to: Optional[str] = None
) -> None:
    """Send one message through the configured provider."""
    provider = settings.EMAIL_PROVIDER

    if provider == "console":
        logger.info(f"[console email] To: {to_email} | Subject: {subject}\n{text}")
        return

    if provider != "sendgrid":
        logger.error(f"Unknown EMAIL_PROVIDER '{provider}'")
        raise DispatchFailure()

    content = [{"type": "text/plain", "value": text}]
    if html:
        content.append({"type": "text/html", "value": html})
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": settings.EMAIL_FROM, "name": settings.EMAIL_FROM_NAME},
        "subject": subject,
        "content": content,
    }
    if reply_to:
        payload["reply_to"] = {"email": reply_to}

    try:
        async with httpx.AsyncClient(timeout=settings.EMAIL_TIMEOUT_SECONDS) as client:
            response = await client.post(
                settings.EMAIL_API_URL,
                headers={
                    "Authorization": f"Bearer {settings.EMAIL_API_KEY}",
                    "Content-Type": "application/json"
                },
                json=payload
            )
    except httpx.TimeoutException as exc:
        logger.error(f"Email API request timed out sending '{subject}' to {to_email}")
        raise DispatchFailure() from exc
    except httpx.HTTPError as exc:
        logger.error(f"Error sending '{subject}' to {to_email}: {exc}", exc_info=True)
        raise DispatchFailure() from exc

    if response.status_code >= 300:
        logger.error(f"Email API error {response.status_code}: {response.text}")
        raise DispatchFailure()

    logger.debug(f"Sent '{subject}' to {to_email}")


async def send_otp_email(email: str, name: str, otp: str) -> None:
    """Send the account verification code."""
    subject = f"Your {settings.APP_NAME} verification code"
    text = (
        f"Welcome to {settings.APP_NAME}, {name}!\n\n"
        f"Your verification code is: {otp}\n\n"
        f"This code will expire in {settings.OTP_EXPIRE_MINUTES} minutes.\n\n"
        "If you didn't create this account, please ignore this email."
    )
    html = (
        f"<h2>Welcome to {settings.APP_NAME}, {escape(name)}!</h2>"
        "<p>Use the code below to verify your email address:</p>"
        f"<p style=\"font-size: 28px; font-weight: bold; letter-spacing: 6px;\">{otp}</p>"
        f"<p>This code will expire in {settings.OTP_EXPIRE_MINUTES} minutes.</p>"
        "<p>If you didn't create this account, please ignore this email.</p>"
    )
    await _deliver(email, subject, text, html)


async def send_password_reset_email(email: str, name: str, token: str) -> None:
    """Send a password reset link."""
    reset_url = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password/{token}"
    minutes = settings.PASSWORD_RESET_EXPIRE_MINUTES
    subject = f"Reset your {settings.APP_NAME} password"
    text = (
        f"Hello {name},\n\n"
        "We received a request to reset your password. Open the link below to choose a new one:\n\n"
        f"{reset_url}\n\n"
        f"This link will expire in {minutes} minutes.\n\n"
        "If you didn't request a password reset, please ignore this email."
    )
    html = (
        f"<p>Hello {escape(name)},</p>"
        "<p>We received a request to reset your password.</p>"
        f"<p><a href=\"{reset_url}\">Reset Password</a></p>"
        f"<p>This link will expire in {minutes} minutes.</p>"
    )
    await _deliver(email, subject, text, html)


async def send_contact_email(
    name: str,
    email: str,
    subject: str,
    message: str,
    issue_type: str
) -> None:
    """Forward a contact form submission to the support inbox."""
    text = (
        "New contact form submission\n\n"
        f"Name: {name}\n"
        f"Email: {email}\n"
        f"Issue Type: {issue_type}\n"
        f"Subject: {subject}\n\n"
        f"{message}"
    )
    await _deliver(
        settings.CONTACT_EMAIL,
        f"[{settings.APP_NAME} Contact] {subject} - {issue_type}",
        text,
        reply_to=email
    )
