"""Outbound email for new contact-form inquiries (Resend)."""

from __future__ import annotations

import asyncio
import html
import logging
from typing import Any, Dict, Optional

import resend

from config import settings

logger = logging.getLogger(__name__)


def notifications_configured() -> bool:
    return bool(settings.RESEND_API_KEY and settings.INQUIRY_NOTIFY_TO)


def render_inquiry_email(inquiry: Dict[str, Any]) -> Dict[str, str]:
    name = html.escape(str(inquiry.get("name", "")))
    email = html.escape(str(inquiry.get("email", "")))
    phone = html.escape(str(inquiry.get("phone") or "Not provided"))
    message = html.escape(str(inquiry.get("message", ""))).replace("\n", "<br>")
    body = (
        "<h2>New contact form submission</h2>"
        f"<p><strong>Name:</strong> {name}</p>"
        f"<p><strong>Age:</strong> {inquiry.get('age', '')}</p>"
        f'<p><strong>Email:</strong> <a href="mailto:{email}">{email}</a></p>'
        f"<p><strong>Phone:</strong> {phone}</p>"
        f"<p><strong>Message:</strong><br>{message}</p>"
    )
    text = (
        f"Name: {inquiry.get('name', '')}\n"
        f"Age: {inquiry.get('age', '')}\n"
        f"Email: {inquiry.get('email', '')}\n"
        f"Phone: {inquiry.get('phone') or 'Not provided'}\n\n"
        f"{inquiry.get('message', '')}\n\n"
        f"Reply to: {inquiry.get('email', '')}"
    )
    return {
        "subject": f"New Contact Form Submission from {inquiry.get('name', '')}",
        "html": body,
        "text": text,
    }


def send_inquiry_email(inquiry: Dict[str, Any]) -> Optional[str]:
    """Send the notification synchronously. Returns the Resend email id."""
    resend.api_key = settings.RESEND_API_KEY
    rendered = render_inquiry_email(inquiry)
    result = resend.Emails.send(
        {
            "from": settings.INQUIRY_NOTIFY_FROM,
            "to": [settings.INQUIRY_NOTIFY_TO],
            "reply_to": inquiry.get("email"),
            **rendered,
        }
    )
    return result.get("id") if isinstance(result, dict) else None


async def deliver_inquiry_notification(inquiry: Dict[str, Any]) -> None:
    """Background task: send and log; never raises."""
    if not notifications_configured():
        logger.info("Inquiry notifications not configured; skipping email for %s", inquiry.get("id"))
        return
    try:
        email_id = await asyncio.to_thread(send_inquiry_email, inquiry)
        logger.info("Inquiry notification sent for %s (email_id=%s)", inquiry.get("id"), email_id)
    except Exception:
        logger.exception("Inquiry notification failed for %s", inquiry.get("id"))
