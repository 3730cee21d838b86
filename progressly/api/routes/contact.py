"""
Contact Routes
Public contact form. Submissions are emailed to the admin through the Resend API
when it is configured, otherwise they are only logged.
"""
import html
import logging
import os

import requests
from fastapi import APIRouter, HTTPException, status

from progressly.schemas.contact import ContactRequest
from progressly.utils.validation import is_valid_email

logger = logging.getLogger(__name__)

router = APIRouter()

RESEND_API_URL = "https://api.resend.com/emails"
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")  # Receives contact form submissions
SENDER_EMAIL = os.getenv("SENDER_EMAIL", "noreply@progressly.so")
SENDER_NAME = os.getenv("SENDER_NAME", "Progressly")


def send_contact_email(name: str, email: str, subject: str, message: str) -> None:
    """Send the submission to ADMIN_EMAIL. Raises requests.RequestException on failure."""
    email_html = f"""
    <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <h2>New contact form submission</h2>
        <p><strong>From:</strong> {html.escape(name)} ({html.escape(email)})</p>
        <p><strong>Subject:</strong> {html.escape(subject)}</p>
        <p style="white-space: pre-wrap;">{html.escape(message)}</p>
    </div>
    """
    email_text = f"From: {name} ({email})\nSubject: {subject}\n\n{message}\n"

    payload = {
        "from": f"{SENDER_NAME} <{SENDER_EMAIL}>",
        "to": [ADMIN_EMAIL],
        "reply_to": email,
        "subject": f"[Progressly Contact] {subject}",
        "html": email_html,
        "text": email_text,
    }
    headers = {
        "Authorization": f"Bearer {RESEND_API_KEY}",
        "Content-Type": "application/json",
    }
    response = requests.post(RESEND_API_URL, json=payload, headers=headers, timeout=10)
    response.raise_for_status()


@router.post("")
def submit_contact_form(body: ContactRequest):
    fields = (body.name, body.email, body.subject, body.message)
    if not all(field and field.strip() for field in fields):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="All fields are required")
    if not is_valid_email(body.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please provide a valid email address")

    if not RESEND_API_KEY or not ADMIN_EMAIL:
        logger.info("Contact form submission from %s <%s>: %s", body.name, body.email, body.subject)
        return {"success": True}

    try:
        send_contact_email(body.name.strip(), body.email.strip(), body.subject.strip(), body.message.strip())
    except requests.RequestException:
        logger.exception("Failed to send contact email from %s", body.email)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to send message")

    logger.info("Contact form submission from %s forwarded to %s", body.email, ADMIN_EMAIL)
    return {"success": True}
