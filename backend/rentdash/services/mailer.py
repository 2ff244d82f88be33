"""
Mail delivery through the Resend HTTP API.
"""
import logging
from typing import List, Optional

import httpx

from rentdash.config import get_settings

logger = logging.getLogger(__name__)


class MailerNotConfigured(Exception):
    """A required mail setting (API key, recipient) is missing."""


class MailSendError(Exception):
    """The mail API rejected the message or could not be reached."""


def _json_object(resp: httpx.Response) -> dict:
    """Response body as a dict; empty when it is not a JSON object."""
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def split_recipients(value: str) -> List[str]:
    """Split a comma-separated address list, dropping blanks."""
    return [r.strip() for r in str(value or "").split(",") if r.strip()]


async def send_email(to: str, subject: str, html: str, sender: Optional[str] = None) -> dict:
    """
    Send one HTML email.

    Args:
        to: Comma-separated recipient list
        subject: Subject line
        html: HTML body
        sender: From address (defaults to REPORT_EMAIL_FROM)

    Returns:
        The API response body ({"id": ...})
    """
    settings = get_settings()
    if not settings.resend_api_key:
        raise MailerNotConfigured("RESEND_API_KEY not configured")

    recipients = split_recipients(to)
    if not recipients:
        raise MailerNotConfigured("No recipients given")

    body = {
        "from": sender or settings.report_email_from,
        "to": recipients,
        "subject": subject,
        "html": html,
    }
    headers = {
        "Authorization": f"Bearer {settings.resend_api_key}",
        "Content-Type": "application/json",
    }

    try:
        async with httpx.AsyncClient(timeout=15) as client:
            resp = await client.post(settings.resend_api_url, json=body, headers=headers)
    except httpx.HTTPError as e:
        logger.error(f"[MAIL] Request failed: {e}")
        raise MailSendError(f"Send failed: {e}") from e

    if resp.status_code >= 400:
        detail = _json_object(resp).get("message") or resp.text
        logger.error(f"[MAIL] Resend returned {resp.status_code}: {detail}")
        raise MailSendError(str(detail))

    data = _json_object(resp)
    logger.info(f"[MAIL] Sent '{subject}' to {', '.join(recipients)} (id={data.get('id')})")
    return data
