import logging
import re

import requests

from payview.config import settings

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"


def is_valid_email(email) -> bool:
    if not email:
        return False
    return re.match(r"^[^\s@]+@[^\s@]+\.[^\s@]+$", email) is not None


def send_email(to: str, subject: str, html: str) -> bool:
    """
    Send a transactional email via Brevo. Fire and forget: failures are
    logged and reported through the return value, never raised.
    """
    if not is_valid_email(to):
        logger.warning(f"Skipping email with invalid recipient: {to}")
        return False

    if not settings.brevo_api_key:
        logger.warning(f"Email to {to} not sent: BREVO_API_KEY is not configured")
        return False

    payload = {
        "sender": {
            "email": settings.mail_from,
            "name": settings.store_name,
        },
        "to": [{"email": to}],
        "subject": subject,
        "htmlContent": html,
    }

    headers = {
        "api-key": settings.brevo_api_key,
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(
            BREVO_API_URL,
            json=payload,
            headers=headers,
            timeout=settings.external_timeout_seconds,
        )
    except requests.RequestException:
        logger.exception("Brevo email exception")
        return False

    if response.status_code >= 400:
        logger.error(f"Brevo email failed ({response.status_code}): {response.text}")
        return False

    logger.info(f"Brevo email sent to {to}")
    return True
