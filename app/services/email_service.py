import logging
import re
from typing import List, Optional, Union

import requests

from app.config import settings
from app.schemas.cart_schemas import CartLine
from app.utils.template import render_template

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"


def is_valid_email(email):
    if isinstance(email, list):
        return all(is_valid_email(e) for e in email)

    if not email:
        return False

    return re.match(r"[^@]+@[^@]+\.[^@]+", email) is not None


def send_email(
    to: Union[str, List[str]],
    subject: str,
    html: str,
    reply_to: Optional[str] = None,
) -> bool:
    """
    Send email via Brevo.

    Returns False instead of raising, callers treat email as best effort.
    """
    if isinstance(to, list):
        valid_emails = [e for e in to if is_valid_email(e)]
    else:
        valid_emails = [to] if is_valid_email(to) else []

    if not valid_emails:
        logger.warning(f"No valid emails found: {to}")
        return False

    if not settings.BREVO_API_KEY:
        logger.warning("BREVO_API_KEY not configured, skipping email")
        return False

    payload = {
        "sender": {
            "email": settings.MAIL_FROM,
            "name": settings.STORE_NAME,
        },
        "to": [{"email": e} for e in valid_emails],
        "subject": subject,
        "htmlContent": html,
    }
    if reply_to and is_valid_email(reply_to):
        payload["replyTo"] = {"email": reply_to}

    headers = {
        "api-key": settings.BREVO_API_KEY,
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(
            BREVO_API_URL,
            json=payload,
            headers=headers,
            timeout=10,
        )

        if response.status_code >= 400:
            logger.error(
                f"Brevo email failed ({response.status_code}): {response.text}"
            )
            return False

        logger.info(f"Brevo email sent to {valid_emails}")
        return True

    except requests.RequestException:
        logger.exception("Brevo email exception")
        return False


def send_order_notification(order: dict, lines: List[CartLine]) -> bool:
    """Tell the store admins about a new order."""
    recipients = settings.order_notify_emails
    if not recipients:
        logger.warning("ORDER_NOTIFY_EMAILS not configured, order notification skipped")
        return False

    try:
        html = render_template(
            "admin_emails/new_order.html",
            order=order,
            lines=lines,
            store_name=settings.STORE_NAME,
            currency=settings.CURRENCY_SYMBOL,
        )

        return send_email(
            to=recipients,
            subject=f"New Order Received #{order['id']} from {order['customer_name']}",
            html=html,
            reply_to=order.get("customer_email"),
        )
    except Exception:
        # runs in a background task
        logger.exception(f"Order notification failed for order {order.get('id')}")
        return False


def send_contact_message(name: str, email: str, message: str) -> bool:
    recipients = settings.order_notify_emails
    if not recipients:
        logger.warning("ORDER_NOTIFY_EMAILS not configured, contact message skipped")
        return False

    html = render_template(
        "admin_emails/contact_message.html",
        name=name,
        email=email,
        message=message,
        store_name=settings.STORE_NAME,
    )
    return send_email(
        to=recipients,
        subject=f"New message from {name}",
        html=html,
        reply_to=email,
    )
