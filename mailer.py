"""
Outgoing e-mail.

Delivery is mocked: messages are written to the log using the SMTP settings from
config.py. Returns False instead of raising so a mail failure never fails the request.
"""
import logging
from typing import Optional

from pydantic import BaseModel

import config

logger = logging.getLogger("artisan_store.mailer")


class EmailOptions(BaseModel):
    to: str
    subject: str
    text: str
    html: Optional[str] = None


def send_email(options: EmailOptions) -> bool:
    try:
        logger.info(
            "Email via %s:%s from %s to %s | %s",
            config.SMTP_HOST,
            config.SMTP_PORT,
            config.SMTP_USER or config.SUPPORT_EMAIL,
            options.to,
            options.subject,
        )
        logger.debug("Email body:\n%s", options.text)
        return True
    except Exception:
        logger.exception("Email sending failed")
        return False


def support_notification(name: str, email: str, phone: Optional[str], message: str,
                         subject: Optional[str] = None) -> EmailOptions:
    body = (
        f"Name: {name}\n"
        f"Email: {email}\n"
        f"Phone: {phone or 'Not provided'}\n"
        f"\n"
        f"Message:\n{message}\n"
    )
    if subject:
        body = f"Subject: {subject}\n" + body
    return EmailOptions(
        to=config.SUPPORT_EMAIL,
        subject=f"New Support Message from {name}",
        text=body,
    )
