"""
Booking notification emails.

Delivery runs as a background task after the response is sent. A failed send
is logged and dropped: it must never undo or fail the booking it describes.
"""

import logging
from typing import Any, Dict

import resend

logger = logging.getLogger(__name__)


class Notifier:
    def __init__(self, provider: str, from_email: str, api_key: str = ""):
        self.provider = provider
        self.from_email = from_email
        self.api_key = api_key

    def send(self, to_email: str, subject: str, html: str) -> None:
        if self.provider == "console":
            logger.info("Email to %s - Subject: %s", to_email, subject)
            return
        resend.api_key = self.api_key
        resend.Emails.send(
            {
                "from": self.from_email,
                "to": to_email,
                "subject": subject,
                "html": html,
            }
        )
        logger.info("Email sent to %s - Subject: %s", to_email, subject)

    def notify_booking(self, booking: Dict[str, Any]) -> None:
        title = booking.get("title") or "your stay"
        guest = booking.get("guest") or {}
        host = booking.get("host") or {}
        messages = [
            (
                guest.get("email"),
                "Booking Successful!",
                f"<p>You've successfully booked {title} through StayVista. "
                f"Transaction Id: {booking.get('transaction_id')}</p>",
            ),
            (
                host.get("email"),
                "Your room got booked!",
                f"<p>Get ready to welcome {guest.get('name') or guest.get('email')} to {title}.</p>",
            ),
        ]
        for to_email, subject, html in messages:
            if not to_email:
                continue
            try:
                self.send(to_email, subject, html)
            except Exception:
                logger.exception("Failed to send booking email to %s", to_email)
