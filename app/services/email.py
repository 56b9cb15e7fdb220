"""Email handoff for notification digests.

The core never formats or transmits mail itself: a digest is handed to an
``EmailSender``. ``HttpEmailSender`` posts it to an email relay API;
``LogOnlyEmailSender`` is used when no relay is configured.
"""

import json
import logging
from typing import Protocol

import httpx

from app.core.config import Settings, get_settings
from app.models.notification import Notification

logger = logging.getLogger(__name__)


class EmailSender(Protocol):
    async def send_digest(self, recipient_email: str, rows: list[Notification]) -> None: ...


def digest_payload(recipient_email: str, rows: list[Notification]) -> dict:
    return {
        "to": recipient_email,
        "notifications": [
            {
                "type": str(n.type),
                "title": n.title,
                "message": n.message,
                "due_date": n.due_date.isoformat() if n.due_date else None,
                "link": n.link,
            }
            for n in rows
        ],
    }


class HttpEmailSender:
    """Posts a JSON digest to an email relay. Raises on transport/HTTP errors."""

    def __init__(self, api_url: str, api_key: str = "", sender: str = "", client_url: str = "") -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self.client_url = client_url

    async def send_digest(self, recipient_email: str, rows: list[Notification]) -> None:
        payload = digest_payload(recipient_email, rows)
        payload["from"] = self.sender
        payload["notifications_url"] = f"{self.client_url}/notifications"
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.post(
                self.api_url,
                content=json.dumps(payload, default=str),
                headers=headers,
            )
            resp.raise_for_status()
        logger.info("Digest with %d notification(s) handed off for %s", len(rows), recipient_email)


class LogOnlyEmailSender:
    """Logs digests instead of sending them."""

    async def send_digest(self, recipient_email: str, rows: list[Notification]) -> None:
        logger.info(
            "Digest (not sent, no email relay configured): %d notification(s) for %s",
            len(rows),
            recipient_email,
        )


def get_email_sender(settings: Settings | None = None) -> EmailSender:
    settings = settings or get_settings()
    if not settings.email_api_url:
        return LogOnlyEmailSender()
    return HttpEmailSender(
        settings.email_api_url,
        api_key=settings.email_api_key,
        sender=settings.email_from,
        client_url=settings.client_url,
    )
