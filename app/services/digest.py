"""Daily digest — today's notifications grouped per recipient."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.models.base import day_bounds_utc, local_today
from app.models.notification import Notification
from app.models.user import User
from app.services.email import EmailSender

logger = logging.getLogger(__name__)


@dataclass
class DigestBatch:
    recipient_email: str
    rows: list[Notification]


async def collect_daily_digest(
    session: AsyncSession, day: date, tz_name: str | None = None
) -> list[DigestBatch]:
    """Notifications created during ``day`` (local), newest first, per recipient."""
    start, end = day_bounds_utc(day, tz_name or get_settings().business_timezone)
    stmt = (
        select(Notification, User.email)
        .join(User, User.id == Notification.recipient_id)
        .where(Notification.created_at >= start, Notification.created_at < end)
        .order_by(Notification.created_at.desc())  # type: ignore[attr-defined]
    )
    result = await session.execute(stmt)

    batches: dict[str, DigestBatch] = {}
    for notification, email in result.all():
        if not email:
            continue
        batch = batches.setdefault(email, DigestBatch(recipient_email=email, rows=[]))
        batch.rows.append(notification)
    return list(batches.values())


async def send_daily_digest(
    session_factory: Callable[[], AsyncSession],
    sender: EmailSender,
    day: date | None = None,
) -> int:
    """Hand each recipient's digest to ``sender``. Returns batches handed off."""
    day = day or local_today(get_settings().business_timezone)
    async with session_factory() as session:
        batches = await collect_daily_digest(session, day)

    if not batches:
        logger.info("No notifications for %s, no digest sent", day)
        return 0

    sent = 0
    for batch in batches:
        try:
            await sender.send_digest(batch.recipient_email, batch.rows)
            sent += 1
        except Exception:
            logger.exception("Digest handoff failed for %s", batch.recipient_email)
    logger.info("Daily digest for %s: %d of %d recipient(s)", day, sent, len(batches))
    return sent
