"""Notification records — deduplicated creation, fan-out and read state.

Every row carries a deterministic ``dedup_key`` with a unique constraint, so
creation is idempotent even when two scans overlap: the key is checked first,
and a uniqueness violation on insert is treated as "already exists".
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.base import utcnow
from app.models.notification import Notification, NotificationStatus, NotificationType
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Recipient:
    """Plain snapshot of an admin principal, safe to hold across commits."""

    id: uuid.UUID
    tenant_id: int
    email: str


def make_dedup_key(
    notification_type: str,
    recipient_id: uuid.UUID | str,
    entity_id: str | None,
    due_date: date | None,
) -> str:
    """``type_recipient_entity_day``; one row per tuple, ever."""
    day = due_date.isoformat() if due_date else "no-date"
    return f"{notification_type}_{recipient_id}_{entity_id or 'global'}_{day}"


async def load_admin_recipients(
    session: AsyncSession, tenant_id: int | None = None
) -> list[Recipient]:
    """Active admins, optionally limited to one tenant."""
    stmt = select(User).where(
        User.role == UserRole.ADMIN,
        User.is_active.is_(True),  # type: ignore[attr-defined]
    )
    if tenant_id is not None:
        stmt = stmt.where(User.tenant_id == tenant_id)
    result = await session.execute(stmt)
    return [
        Recipient(id=u.id, tenant_id=u.tenant_id, email=u.email)
        for u in result.scalars().all()
    ]


async def create_notification_if_absent(
    session: AsyncSession,
    recipient: Recipient,
    *,
    notification_type: NotificationType,
    title: str,
    message: str,
    due_date: date | None = None,
    link: str | None = None,
    entity_id: str | None = None,
) -> Notification | None:
    """Insert one notification unless its key exists. Returns None on a duplicate."""
    key = make_dedup_key(notification_type, recipient.id, entity_id, due_date)

    result = await session.execute(
        select(Notification.id).where(Notification.dedup_key == key)
    )
    if result.scalar_one_or_none() is not None:
        return None

    notification = Notification(
        recipient_id=recipient.id,
        tenant_id=recipient.tenant_id,
        type=notification_type,
        title=title,
        message=message,
        due_date=due_date,
        link=link,
        dedup_key=key,
    )
    session.add(notification)
    try:
        await session.commit()
    except IntegrityError:
        # Lost a race with a concurrent scan
        await session.rollback()
        logger.debug("Notification %s already exists", key)
        return None

    # Detach so a later rollback in this session cannot expire it
    session.expunge(notification)
    return notification


async def notify_recipients(
    session: AsyncSession,
    recipients: list[Recipient],
    *,
    notification_type: NotificationType,
    title: str,
    message: str,
    due_date: date | None = None,
    link: str | None = None,
    entity_id: str | None = None,
) -> list[Notification]:
    """Fan one reminder out to every recipient; returns only new rows."""
    created: list[Notification] = []
    for recipient in recipients:
        notification = await create_notification_if_absent(
            session,
            recipient,
            notification_type=notification_type,
            title=title,
            message=message,
            due_date=due_date,
            link=link,
            entity_id=entity_id,
        )
        if notification is not None:
            created.append(notification)
    return created


# ── Reading and read state ──────────────────────────────────

async def list_notifications(
    session: AsyncSession,
    recipient_id: uuid.UUID,
    tenant_id: int,
    *,
    status: NotificationStatus | None = None,
    notification_type: NotificationType | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Notification], int]:
    """Newest first, with the unpaginated total."""
    filters = [
        Notification.recipient_id == recipient_id,
        Notification.tenant_id == tenant_id,
    ]
    if status is not None:
        filters.append(Notification.status == status)
    if notification_type is not None:
        filters.append(Notification.type == notification_type)

    total = (
        await session.execute(select(func.count()).select_from(Notification).where(*filters))
    ).scalar_one()
    stmt = (
        select(Notification)
        .where(*filters)
        .order_by(Notification.created_at.desc())  # type: ignore[attr-defined]
        .limit(limit)
        .offset(offset)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def count_unread(session: AsyncSession, recipient_id: uuid.UUID, tenant_id: int) -> int:
    stmt = select(func.count()).select_from(Notification).where(
        Notification.recipient_id == recipient_id,
        Notification.tenant_id == tenant_id,
        Notification.status == NotificationStatus.UNREAD,
    )
    return (await session.execute(stmt)).scalar_one()


async def mark_read(
    session: AsyncSession,
    notification_id: uuid.UUID,
    recipient_id: uuid.UUID,
    tenant_id: int,
) -> Notification | None:
    """Flip one notification to read. None when missing or not the caller's."""
    stmt = select(Notification).where(
        Notification.id == notification_id,
        Notification.recipient_id == recipient_id,
        Notification.tenant_id == tenant_id,
    )
    notification = (await session.execute(stmt)).scalar_one_or_none()
    if notification is None:
        return None
    if notification.status != NotificationStatus.READ:
        notification.status = NotificationStatus.READ
        notification.updated_at = utcnow()
        session.add(notification)
        await session.commit()
        await session.refresh(notification)
    return notification


async def mark_all_read(session: AsyncSession, recipient_id: uuid.UUID, tenant_id: int) -> int:
    """Flip every unread notification of one recipient in one tenant."""
    stmt = (
        update(Notification)
        .where(
            Notification.recipient_id == recipient_id,
            Notification.tenant_id == tenant_id,
            Notification.status == NotificationStatus.UNREAD,
        )
        .values(status=NotificationStatus.READ, updated_at=utcnow())
    )
    result = await session.execute(stmt)
    await session.commit()
    return result.rowcount or 0
