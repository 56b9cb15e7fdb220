"""Notification inbox — every route is scoped to the caller and their tenant."""

import uuid

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from app.api.deps import Admin, Auth, Session
from app.core.database import async_session_factory
from app.models.notification import (
    NotificationPage,
    NotificationRead,
    NotificationStatus,
    NotificationType,
)
from app.services import notifications as notification_service
from app.services.expiry_checks import run_all_expiry_checks

router = APIRouter(prefix="/notifications", tags=["notifications"])


class UnreadCount(BaseModel):
    unread: int


class MarkAllReadResult(BaseModel):
    updated: int


@router.get("", response_model=NotificationPage)
async def list_notifications(
    auth: Auth,
    session: Session,
    status_filter: NotificationStatus | None = Query(default=None, alias="status"),
    type_filter: NotificationType | None = Query(default=None, alias="type"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> NotificationPage:
    rows, total = await notification_service.list_notifications(
        session,
        auth.user_id,
        auth.tenant_id,
        status=status_filter,
        notification_type=type_filter,
        limit=limit,
        offset=offset,
    )
    return NotificationPage(
        notifications=[NotificationRead.model_validate(n) for n in rows],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(auth: Auth, session: Session) -> UnreadCount:
    count = await notification_service.count_unread(session, auth.user_id, auth.tenant_id)
    return UnreadCount(unread=count)


@router.patch("/read-all", response_model=MarkAllReadResult)
async def mark_all_read(auth: Auth, session: Session) -> MarkAllReadResult:
    updated = await notification_service.mark_all_read(session, auth.user_id, auth.tenant_id)
    return MarkAllReadResult(updated=updated)


@router.patch("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(notification_id: uuid.UUID, auth: Auth, session: Session) -> NotificationRead:
    """Only the recipient can mark a notification read; anyone else gets 404."""
    notification = await notification_service.mark_read(
        session, notification_id, auth.user_id, auth.tenant_id
    )
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return NotificationRead.model_validate(notification)


@router.post("/run-checks")
async def run_checks(_: Admin) -> dict:
    """Run the daily expiry scans now, outside the cron schedule."""
    report = await run_all_expiry_checks(async_session_factory)
    return report.as_dict()
