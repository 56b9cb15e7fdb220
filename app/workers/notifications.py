"""Periodic jobs — daily expiry scans and the notification digest."""

from __future__ import annotations

import logging

from app.core.database import async_session_factory
from app.services.digest import send_daily_digest
from app.services.email import get_email_sender
from app.services.expiry_checks import run_all_expiry_checks

logger = logging.getLogger(__name__)


async def run_expiry_checks(ctx: dict) -> dict:
    """ARQ task: run every expiry scan once."""
    report = await run_all_expiry_checks(async_session_factory)
    return report.as_dict()


async def send_notification_digest(ctx: dict) -> dict:
    """ARQ task: hand today's notifications to the email sender.

    Tests may inject a sender via ``ctx["email_sender"]``.
    """
    sender = ctx.get("email_sender") or get_email_sender()
    sent = await send_daily_digest(async_session_factory, sender)
    return {"digests_sent": sent}


async def run_daily_notifications(ctx: dict) -> dict:
    """Cron job: scans first, then the digest. Digest failure does not fail the run."""
    result = await run_expiry_checks(ctx)
    try:
        result.update(await send_notification_digest(ctx))
    except Exception as exc:
        logger.exception("Daily digest failed")
        result["digest_error"] = str(exc)
    return result
