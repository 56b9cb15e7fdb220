"""Tests for the daily notification digest."""

from datetime import date

import pytest

from app.core.config import get_settings
from app.models.base import local_today
from app.models.notification import NotificationType
from app.models.user import User, UserRole
from app.services.digest import collect_daily_digest, send_daily_digest
from app.services.email import LogOnlyEmailSender, digest_payload
from app.services.notifications import Recipient, notify_recipients


class _RecordingSender:
    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.sent: dict[str, int] = {}

    async def send_digest(self, recipient_email, rows):
        if recipient_email in self.fail_for:
            raise ConnectionError("relay unavailable")
        self.sent[recipient_email] = len(rows)


async def _seed(session) -> list[Recipient]:
    users = [
        User(external_id="idp|a", email="a@acme.com", role=UserRole.ADMIN, tenant_id=1),
        User(external_id="idp|b", email="b@acme.com", role=UserRole.ADMIN, tenant_id=1),
    ]
    session.add_all(users)
    await session.commit()
    recipients = [Recipient(u.id, u.tenant_id, u.email) for u in users]

    await notify_recipients(
        session,
        recipients,
        notification_type=NotificationType.LICENSE_EXPIRY,
        title="Trade License Renewal Due",
        message="Your trade license expires soon.",
        due_date=date(2026, 4, 1),
        entity_id="license_global",
    )
    await notify_recipients(
        session,
        recipients[:1],
        notification_type=NotificationType.VAT_DUE,
        title="VAT Filing Due Soon",
        message="VAT must be filed soon.",
        due_date=date(2026, 3, 28),
        entity_id="vat_2026-03",
    )
    return recipients


def _today() -> date:
    return local_today(get_settings().business_timezone)


@pytest.mark.asyncio
async def test_collect_groups_by_recipient(session):
    await _seed(session)

    batches = await collect_daily_digest(session, _today())
    by_email = {b.recipient_email: b for b in batches}
    assert set(by_email) == {"a@acme.com", "b@acme.com"}
    assert len(by_email["a@acme.com"].rows) == 2
    assert len(by_email["b@acme.com"].rows) == 1

    payload = digest_payload("b@acme.com", by_email["b@acme.com"].rows)
    assert payload["notifications"][0]["type"] == "license_expiry"
    assert payload["notifications"][0]["due_date"] == "2026-04-01"


@pytest.mark.asyncio
async def test_collect_ignores_other_days(session):
    await _seed(session)
    assert await collect_daily_digest(session, date(2020, 1, 1)) == []


@pytest.mark.asyncio
async def test_one_failing_recipient_does_not_block_others(session, test_session_factory):
    await _seed(session)
    sender = _RecordingSender(fail_for={"a@acme.com"})

    sent = await send_daily_digest(test_session_factory, sender)
    assert sent == 1
    assert sender.sent == {"b@acme.com": 1}


@pytest.mark.asyncio
async def test_nothing_to_send(test_session_factory):
    sender = _RecordingSender()
    assert await send_daily_digest(test_session_factory, sender) == 0
    assert sender.sent == {}


@pytest.mark.asyncio
async def test_log_only_sender(session, test_session_factory):
    await _seed(session)
    assert await send_daily_digest(test_session_factory, LogOnlyEmailSender()) == 2
