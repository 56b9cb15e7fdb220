"""Tests for the daily expiry scans and the inline employee check."""

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func
from sqlmodel import select

from app.core.config import VatFilingFrequency
from app.models.contract import Contract, ContractStatus
from app.models.employee import Employee
from app.models.invoice import Invoice, InvoiceStatus
from app.models.notification import Notification, NotificationType
from app.models.tenant import Tenant
from app.models.user import User, UserRole
from app.services.expiry_checks import (
    check_contract_expiries,
    check_employee_expiries_immediate,
    check_insurance_expiries,
    check_invoice_due,
    check_license_expiry,
    check_passport_expiries,
    check_vat_due,
    next_vat_deadline,
    run_all_expiry_checks,
)
from app.services.notifications import Recipient, load_admin_recipients

TODAY = date(2026, 3, 1)


def _in(days: int) -> date:
    return TODAY + timedelta(days=days)


async def _setup(session) -> dict[int, Recipient]:
    """Tenant 1 and tenant 2, one admin each, plus a staff member in tenant 1."""
    session.add(Tenant(id=2, name="Other Co"))
    users = [
        User(external_id="idp|a1", email="admin@one.com", role=UserRole.ADMIN, tenant_id=1),
        User(external_id="idp|a2", email="admin@two.com", role=UserRole.ADMIN, tenant_id=2),
        User(external_id="idp|s1", email="staff@one.com", role=UserRole.STAFF, tenant_id=1),
    ]
    session.add_all(users)
    await session.commit()
    return {r.tenant_id: r for r in await load_admin_recipients(session)}


async def _employee(session, name: str = "Sara Khan", tenant_id: int = 1, **dates) -> Employee:
    employee = Employee(full_name=name, tenant_id=tenant_id, **dates)
    session.add(employee)
    await session.commit()
    return employee


async def _notifications(session, notification_type: NotificationType) -> list[Notification]:
    result = await session.execute(
        select(Notification).where(Notification.type == notification_type)
    )
    return list(result.scalars().all())


# ── VAT deadline ────────────────────────────────────────────

@pytest.mark.parametrize(
    "today, expected",
    [
        (date(2026, 3, 1), date(2026, 3, 28)),
        (date(2026, 3, 28), date(2026, 3, 28)),
        (date(2026, 3, 29), date(2026, 4, 28)),
        (date(2026, 12, 30), date(2027, 1, 28)),
    ],
)
def test_next_vat_deadline_monthly(today, expected):
    assert next_vat_deadline(today) == expected


@pytest.mark.parametrize(
    "today, expected",
    [
        (date(2026, 1, 10), date(2026, 1, 28)),
        (date(2026, 2, 10), date(2026, 4, 28)),
        (date(2026, 4, 28), date(2026, 4, 28)),
        (date(2026, 11, 30), date(2027, 1, 28)),
    ],
)
def test_next_vat_deadline_quarterly(today, expected):
    assert next_vat_deadline(today, 28, VatFilingFrequency.QUARTERLY) == expected


def test_next_vat_deadline_custom_filing_day():
    assert next_vat_deadline(date(2026, 3, 16), filing_day=15) == date(2026, 4, 15)


@pytest.mark.asyncio
async def test_vat_reminder_goes_to_every_admin(session):
    admins = await _setup(session)
    recipients = list(admins.values())

    assert await check_vat_due(session, recipients, date(2026, 3, 20)) == []  # 8 days out
    created = await check_vat_due(session, recipients, date(2026, 3, 21))  # 7 days out
    assert {n.recipient_id for n in created} == {r.id for r in recipients}
    assert all(n.due_date == date(2026, 3, 28) for n in created)
    assert all("_vat_2026-03_" in n.dedup_key for n in created)

    # Next day is still in the band but deduplicated
    assert await check_vat_due(session, recipients, date(2026, 3, 22)) == []


# ── Document, contract, license and invoice scans ───────────

@pytest.mark.asyncio
async def test_passport_window_and_tenant_fan_out(session):
    admins = await _setup(session)
    for offset in (-1, 0, 30, 60, 61):
        await _employee(session, f"Emp {offset}", passport_expiry=_in(offset))
    await _employee(session, "Other tenant", tenant_id=2, passport_expiry=_in(10))

    created = await check_passport_expiries(session, list(admins.values()), TODAY)

    ours = [n for n in created if n.tenant_id == 1]
    assert sorted(n.due_date for n in ours) == [_in(0), _in(30), _in(60)]
    assert all(n.recipient_id == admins[1].id for n in ours)

    theirs = [n for n in created if n.tenant_id == 2]
    assert [n.recipient_id for n in theirs] == [admins[2].id]
    assert theirs[0].title == "Passport Expiring Soon"
    assert theirs[0].link.startswith("/hr/employees/")


@pytest.mark.asyncio
async def test_insurance_window(session):
    admins = await _setup(session)
    for offset in (-1, 0, 45, 60, 61):
        await _employee(session, f"Emp {offset}", insurance_expiry=_in(offset))

    created = await check_insurance_expiries(session, list(admins.values()), TODAY)
    assert sorted(n.due_date for n in created) == [_in(0), _in(45), _in(60)]
    assert {n.type for n in created} == {NotificationType.INSURANCE_EXPIRY}
    assert created[0].title == "Insurance Expiring Soon"
    assert all("_employee_" in n.dedup_key for n in created)

    assert await check_passport_expiries(session, list(admins.values()), TODAY) == []
    # Second run is deduplicated
    assert await check_insurance_expiries(session, list(admins.values()), TODAY) == []


@pytest.mark.asyncio
async def test_contract_band_is_narrow(session):
    admins = await _setup(session)
    employee = await _employee(session)
    for offset in (28, 29, 30, 31):
        session.add(
            Contract(
                contract_number=f"C-{offset}",
                employee_id=employee.id,
                tenant_id=1,
                start_date=date(2025, 1, 1),
                end_date=_in(offset),
                status=ContractStatus.ACTIVE,
            )
        )
    session.add(
        Contract(
            contract_number="C-term",
            employee_id=employee.id,
            tenant_id=1,
            start_date=date(2025, 1, 1),
            end_date=_in(29),
            status=ContractStatus.TERMINATED,
        )
    )
    await session.commit()

    created = await check_contract_expiries(session, list(admins.values()), TODAY)
    assert sorted(n.due_date for n in created) == [_in(29), _in(30)]
    assert all("Sara Khan" in n.message for n in created)

    # Idempotent on re-run
    assert await check_contract_expiries(session, list(admins.values()), TODAY) == []


@pytest.mark.asyncio
async def test_license_expiry(session):
    admins = await _setup(session)
    recipients = list(admins.values())

    assert await check_license_expiry(session, recipients, TODAY, None) == []
    assert await check_license_expiry(session, recipients, TODAY, _in(31)) == []

    created = await check_license_expiry(session, recipients, TODAY, _in(30))
    assert len(created) == 2
    assert all("_license_global_" in n.dedup_key for n in created)


@pytest.mark.asyncio
async def test_invoice_due_skips_closed_invoices(session):
    admins = await _setup(session)
    cases = [
        ("INV-1", 6, InvoiceStatus.SENT),
        ("INV-2", 7, InvoiceStatus.OVERDUE),
        ("INV-3", 6, InvoiceStatus.PAID),
        ("INV-4", 6, InvoiceStatus.CANCELLED),
        ("INV-5", 8, InvoiceStatus.SENT),
        ("INV-6", 5, InvoiceStatus.DRAFT),
    ]
    for number, offset, status in cases:
        session.add(
            Invoice(
                invoice_number=number,
                customer_name="Customer",
                tenant_id=1,
                due_date=_in(offset),
                status=status,
                total=Decimal("105.00"),
            )
        )
    await session.commit()

    created = await check_invoice_due(session, list(admins.values()), TODAY)
    assert sorted(n.title for n in created) == [
        "Invoice INV-1 is due soon",
        "Invoice INV-2 is due soon",
    ]


# ── Batch run ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_run_all_is_idempotent(session, test_session_factory):
    await _setup(session)
    await _employee(session, visa_expiry=_in(20), passport_expiry=_in(45))

    first = await run_all_expiry_checks(test_session_factory, today=TODAY, license_expiry=_in(30))
    assert first.errors == {}
    assert first.created["passport"] == 1
    assert first.created["visa"] == 1
    assert first.created["license"] == 2

    second = await run_all_expiry_checks(test_session_factory, today=TODAY, license_expiry=_in(30))
    assert second.total_created == 0
    assert second.errors == {}


@pytest.mark.asyncio
async def test_failing_scan_does_not_stop_the_others(session, test_session_factory):
    await _setup(session)
    await _employee(session, visa_expiry=_in(20), passport_expiry=_in(45))

    with patch(
        "app.services.expiry_checks.check_visa_expiries",
        AsyncMock(side_effect=RuntimeError("visa table unavailable")),
    ):
        report = await run_all_expiry_checks(test_session_factory, today=TODAY, license_expiry=None)

    assert report.errors == {"visa": "visa table unavailable"}
    assert report.created["visa"] == 0
    assert report.created["passport"] == 1
    assert set(report.created) == {
        "passport", "visa", "insurance", "contract", "license", "vat", "invoice"
    }
    assert report.as_dict()["total_created"] == report.total_created


@pytest.mark.asyncio
async def test_run_all_reports_recipient_failure(test_session_factory):
    with patch(
        "app.services.expiry_checks.load_admin_recipients",
        AsyncMock(side_effect=RuntimeError("users unavailable")),
    ):
        report = await run_all_expiry_checks(test_session_factory, today=TODAY)
    assert report.errors == {"recipients": "users unavailable"}
    assert report.created == {}


# ── Inline check on employee writes ─────────────────────────

@pytest.mark.asyncio
async def test_immediate_check_shares_keys_with_daily_scan(session, test_session_factory):
    admins = await _setup(session)
    employee = await _employee(session, passport_expiry=_in(10), visa_expiry=_in(90))

    created = await check_employee_expiries_immediate(session, employee, today=TODAY)
    assert [(n.type, n.recipient_id) for n in created] == [
        (NotificationType.PASSPORT_EXPIRY, admins[1].id)
    ]

    report = await run_all_expiry_checks(test_session_factory, today=TODAY, license_expiry=None)
    assert report.created["passport"] == 0
    assert len(await _notifications(session, NotificationType.PASSPORT_EXPIRY)) == 1


@pytest.mark.asyncio
async def test_immediate_check_without_dates(session):
    await _setup(session)
    employee = await _employee(session)
    assert await check_employee_expiries_immediate(session, employee, today=TODAY) == []


@pytest.mark.asyncio
async def test_immediate_check_swallows_failures(session):
    await _setup(session)
    employee = await _employee(session, visa_expiry=_in(5))

    with patch(
        "app.services.expiry_checks.load_admin_recipients",
        AsyncMock(side_effect=RuntimeError("boom")),
    ):
        assert await check_employee_expiries_immediate(session, employee, today=TODAY) == []

    count = (await session.execute(select(func.count()).select_from(Notification))).scalar_one()
    assert count == 0


@pytest.mark.asyncio
async def test_immediate_check_covers_insurance(session):
    admins = await _setup(session)
    employee = await _employee(session, insurance_expiry=_in(15))

    created = await check_employee_expiries_immediate(session, employee, today=TODAY)
    assert [(n.type, n.recipient_id) for n in created] == [
        (NotificationType.INSURANCE_EXPIRY, admins[1].id)
    ]
