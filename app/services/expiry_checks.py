"""Expiry and due-date scans that materialize reminder notifications.

Each scan reads one kind of date, decides which items fall inside its
trigger band (days until the date, counted in calendar days in the business
timezone) and fans a reminder out to the pre-fetched admin recipients of the
owning tenant. All scans are idempotent through the notification dedup key.

| scan      | band (days until) |
|-----------|-------------------|
| passport  | 0 – 60            |
| visa      | 0 – 60            |
| insurance | 0 – 60            |
| contract  | 29 – 30           |
| license   | 29 – 30           |
| vat       | 6 – 7             |
| invoice   | 6 – 7             |
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import VatFilingFrequency, get_settings
from app.core.database import async_session_factory
from app.models.base import local_today
from app.models.contract import Contract, ContractStatus
from app.models.employee import Employee
from app.models.invoice import CLOSED_INVOICE_STATUSES, Invoice
from app.models.notification import Notification, NotificationType
from app.services.notifications import Recipient, load_admin_recipients, notify_recipients

logger = logging.getLogger(__name__)

DOCUMENT_WINDOW = (0, 60)
CONTRACT_BAND = (29, 30)
LICENSE_BAND = (29, 30)
VAT_BAND = (6, 7)
INVOICE_BAND = (6, 7)

_UNSET = object()


def days_until(target: date, today: date) -> int:
    return (target - today).days


def in_band(target: date, today: date, band: tuple[int, int]) -> bool:
    low, high = band
    return low <= days_until(target, today) <= high


def _fmt(day: date) -> str:
    return day.strftime("%d %b %Y")


def _for_tenant(recipients: list[Recipient], tenant_id: int) -> list[Recipient]:
    return [r for r in recipients if r.tenant_id == tenant_id]


def next_vat_deadline(
    today: date,
    filing_day: int = 28,
    frequency: VatFilingFrequency = VatFilingFrequency.MONTHLY,
) -> date:
    """Next filing deadline; rolls forward once the filing day has passed."""
    if frequency is VatFilingFrequency.QUARTERLY:
        quarter_start = (today.month - 1) // 3 * 3 + 1
        deadline = date(today.year, quarter_start, filing_day)
        while deadline < today:
            deadline = _add_months(deadline, 3)
        return deadline

    deadline = today.replace(day=filing_day)
    if today.day > filing_day:
        deadline = _add_months(deadline, 1)
    return deadline


def _add_months(day: date, months: int) -> date:
    # filing_day <= 28, so the day always exists
    month_index = day.month - 1 + months
    return day.replace(year=day.year + month_index // 12, month=month_index % 12 + 1)


# ── Individual scans ────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class _EmployeeDoc:
    id: uuid.UUID
    tenant_id: int
    full_name: str
    expiry: date


async def _notify_documents(
    session: AsyncSession,
    recipients: list[Recipient],
    docs: list[_EmployeeDoc],
    notification_type: NotificationType,
    label: str,
    today: date,
) -> list[Notification]:
    created: list[Notification] = []
    for doc in docs:
        if not in_band(doc.expiry, today, DOCUMENT_WINDOW):
            continue
        created += await notify_recipients(
            session,
            _for_tenant(recipients, doc.tenant_id),
            notification_type=notification_type,
            title=f"{label} Expiring Soon",
            message=f"{label} for {doc.full_name} expires on {_fmt(doc.expiry)}.",
            due_date=doc.expiry,
            link=f"/hr/employees/{doc.id}",
            entity_id=f"employee_{doc.id}",
        )
    return created


async def _employee_docs(
    session: AsyncSession, column_name: str, today: date
) -> list[_EmployeeDoc]:
    column = getattr(Employee, column_name)
    low, high = DOCUMENT_WINDOW
    stmt = select(Employee).where(
        column.is_not(None),
        column >= today + timedelta(days=low),
        column <= today + timedelta(days=high),
    )
    result = await session.execute(stmt)
    return [
        _EmployeeDoc(e.id, e.tenant_id, e.full_name, getattr(e, column_name))
        for e in result.scalars().all()
    ]


async def check_passport_expiries(
    session: AsyncSession, recipients: list[Recipient], today: date
) -> list[Notification]:
    docs = await _employee_docs(session, "passport_expiry", today)
    return await _notify_documents(
        session, recipients, docs, NotificationType.PASSPORT_EXPIRY, "Passport", today
    )


async def check_visa_expiries(
    session: AsyncSession, recipients: list[Recipient], today: date
) -> list[Notification]:
    docs = await _employee_docs(session, "visa_expiry", today)
    return await _notify_documents(
        session, recipients, docs, NotificationType.VISA_EXPIRY, "Visa", today
    )


async def check_insurance_expiries(
    session: AsyncSession, recipients: list[Recipient], today: date
) -> list[Notification]:
    docs = await _employee_docs(session, "insurance_expiry", today)
    return await _notify_documents(
        session, recipients, docs, NotificationType.INSURANCE_EXPIRY, "Insurance", today
    )


async def check_contract_expiries(
    session: AsyncSession, recipients: list[Recipient], today: date
) -> list[Notification]:
    low, high = CONTRACT_BAND
    stmt = (
        select(Contract.id, Contract.tenant_id, Contract.end_date, Employee.full_name)
        .join(Employee, Employee.id == Contract.employee_id, isouter=True)
        .where(
            Contract.status == ContractStatus.ACTIVE,
            Contract.end_date.is_not(None),  # type: ignore[union-attr]
            Contract.end_date >= today + timedelta(days=low),  # type: ignore[operator]
            Contract.end_date <= today + timedelta(days=high),  # type: ignore[operator]
        )
    )
    rows = (await session.execute(stmt)).all()

    created: list[Notification] = []
    for contract_id, tenant_id, end_date, employee_name in rows:
        if not in_band(end_date, today, CONTRACT_BAND):
            continue
        created += await notify_recipients(
            session,
            _for_tenant(recipients, tenant_id),
            notification_type=NotificationType.CONTRACT_EXPIRY,
            title="Contract Ending Soon",
            message=f"Contract for {employee_name or 'Employee'} ends on {_fmt(end_date)}.",
            due_date=end_date,
            link=f"/hr/contracts/{contract_id}",
            entity_id=f"contract_{contract_id}",
        )
    return created


async def check_license_expiry(
    session: AsyncSession,
    recipients: list[Recipient],
    today: date,
    license_expiry: date | None = None,
) -> list[Notification]:
    """Single, process-wide trade-license date; every admin is reminded."""
    if license_expiry is None or not in_band(license_expiry, today, LICENSE_BAND):
        return []
    return await notify_recipients(
        session,
        recipients,
        notification_type=NotificationType.LICENSE_EXPIRY,
        title="Trade License Renewal Due",
        message=f"Your trade license expires on {_fmt(license_expiry)}.",
        due_date=license_expiry,
        link="/settings/license",
        entity_id="license_global",
    )


async def check_vat_due(
    session: AsyncSession,
    recipients: list[Recipient],
    today: date,
    filing_day: int = 28,
    frequency: VatFilingFrequency = VatFilingFrequency.MONTHLY,
) -> list[Notification]:
    deadline = next_vat_deadline(today, filing_day, frequency)
    if not in_band(deadline, today, VAT_BAND):
        return []
    return await notify_recipients(
        session,
        recipients,
        notification_type=NotificationType.VAT_DUE,
        title="VAT Filing Due Soon",
        message=f"VAT must be filed before {_fmt(deadline)}.",
        due_date=deadline,
        link="/vat",
        entity_id=f"vat_{deadline:%Y-%m}",
    )


async def check_invoice_due(
    session: AsyncSession, recipients: list[Recipient], today: date
) -> list[Notification]:
    low, high = INVOICE_BAND
    stmt = select(Invoice.id, Invoice.tenant_id, Invoice.invoice_number, Invoice.due_date).where(
        Invoice.status.not_in(CLOSED_INVOICE_STATUSES),  # type: ignore[attr-defined]
        Invoice.due_date.is_not(None),  # type: ignore[union-attr]
        Invoice.due_date >= today + timedelta(days=low),  # type: ignore[operator]
        Invoice.due_date <= today + timedelta(days=high),  # type: ignore[operator]
    )
    rows = (await session.execute(stmt)).all()

    created: list[Notification] = []
    for invoice_id, tenant_id, number, due_date in rows:
        if not in_band(due_date, today, INVOICE_BAND):
            continue
        created += await notify_recipients(
            session,
            _for_tenant(recipients, tenant_id),
            notification_type=NotificationType.INVOICE_DUE,
            title=f"Invoice {number} is due soon",
            message=f"Invoice {number} is due on {_fmt(due_date)}.",
            due_date=due_date,
            link=f"/invoices/{invoice_id}",
            entity_id=f"invoice_{invoice_id}",
        )
    return created


# ── Batch and inline entrypoints ────────────────────────────

@dataclass
class ExpiryCheckReport:
    """Created-notification counts per scan, and the error of any scan that failed."""

    created: dict[str, int] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def total_created(self) -> int:
        return sum(self.created.values())

    def as_dict(self) -> dict:
        return {
            "created": dict(self.created),
            "errors": dict(self.errors),
            "total_created": self.total_created,
        }


async def run_all_expiry_checks(
    session_factory: Callable[[], AsyncSession] | None = None,
    *,
    today: date | None = None,
    license_expiry: date | None | object = _UNSET,
) -> ExpiryCheckReport:
    """Run every scan in a fixed order. One failing scan never stops the rest."""
    settings = get_settings()
    session_factory = session_factory or async_session_factory
    today = today or local_today(settings.business_timezone)
    if license_expiry is _UNSET:
        license_expiry = settings.license_expiry

    report = ExpiryCheckReport()
    try:
        async with session_factory() as session:
            recipients = await load_admin_recipients(session)
    except Exception as exc:
        logger.exception("Could not load notification recipients")
        report.errors["recipients"] = str(exc)
        return report

    scans: list[tuple[str, Callable]] = [
        ("passport", check_passport_expiries),
        ("visa", check_visa_expiries),
        ("insurance", check_insurance_expiries),
        ("contract", check_contract_expiries),
        ("license", lambda s, r, t: check_license_expiry(s, r, t, license_expiry)),
        (
            "vat",
            lambda s, r, t: check_vat_due(
                s, r, t, settings.vat_filing_day, settings.vat_filing_frequency
            ),
        ),
        ("invoice", check_invoice_due),
    ]

    logger.info("Running expiry checks for %s (%d admin recipients)", today, len(recipients))
    for name, scan in scans:
        try:
            async with session_factory() as session:
                created = await scan(session, recipients, today)
            report.created[name] = len(created)
        except Exception as exc:
            logger.exception("Expiry scan %s failed", name)
            report.created[name] = 0
            report.errors[name] = str(exc)

    logger.info(
        "Expiry checks done: %d created, %d scan(s) failed",
        report.total_created,
        len(report.errors),
    )
    return report


async def check_employee_expiries_immediate(
    session: AsyncSession,
    employee: Employee,
    today: date | None = None,
) -> list[Notification]:
    """Employee document rules for one just-written employee. Never raises."""
    try:
        today = today or local_today(get_settings().business_timezone)
        checks = [
            (
                _EmployeeDoc(employee.id, employee.tenant_id, employee.full_name, expiry),
                ntype,
                label,
            )
            for expiry, ntype, label in (
                (employee.passport_expiry, NotificationType.PASSPORT_EXPIRY, "Passport"),
                (employee.visa_expiry, NotificationType.VISA_EXPIRY, "Visa"),
                (employee.insurance_expiry, NotificationType.INSURANCE_EXPIRY, "Insurance"),
            )
            if expiry is not None
        ]
        if not checks:
            return []
        recipients = await load_admin_recipients(session, tenant_id=employee.tenant_id)

        created: list[Notification] = []
        for doc, ntype, label in checks:
            created += await _notify_documents(session, recipients, [doc], ntype, label, today)
        return created
    except Exception:
        logger.exception("Immediate expiry check failed for employee %s", getattr(employee, "id", None))
        return []
