"""Invoices — totals preview and persistence with rounded order figures."""

import json
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlmodel import select

from app.api.deps import AuthContext, Session, require_module
from app.models.invoice import Invoice, InvoiceCreate, InvoiceLineIn, InvoiceRead
from app.services.totals import VAT_RATE, calculate_totals, round_currency

router = APIRouter(prefix="/invoices", tags=["invoices"])

InvoicesAuth = Annotated[AuthContext, Depends(require_module("invoices"))]


# ── Schemas ──────────────────────────────────────────────────

class TotalsRequest(BaseModel):
    items: list[InvoiceLineIn]
    order_discount: Decimal = Decimal("0")
    vat_rate: Decimal = VAT_RATE


class LineTotalsOut(BaseModel):
    description: str
    line_subtotal: Decimal
    vat_amount: Decimal
    line_total: Decimal


class TotalsResponse(BaseModel):
    lines: list[LineTotalsOut]
    subtotal: Decimal
    total_discount: Decimal
    vat_amount: Decimal
    total: Decimal


# ── Routes ───────────────────────────────────────────────────

@router.post("/totals", response_model=TotalsResponse)
async def preview_totals(body: TotalsRequest, _: InvoicesAuth) -> TotalsResponse:
    """Calculator preview; nothing is stored."""
    totals = calculate_totals(
        [item.model_dump() for item in body.items],
        vat_rate=body.vat_rate,
        order_discount=body.order_discount,
    )
    return TotalsResponse(
        lines=[
            LineTotalsOut(
                description=line.description,
                line_subtotal=round_currency(line.line_subtotal),
                vat_amount=round_currency(line.vat_amount),
                line_total=round_currency(line.line_total),
            )
            for line in totals.lines
        ],
        **totals.rounded(),
    )


@router.post("", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
async def create_invoice(body: InvoiceCreate, auth: InvoicesAuth, session: Session) -> InvoiceRead:
    items = [item.model_dump(mode="json") for item in body.items]
    totals = calculate_totals(items, order_discount=body.order_discount)
    invoice = Invoice(
        tenant_id=auth.tenant_id,
        invoice_number=body.invoice_number,
        customer_name=body.customer_name,
        issue_date=body.issue_date,
        due_date=body.due_date,
        status=body.status,
        items=json.dumps(items),
        **totals.rounded(),
    )
    session.add(invoice)
    await session.commit()
    await session.refresh(invoice)
    return InvoiceRead.model_validate(invoice)


@router.get("", response_model=list[InvoiceRead])
async def list_invoices(auth: InvoicesAuth, session: Session) -> list[InvoiceRead]:
    stmt = (
        select(Invoice)
        .where(Invoice.tenant_id == auth.tenant_id)
        .order_by(Invoice.created_at.desc())  # type: ignore[attr-defined]
    )
    result = await session.execute(stmt)
    return [InvoiceRead.model_validate(i) for i in result.scalars().all()]
