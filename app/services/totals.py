"""Invoice / sale totals.

Order of operations is fixed: per-line subtotal and VAT, order subtotal as
the sum of line subtotals, order-level discount floored at zero, then VAT
recomputed on the discounted subtotal. With an order-level discount the
order VAT is therefore not the sum of the per-line VAT amounts.

Inputs are not validated (negative quantities or discounts pass through).
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Any

VAT_RATE = Decimal("0.05")
CENT = Decimal("0.01")


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Decimal from int / float / str; None or blank becomes ``default``."""
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_currency(value: Decimal) -> Decimal:
    """Banker's rounding to 2 decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_EVEN)


@dataclass(frozen=True, slots=True)
class LineTotals:
    description: str
    quantity: Decimal
    unit_price: Decimal
    discount: Decimal
    vat_rate: Decimal
    line_subtotal: Decimal
    vat_amount: Decimal
    line_total: Decimal


@dataclass(frozen=True, slots=True)
class Totals:
    lines: list[LineTotals]
    subtotal: Decimal
    order_discount: Decimal
    discounted_subtotal: Decimal
    vat_amount: Decimal
    grand_total: Decimal

    def rounded(self) -> dict[str, Decimal]:
        """Order-level figures as stored on an invoice."""
        return {
            "subtotal": round_currency(self.subtotal),
            "total_discount": round_currency(self.order_discount),
            "vat_amount": round_currency(self.vat_amount),
            "total": round_currency(self.grand_total),
        }


def _field(item: Mapping[str, Any] | Any, *names: str) -> Any:
    for name in names:
        value = item.get(name) if isinstance(item, Mapping) else getattr(item, name, None)
        if value is not None:
            return value
    return None


def calculate_line(item: Mapping[str, Any] | Any, default_vat_rate: Decimal = VAT_RATE) -> LineTotals:
    quantity = to_decimal(_field(item, "quantity", "qty"))
    unit_price = to_decimal(_field(item, "unit_price", "unitPrice", "price"))
    discount = to_decimal(_field(item, "discount"))
    rate = to_decimal(_field(item, "vat_rate", "vatRate"), default=default_vat_rate)

    line_subtotal = quantity * unit_price - discount
    vat_amount = line_subtotal * rate
    return LineTotals(
        description=str(_field(item, "description", "name") or ""),
        quantity=quantity,
        unit_price=unit_price,
        discount=discount,
        vat_rate=rate,
        line_subtotal=line_subtotal,
        vat_amount=vat_amount,
        line_total=line_subtotal + vat_amount,
    )


def calculate_totals(
    items: Iterable[Mapping[str, Any] | Any],
    vat_rate: Decimal | float | str = VAT_RATE,
    order_discount: Decimal | float | str = 0,
) -> Totals:
    """Compute line and order totals. Items may be mappings or objects."""
    rate = to_decimal(vat_rate, default=VAT_RATE)
    discount = to_decimal(order_discount)

    lines = [calculate_line(item, rate) for item in items]
    subtotal = sum((line.line_subtotal for line in lines), Decimal("0"))
    discounted_subtotal = max(Decimal("0"), subtotal - discount)
    vat_amount = discounted_subtotal * rate
    return Totals(
        lines=lines,
        subtotal=subtotal,
        order_discount=discount,
        discounted_subtotal=discounted_subtotal,
        vat_amount=vat_amount,
        grand_total=discounted_subtotal + vat_amount,
    )
