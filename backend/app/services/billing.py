"""Billing engine: invoice totals from line items.

Inputs are coerced permissively: a quantity, rate, tax rate or discount that
cannot be read as a finite non-negative number counts as zero instead of
failing the whole computation. Request bodies are validated strictly before
they reach this module.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from backend.app.core.errors import ValidationError

ZERO = Decimal("0")
CENT = Decimal("0.01")
QUANTITY_STEP = Decimal("0.0001")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total: Decimal


def to_amount(value: Any) -> Decimal:
    """Read ``value`` as a non-negative Decimal, falling back to zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    if not number.is_finite() or number < ZERO:
        return ZERO
    return number


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_quantity(value: Any) -> Decimal:
    """Quantity at the four-place scale line items are stored with."""
    return to_amount(value).quantize(QUANTITY_STEP, rounding=ROUND_HALF_UP)


def to_rate(value: Any) -> Decimal:
    """Rate, or tax percentage, at the two-place scale it is stored with."""
    return quantize_money(to_amount(value))


def item_field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def line_amount(quantity: Any, rate: Any) -> Decimal:
    return quantize_money(to_quantity(quantity) * to_rate(rate))


def compute_totals(line_items: Iterable[Any], tax_rate: Any = None, discount_amount: Any = None) -> InvoiceTotals:
    """Compute subtotal, tax and total for a set of line items.

    ``tax_rate`` is a percentage. The total is not floored at zero: a discount
    larger than subtotal plus tax yields a negative total.

    Every input is brought to the scale it is persisted at before use, and the
    subtotal is the sum of the rounded line amounts. A stored invoice can be
    re-derived from its own rows: ``subtotal == sum(line.amount)``,
    ``tax_amount == round(subtotal * tax_rate / 100)`` and
    ``total == subtotal + tax_amount - discount_amount``.
    """
    items = list(line_items or [])
    if not items:
        raise ValidationError("At least one line item is required.")

    subtotal = sum(
        (line_amount(item_field(item, "quantity"), item_field(item, "rate")) for item in items),
        ZERO,
    )
    rate = to_rate(tax_rate)
    tax_amount = quantize_money(subtotal * rate / HUNDRED)
    discount = quantize_money(to_amount(discount_amount))
    total = subtotal + tax_amount - discount
    return InvoiceTotals(
        subtotal=subtotal,
        tax_rate=rate,
        tax_amount=tax_amount,
        discount_amount=discount,
        total=total,
    )
