"""
Rental totals calculator.

Rental price is per day: every line is unit price × quantity × day count
("jornadas"). The discount is a flat peso amount already decided upstream.
Tax and deposit rates come from BusinessConfig.

    subtotal            = Σ unit_price × quantity × day_count
    discounted_subtotal = subtotal − discount
    tax                 = discounted_subtotal × tax_rate
    total               = discounted_subtotal + tax
    deposit             = total × deposit_rate
    balance             = total − deposit

No rounding happens here; format_clp rounds for display only.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from ..core.business import BusinessConfig, DEFAULT_CONFIG
from ..core.errors import ValidationError
from .models import LineItem, Totals

_ZERO = Decimal("0")


def to_decimal(value, field_name: str = "amount") -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip() or "0")
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} is not a number: {value!r}", field=field_name)


@dataclass(frozen=True)
class RowBreakdown:
    """One table row: net, 19% tax and gross for a single line item."""
    net: Decimal
    tax19: Decimal
    gross: Decimal


class TotalsCalculator:

    def __init__(self, config: BusinessConfig = DEFAULT_CONFIG):
        self.config = config

    def _check_inputs(self, line_items, day_count):
        if not isinstance(day_count, int) or day_count < 1:
            raise ValidationError(f"day_count must be an integer >= 1, got {day_count!r}",
                                  field="day_count")
        for item in line_items:
            if item.unit_price < 0:
                raise ValidationError(f"negative unit price for {item.name!r}",
                                      field="unit_price")
            if item.quantity < 0:
                raise ValidationError(f"negative quantity for {item.name!r}",
                                      field="quantity")

    def subtotal(self, line_items, day_count: int) -> Decimal:
        self._check_inputs(line_items, day_count)
        return sum((item.unit_price * item.quantity * day_count for item in line_items), _ZERO)

    def compute(self, line_items, day_count: int, discount=0) -> Totals:
        discount = to_decimal(discount, "discount")
        if discount < 0:
            raise ValidationError(f"discount must not be negative, got {discount}",
                                  field="discount")
        subtotal = self.subtotal(line_items, day_count)
        if discount > subtotal:
            raise ValidationError(f"discount {discount} exceeds subtotal {subtotal}",
                                  field="discount")
        tax = (subtotal - discount) * self.config.tax_rate
        total = subtotal - discount + tax
        return Totals(
            subtotal=subtotal,
            discount=discount,
            tax=tax,
            total=total,
            deposit=total * self.config.deposit_rate,
        )

    def compute_products_only(self, line_items, day_count: int) -> Totals:
        """Pre-discount figures, shown next to the discounted ones."""
        subtotal = self.subtotal(line_items, day_count)
        tax = subtotal * self.config.tax_rate
        total = subtotal + tax
        return Totals(subtotal=subtotal, discount=_ZERO, tax=tax, total=total,
                      deposit=total * self.config.deposit_rate)

    def row_breakdown(self, item: LineItem, day_count: int) -> RowBreakdown:
        net = item.unit_price * item.quantity * day_count
        tax19 = net * self.config.tax_rate
        return RowBreakdown(net=net, tax19=tax19, gross=net + tax19)


_default = TotalsCalculator()


def compute_totals(line_items, day_count: int, discount=0) -> Totals:
    return _default.compute(line_items, day_count, discount)


def compute_totals_products_only(line_items, day_count: int) -> Totals:
    return _default.compute_products_only(line_items, day_count)


def row_breakdown(item: LineItem, day_count: int) -> RowBreakdown:
    return _default.row_breakdown(item, day_count)
