"""Line Item Calculator

Computes per-line tax and total from quantity, unit price and a tax rate.
Each line is computed on its own; recomputing one line never reads another.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict
from src.domain.errors import LineItemIssue, ValidationError

HUNDRED = Decimal("100")
ZERO = Decimal("0")

# Scales of the Numeric(18, 6) money and Numeric(9, 4) rate columns
MONEY_SCALE = Decimal("0.000001")
RATE_SCALE = Decimal("0.0001")


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_SCALE, rounding=ROUND_HALF_UP)


def _as_decimal(value) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def coerce_quantity(value) -> int:
    """Invalid or non-positive input defaults to 1; fractions are truncated"""
    number = _as_decimal(value)
    if number is None:
        return 1
    quantity = int(number)
    return quantity if quantity >= 1 else 1


def coerce_unit_price(value) -> Decimal:
    """Invalid or negative input defaults to 0"""
    number = _as_decimal(value)
    if number is None or number < 0:
        return ZERO
    return quantize_money(number)


def clamp_tax_rate(value) -> Decimal:
    """Clamp to [0, 100]; invalid input means untaxed"""
    number = _as_decimal(value)
    if number is None:
        return ZERO
    return min(max(number, ZERO), HUNDRED).quantize(RATE_SCALE, rounding=ROUND_HALF_UP)


def calculate_line(quantity: int, unit_price: Decimal, tax_rate: Decimal) -> Tuple[Decimal, Decimal]:
    """
    Compute derived fields of one line

    Returns:
        (tax_amount, total) where tax_amount = quantity*unit_price*tax_rate/100
        rounded half up to the stored money scale, and
        total = quantity*unit_price + tax_amount
    """
    net = Decimal(quantity) * unit_price
    tax_amount = quantize_money(net * tax_rate / HUNDRED)
    return tax_amount, net + tax_amount


class LineItem(BaseModel):
    """
    One billable row of an invoice

    ``tax_amount`` and ``total`` are derived. Build and change lines through
    ``build`` / ``with_changes`` so they are always recomputed.
    ``tax_override`` marks a row whose rate was set by hand and must survive a
    change of the invoice-wide tax selection.
    """

    model_config = ConfigDict(frozen=True)

    local_id: int
    item_id: Optional[str] = None
    description: str
    quantity: int
    unit_price: Decimal
    tax_rate: Decimal
    tax_override: bool = False
    tax_amount: Decimal
    total: Decimal

    @property
    def net_amount(self) -> Decimal:
        return Decimal(self.quantity) * self.unit_price

    @classmethod
    def build(
        cls,
        local_id: int,
        description: str,
        quantity,
        unit_price,
        tax_rate,
        item_id: Optional[str] = None,
        tax_override: bool = False,
    ) -> "LineItem":
        qty = coerce_quantity(quantity)
        price = coerce_unit_price(unit_price)
        rate = clamp_tax_rate(tax_rate)
        tax_amount, total = calculate_line(qty, price, rate)
        return cls(
            local_id=local_id,
            item_id=item_id,
            description=(description or "").strip(),
            quantity=qty,
            unit_price=price,
            tax_rate=rate,
            tax_override=tax_override,
            tax_amount=tax_amount,
            total=total,
        )

    def with_changes(self, **changes) -> "LineItem":
        """Return a recomputed copy with some of the editable fields replaced"""
        fields = {
            "local_id": self.local_id,
            "item_id": self.item_id,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "tax_rate": self.tax_rate,
            "tax_override": self.tax_override,
        }
        unknown = set(changes) - set(fields)
        if unknown:
            raise ValueError(f"Not editable: {', '.join(sorted(unknown))}")
        fields.update(changes)
        return LineItem.build(**fields)


def _issues_for(index: int, line) -> List[LineItemIssue]:
    issues = []

    description = getattr(line, "description", None)
    if not description or not str(description).strip():
        issues.append(LineItemIssue(index, "description", "Description is required"))

    quantity = _as_decimal(getattr(line, "quantity", None))
    if quantity is None or quantity != quantity.to_integral_value() or quantity < 1:
        issues.append(LineItemIssue(index, "quantity", "Quantity must be a whole number of at least 1"))

    unit_price = _as_decimal(getattr(line, "unit_price", None))
    if unit_price is None or unit_price < 0:
        issues.append(LineItemIssue(index, "unit_price", "Unit price must be zero or more"))

    raw_rate = getattr(line, "tax_rate", None)
    if raw_rate is not None:
        tax_rate = _as_decimal(raw_rate)
        if tax_rate is None or tax_rate < 0 or tax_rate > HUNDRED:
            issues.append(LineItemIssue(index, "tax_rate", "Tax rate must be between 0 and 100"))

    return issues


def collect_line_item_issues(lines: Iterable) -> List[LineItemIssue]:
    issues = []
    for index, line in enumerate(lines):
        issues.extend(_issues_for(index, line))
    return issues


def validate_line_items(lines: Iterable) -> None:
    """
    Check every line and report all problems at once

    Works on raw inputs as well as on persisted lines: anything exposing
    ``description``, ``quantity``, ``unit_price`` and optionally ``tax_rate``.

    Raises:
        ValidationError: with one issue per offending field
    """
    issues = collect_line_item_issues(lines)
    if issues:
        raise ValidationError(
            f"{len(issues)} line item problem(s) found",
            issues=issues,
        )
