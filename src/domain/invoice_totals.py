"""Invoice Aggregator

Reduces line items into document totals. The document tax amount is always
the sum of the per-line tax amounts, never ``subtotal * effective_rate``, so
lines and totals can never disagree.
"""

from decimal import Decimal
from typing import Iterable
from pydantic import BaseModel, ConfigDict

ZERO = Decimal("0")


class InvoiceTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total: Decimal = ZERO


def aggregate_line_items(lines: Iterable) -> InvoiceTotals:
    """
    Sum already-derived line fields

    Args:
        lines: Items exposing ``quantity``, ``unit_price`` and ``tax_amount``

    Returns:
        InvoiceTotals with total = subtotal + tax_amount
    """
    subtotal = ZERO
    tax_amount = ZERO
    for line in lines:
        subtotal += Decimal(line.quantity) * Decimal(line.unit_price)
        tax_amount += Decimal(line.tax_amount)
    return InvoiceTotals(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)


class InvoiceSummary(BaseModel):
    """Totals summed across many invoices, for reporting consumers"""

    model_config = ConfigDict(frozen=True)

    invoice_count: int = 0
    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total: Decimal = ZERO
    amount_paid: Decimal = ZERO
    outstanding: Decimal = ZERO


def summarize_invoices(invoices: Iterable) -> InvoiceSummary:
    count = 0
    subtotal = tax_amount = total = amount_paid = outstanding = ZERO
    for invoice in invoices:
        count += 1
        paid = invoice.amount_paid or ZERO
        subtotal += invoice.subtotal
        tax_amount += invoice.tax_amount
        total += invoice.total
        amount_paid += paid
        # Manually settled invoices owe nothing whatever was recorded
        if invoice.payment_status != "PAID":
            outstanding += max(invoice.total - paid, ZERO)
    return InvoiceSummary(
        invoice_count=count,
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=total,
        amount_paid=amount_paid,
        outstanding=outstanding,
    )
