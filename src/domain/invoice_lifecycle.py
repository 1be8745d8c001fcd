"""Invoice Status State Machines

Two independent axes:

- Document status tracks delivery: DRAFT -> SENT -> VIEWED -> OVERDUE,
  and any non-terminal state -> CANCELED.
- Payment status tracks settlement: UNPAID -> PARTIALLY_PAID -> PAID.

Transitions are pure functions from one ``LifecycleState`` to the next.
They validate against the current state and raise instead of coercing, so a
caller can apply the result with a compare-and-set write.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict
from src.domain.errors import IllegalTransitionError, LineItemIssue, ValidationError
from src.domain.line_item import collect_line_item_issues

ZERO = Decimal("0")


class DocumentStatus(str, Enum):
    """Invoice delivery lifecycle"""
    DRAFT = "DRAFT"
    SENT = "SENT"
    VIEWED = "VIEWED"
    OVERDUE = "OVERDUE"
    CANCELED = "CANCELED"


class PaymentStatus(str, Enum):
    """Invoice settlement lifecycle"""
    UNPAID = "UNPAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"


DELIVERED = frozenset({DocumentStatus.SENT, DocumentStatus.VIEWED, DocumentStatus.OVERDUE})
CANCELABLE = frozenset({DocumentStatus.DRAFT}) | DELIVERED
OVERDUE_ELIGIBLE = frozenset({DocumentStatus.SENT, DocumentStatus.VIEWED})


class LifecycleState(BaseModel):
    """The status-bearing part of an invoice"""

    model_config = ConfigDict(frozen=True)

    status: DocumentStatus = DocumentStatus.DRAFT
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    total: Decimal = ZERO
    amount_paid: Decimal = ZERO
    sent_at: Optional[datetime] = None
    viewed_at: Optional[datetime] = None
    overdue_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None

    def evolve(self, **changes) -> "LifecycleState":
        return self.model_copy(update=changes)


def payment_status_for(amount_paid: Decimal, total: Decimal) -> PaymentStatus:
    """Payment status implied by what has been paid against the total"""
    if amount_paid <= 0:
        return PaymentStatus.UNPAID
    if amount_paid >= total:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIALLY_PAID


def _now(at: Optional[datetime]) -> datetime:
    return at or datetime.utcnow()


# Document status -----------------------------------------------------------

def send(
    state: LifecycleState,
    customer_id: Optional[str],
    lines,
    at: Optional[datetime] = None,
) -> LifecycleState:
    """
    Finalize and send

    DRAFT -> SENT requires a customer and at least one valid line. Sending a
    delivered invoice again is a re-delivery and keeps its state.

    Raises:
        IllegalTransitionError: invoice is CANCELED
        ValidationError: missing customer, no lines, or invalid lines
    """
    if state.status == DocumentStatus.CANCELED:
        raise IllegalTransitionError("send", state.status.value)
    if state.status in DELIVERED:
        return state

    lines = list(lines)
    issues = []
    if not customer_id:
        issues.append(LineItemIssue(None, "customer_id", "Customer is required"))
    if not lines:
        issues.append(LineItemIssue(None, "items", "At least one line item is required"))
    issues.extend(collect_line_item_issues(lines))
    if issues:
        raise ValidationError("Invoice cannot be sent", issues=issues)

    return state.evolve(status=DocumentStatus.SENT, sent_at=_now(at))


def record_view(state: LifecycleState, at: Optional[datetime] = None) -> LifecycleState:
    """
    Recipient opened the public invoice

    SENT -> VIEWED. Idempotent for VIEWED. OVERDUE and CANCELED keep their
    state; only the first view time is stamped.

    Raises:
        IllegalTransitionError: invoice is still a DRAFT
    """
    if state.status == DocumentStatus.DRAFT:
        raise IllegalTransitionError("view", state.status.value, "invoice has not been sent")

    viewed_at = state.viewed_at or _now(at)
    if state.status == DocumentStatus.SENT:
        return state.evolve(status=DocumentStatus.VIEWED, viewed_at=viewed_at)
    return state.evolve(viewed_at=viewed_at)


def mark_overdue(state: LifecycleState, at: Optional[datetime] = None) -> LifecycleState:
    """
    Due date passed while unpaid; decided by an external scheduler

    Raises:
        IllegalTransitionError: not SENT/VIEWED, or already PAID
    """
    if state.status not in OVERDUE_ELIGIBLE:
        raise IllegalTransitionError("mark overdue", state.status.value)
    if state.payment_status == PaymentStatus.PAID:
        raise IllegalTransitionError("mark overdue", state.status.value, "invoice is paid")
    return state.evolve(status=DocumentStatus.OVERDUE, overdue_at=_now(at))


def cancel(state: LifecycleState, at: Optional[datetime] = None) -> LifecycleState:
    """
    Cancel a non-terminal invoice

    A PAID invoice cannot be canceled; it has to be settled by a refund or a
    credit note outside of this engine.

    Raises:
        IllegalTransitionError: already CANCELED, or PAID
    """
    if state.status not in CANCELABLE:
        raise IllegalTransitionError("cancel", state.status.value)
    if state.payment_status == PaymentStatus.PAID:
        raise IllegalTransitionError("cancel", state.status.value, "invoice is paid")
    return state.evolve(status=DocumentStatus.CANCELED, canceled_at=_now(at))


# Payment status ------------------------------------------------------------

def record_payment(state: LifecycleState, amount, at: Optional[datetime] = None) -> LifecycleState:
    """
    Add a payment to the amount paid and derive the new payment status

    Raises:
        ValidationError: amount is not a positive number
        IllegalTransitionError: invoice is already PAID
    """
    try:
        amount = Decimal(str(amount))
    except ArithmeticError:
        amount = None
    if amount is None or not amount.is_finite() or amount <= 0:
        raise ValidationError(
            "Payment amount must be greater than 0",
            issues=[LineItemIssue(None, "amount", "Payment amount must be greater than 0")],
        )
    if state.payment_status == PaymentStatus.PAID:
        raise IllegalTransitionError("record a payment on", state.payment_status.value, "invoice is already paid")

    amount_paid = state.amount_paid + amount
    payment_status = payment_status_for(amount_paid, state.total)
    paid_at = _now(at) if payment_status == PaymentStatus.PAID else state.paid_at
    return state.evolve(amount_paid=amount_paid, payment_status=payment_status, paid_at=paid_at)


def mark_paid(state: LifecycleState, at: Optional[datetime] = None) -> LifecycleState:
    """
    Manual override straight to PAID regardless of recorded payments

    Raises:
        IllegalTransitionError: invoice is already PAID
    """
    if state.payment_status == PaymentStatus.PAID:
        raise IllegalTransitionError("mark paid", state.payment_status.value, "invoice is already paid")
    return state.evolve(payment_status=PaymentStatus.PAID, paid_at=_now(at))


def ensure_editable(state: LifecycleState) -> None:
    """
    Lines and tax selection may change until the invoice is paid or canceled

    Raises:
        IllegalTransitionError: invoice is PAID or CANCELED
    """
    if state.payment_status == PaymentStatus.PAID:
        raise IllegalTransitionError("edit", state.payment_status.value, "invoice is paid")
    if state.status == DocumentStatus.CANCELED:
        raise IllegalTransitionError("edit", state.status.value)
