"""Unit tests for the document and payment status machines"""

import pytest
from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

from src.domain.errors import IllegalTransitionError, ValidationError
from src.domain.invoice_lifecycle import (
    DocumentStatus,
    LifecycleState,
    PaymentStatus,
    cancel,
    ensure_editable,
    mark_overdue,
    mark_paid,
    payment_status_for,
    record_payment,
    record_view,
    send,
)

AT = datetime(2024, 2, 1, 12, 0, 0)
LINES = [SimpleNamespace(description="Consulting", quantity=3, unit_price=Decimal("1000"), tax_rate=Decimal("7.5"))]


def _state(status=DocumentStatus.DRAFT, payment_status=PaymentStatus.UNPAID, **fields):
    return LifecycleState(status=status, payment_status=payment_status, total=Decimal("3725"), **fields)


class TestSend:

    def test_draft_to_sent(self):
        state = send(_state(), "cust_42", LINES, AT)

        assert state.status == DocumentStatus.SENT
        assert state.sent_at == AT

    def test_requires_customer_and_lines(self):
        with pytest.raises(ValidationError) as exc_info:
            send(_state(), None, [], AT)

        fields = {issue.field for issue in exc_info.value.issues}
        assert fields == {"customer_id", "items"}

    def test_resend_is_a_no_op(self):
        viewed = _state(DocumentStatus.VIEWED, sent_at=AT)

        assert send(viewed, "cust_42", LINES) == viewed

    def test_canceled_cannot_be_sent(self):
        with pytest.raises(IllegalTransitionError):
            send(_state(DocumentStatus.CANCELED), "cust_42", LINES)


class TestRecordView:

    def test_sent_to_viewed(self):
        state = record_view(_state(DocumentStatus.SENT), AT)

        assert state.status == DocumentStatus.VIEWED
        assert state.viewed_at == AT

    def test_draft_cannot_be_viewed(self):
        """
        Given: a DRAFT invoice
        When: a view is recorded
        Then: IllegalTransitionError, the invoice was never sent
        """
        with pytest.raises(IllegalTransitionError) as exc_info:
            record_view(_state(DocumentStatus.DRAFT))

        assert exc_info.value.current == "DRAFT"

    def test_first_view_time_is_kept(self):
        first = datetime(2024, 1, 5)
        state = record_view(_state(DocumentStatus.VIEWED, viewed_at=first), AT)

        assert state.viewed_at == first

    def test_overdue_stays_overdue(self):
        state = record_view(_state(DocumentStatus.OVERDUE), AT)

        assert state.status == DocumentStatus.OVERDUE
        assert state.viewed_at == AT


class TestMarkOverdue:

    @pytest.mark.parametrize("status", [DocumentStatus.SENT, DocumentStatus.VIEWED])
    def test_from_delivered(self, status):
        assert mark_overdue(_state(status), AT).status == DocumentStatus.OVERDUE

    @pytest.mark.parametrize("status", [DocumentStatus.DRAFT, DocumentStatus.OVERDUE, DocumentStatus.CANCELED])
    def test_from_other_states(self, status):
        with pytest.raises(IllegalTransitionError):
            mark_overdue(_state(status))

    def test_paid_invoice_is_never_overdue(self):
        with pytest.raises(IllegalTransitionError):
            mark_overdue(_state(DocumentStatus.SENT, PaymentStatus.PAID))


class TestCancel:

    @pytest.mark.parametrize(
        "status", [DocumentStatus.DRAFT, DocumentStatus.SENT, DocumentStatus.VIEWED, DocumentStatus.OVERDUE]
    )
    def test_non_terminal_states_can_be_canceled(self, status):
        state = cancel(_state(status), AT)

        assert state.status == DocumentStatus.CANCELED
        assert state.canceled_at == AT

    def test_canceled_is_terminal(self):
        with pytest.raises(IllegalTransitionError):
            cancel(_state(DocumentStatus.CANCELED))

    def test_paid_invoice_cannot_be_canceled(self):
        with pytest.raises(IllegalTransitionError):
            cancel(_state(DocumentStatus.SENT, PaymentStatus.PAID))


class TestRecordPayment:

    def test_partial_payment(self):
        state = record_payment(_state(DocumentStatus.SENT), Decimal("1000"), AT)

        assert state.payment_status == PaymentStatus.PARTIALLY_PAID
        assert state.amount_paid == Decimal("1000")
        assert state.paid_at is None
        assert state.status == DocumentStatus.SENT

    def test_payment_of_exactly_the_total_settles(self):
        state = record_payment(_state(DocumentStatus.SENT), Decimal("3725"), AT)

        assert state.payment_status == PaymentStatus.PAID
        assert state.paid_at == AT

    def test_payments_accumulate(self):
        state = record_payment(_state(DocumentStatus.SENT), "1725", AT)
        state = record_payment(state, "2000", AT)

        assert state.amount_paid == Decimal("3725")
        assert state.payment_status == PaymentStatus.PAID

    @pytest.mark.parametrize("amount", [0, -5, "abc", None])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValidationError):
            record_payment(_state(DocumentStatus.SENT), amount)

    def test_paid_invoice_rejects_payments(self):
        with pytest.raises(IllegalTransitionError):
            record_payment(_state(DocumentStatus.SENT, PaymentStatus.PAID), Decimal("1"))

    def test_document_status_is_independent(self):
        state = record_payment(_state(DocumentStatus.OVERDUE), Decimal("3725"), AT)

        assert state.status == DocumentStatus.OVERDUE
        assert state.payment_status == PaymentStatus.PAID


class TestMarkPaid:

    def test_manual_override(self):
        state = mark_paid(_state(DocumentStatus.SENT), AT)

        assert state.payment_status == PaymentStatus.PAID
        assert state.amount_paid == Decimal("0")

    def test_already_paid(self):
        with pytest.raises(IllegalTransitionError):
            mark_paid(_state(DocumentStatus.SENT, PaymentStatus.PAID))


class TestEnsureEditable:

    def test_draft_and_sent_are_editable(self):
        ensure_editable(_state(DocumentStatus.DRAFT))
        ensure_editable(_state(DocumentStatus.SENT, PaymentStatus.PARTIALLY_PAID))

    @pytest.mark.parametrize(
        "status, payment_status",
        [(DocumentStatus.SENT, PaymentStatus.PAID), (DocumentStatus.CANCELED, PaymentStatus.UNPAID)],
    )
    def test_paid_or_canceled_is_locked(self, status, payment_status):
        with pytest.raises(IllegalTransitionError):
            ensure_editable(_state(status, payment_status))


def test_payment_status_for():
    assert payment_status_for(Decimal("0"), Decimal("10")) == PaymentStatus.UNPAID
    assert payment_status_for(Decimal("4"), Decimal("10")) == PaymentStatus.PARTIALLY_PAID
    assert payment_status_for(Decimal("10"), Decimal("10")) == PaymentStatus.PAID
