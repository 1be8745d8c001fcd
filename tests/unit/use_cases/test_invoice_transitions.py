"""Unit tests for invoice status operations

Tests cover:
- Each transition writes through compare-and-set and bumps the version
- Illegal transitions are rejected without writing
- Stale expected_version and lost compare-and-set races report CONFLICT
- Tenant scoping and not-found handling
"""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.invoicing import (
    CancelInvoice,
    MarkInvoiceOverdue,
    MarkInvoicePaid,
    RecordInvoiceView,
    SendInvoice,
)
from src.app.use_cases.invoicing.dtos import InvoiceActionCommandDTO, MarkInvoicePaidCommandDTO
from src.domain.invoice_lifecycle import DocumentStatus, PaymentStatus
from src.domain.payment import PaymentMethod, PaymentRecordStatus

AT = datetime(2024, 2, 1, 12, 0, 0)


def _command(**overrides):
    fields = dict(tenant_id="tenant_123", invoice_id=1, occurred_at=AT)
    fields.update(overrides)
    return InvoiceActionCommandDTO(**fields)


@pytest.fixture
def mock_payment_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=lambda payment: payment)
    repo.get_by_reference = AsyncMock(return_value=None)
    return repo


@pytest.fixture
def build(mock_uow, mock_invoice_repo, mock_invoice_line_repo, mock_payment_repo):
    def _build(operation_cls, invoice):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=invoice)
        if operation_cls is MarkInvoicePaid:
            return operation_cls(mock_uow, mock_invoice_repo, mock_invoice_line_repo, mock_payment_repo)
        return operation_cls(mock_uow, mock_invoice_repo, mock_invoice_line_repo)

    return _build


@pytest.mark.asyncio
class TestSendInvoice:

    async def test_draft_is_sent(self, build, make_invoice, mock_invoice_repo, mock_uow):
        """
        Given: a DRAFT invoice with a customer and lines
        When: it is sent
        Then: status is SENT, sent_at is stamped and the version is bumped
        """
        use_case = build(SendInvoice, make_invoice())

        result = await use_case.execute(_command())

        assert result.is_ok()
        assert result.value.status == "SENT"
        assert result.value.sent_at == AT
        assert result.value.version == 2
        mock_invoice_repo.compare_and_set.assert_called_once()
        mock_uow.commit.assert_called_once()

    async def test_send_without_lines(self, build, make_invoice, mock_invoice_line_repo, mock_invoice_repo):
        mock_invoice_line_repo.get_by_invoice_id = AsyncMock(return_value=[])
        use_case = build(SendInvoice, make_invoice())

        result = await use_case.execute(_command())

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"
        mock_invoice_repo.compare_and_set.assert_not_called()

    async def test_resend_writes_nothing(self, build, make_invoice, mock_invoice_repo):
        use_case = build(SendInvoice, make_invoice(status=DocumentStatus.VIEWED, sent_at=AT))

        result = await use_case.execute(_command())

        assert result.is_ok()
        assert result.value.status == "VIEWED"
        assert result.value.version == 1
        mock_invoice_repo.compare_and_set.assert_not_called()


@pytest.mark.asyncio
class TestRecordInvoiceView:

    async def test_sent_becomes_viewed(self, build, make_invoice):
        use_case = build(RecordInvoiceView, make_invoice(status=DocumentStatus.SENT))

        result = await use_case.execute(_command())

        assert result.is_ok()
        assert result.value.status == "VIEWED"
        assert result.value.viewed_at == AT

    async def test_draft_cannot_be_viewed(self, build, make_invoice, mock_uow):
        use_case = build(RecordInvoiceView, make_invoice())

        result = await use_case.execute(_command())

        assert result.is_err()
        assert result.error.code == "ILLEGAL_TRANSITION"
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
class TestMarkInvoiceOverdue:

    async def test_viewed_becomes_overdue(self, build, make_invoice):
        use_case = build(MarkInvoiceOverdue, make_invoice(status=DocumentStatus.VIEWED))

        result = await use_case.execute(_command())

        assert result.is_ok()
        assert result.value.status == "OVERDUE"

    async def test_paid_invoice_is_not_overdue(self, build, make_invoice):
        invoice = make_invoice(status=DocumentStatus.SENT, payment_status=PaymentStatus.PAID)
        use_case = build(MarkInvoiceOverdue, invoice)

        result = await use_case.execute(_command())

        assert result.is_err()
        assert result.error.code == "ILLEGAL_TRANSITION"


@pytest.mark.asyncio
class TestCancelInvoice:

    async def test_cancel_overdue(self, build, make_invoice):
        use_case = build(CancelInvoice, make_invoice(status=DocumentStatus.OVERDUE))

        result = await use_case.execute(_command())

        assert result.is_ok()
        assert result.value.status == "CANCELED"
        assert result.value.canceled_at == AT

    async def test_paid_invoice_cannot_be_canceled(self, build, make_invoice, mock_invoice_repo):
        invoice = make_invoice(status=DocumentStatus.SENT, payment_status=PaymentStatus.PAID)
        use_case = build(CancelInvoice, invoice)

        result = await use_case.execute(_command())

        assert result.is_err()
        assert result.error.code == "ILLEGAL_TRANSITION"
        assert "paid" in result.error.message
        mock_invoice_repo.compare_and_set.assert_not_called()


@pytest.mark.asyncio
class TestMarkInvoicePaid:

    async def test_outstanding_balance_is_recorded_as_payment(self, build, make_invoice, mock_payment_repo):
        """
        Given: a SENT invoice of 3725 with 1000 already paid
        When: it is marked paid by bank transfer
        Then: the 2725 balance is stored as a SUCCESS manual payment and amount_paid reaches the total
        """
        invoice = make_invoice(status=DocumentStatus.SENT, amount_paid=Decimal("1000"),
                               payment_status=PaymentStatus.PARTIALLY_PAID)
        use_case = build(MarkInvoicePaid, invoice)

        result = await use_case.execute(
            MarkInvoicePaidCommandDTO(
                tenant_id="tenant_123",
                invoice_id=1,
                occurred_at=AT,
                payment_method="bank_transfer",
                reference="bank-8812",
                notes="Received on account 42",
            )
        )

        assert result.is_ok()
        assert result.value.payment_status == "PAID"
        assert result.value.amount_paid == Decimal("3725")
        assert result.value.paid_at == AT
        assert result.value.status == "SENT"
        payment = mock_payment_repo.create.call_args.args[0]
        assert payment.amount == Decimal("2725")
        assert payment.method == PaymentMethod.MANUAL
        assert payment.status == PaymentRecordStatus.SUCCESS
        assert payment.reference == "bank-8812"
        assert payment.channel == "bank_transfer"
        assert payment.notes == "Received on account 42"
        assert payment.paid_at == AT

    async def test_reference_is_generated(self, build, make_invoice, mock_payment_repo):
        use_case = build(MarkInvoicePaid, make_invoice(status=DocumentStatus.SENT))

        result = await use_case.execute(_command())

        assert result.is_ok()
        payment = mock_payment_repo.create.call_args.args[0]
        assert payment.amount == Decimal("3725")
        assert payment.reference.startswith("PAY-")

    async def test_duplicate_reference_conflicts(self, build, make_invoice, mock_payment_repo, mock_invoice_repo):
        mock_payment_repo.get_by_reference = AsyncMock(return_value=MagicMock())
        use_case = build(MarkInvoicePaid, make_invoice(status=DocumentStatus.SENT))

        result = await use_case.execute(
            MarkInvoicePaidCommandDTO(tenant_id="tenant_123", invoice_id=1, reference="bank-8812")
        )

        assert result.is_err()
        assert result.error.code == "CONFLICT"
        mock_invoice_repo.compare_and_set.assert_not_called()

    async def test_already_paid_writes_no_payment(self, build, make_invoice, mock_payment_repo):
        invoice = make_invoice(status=DocumentStatus.SENT, amount_paid=Decimal("3725"),
                               payment_status=PaymentStatus.PAID)
        use_case = build(MarkInvoicePaid, invoice)

        result = await use_case.execute(_command())

        assert result.is_err()
        assert result.error.code == "ILLEGAL_TRANSITION"
        mock_payment_repo.create.assert_not_called()


@pytest.mark.asyncio
class TestConcurrency:

    async def test_stale_expected_version(self, build, make_invoice, mock_invoice_repo):
        """
        Given: a client that read version 1
        When: it cancels after the invoice moved on to version 3
        Then: CONFLICT is returned and nothing is written
        """
        use_case = build(CancelInvoice, make_invoice(status=DocumentStatus.SENT, version=3))

        result = await use_case.execute(_command(expected_version=1))

        assert result.is_err()
        assert result.error.code == "CONFLICT"
        mock_invoice_repo.compare_and_set.assert_not_called()

    async def test_lost_race(self, build, make_invoice, mock_invoice_repo, mock_uow):
        """
        Given: another writer updates the row between read and write
        When: compare-and-set finds no row at the read version
        Then: CONFLICT is returned and the transaction rolled back
        """
        mock_invoice_repo.compare_and_set = AsyncMock(return_value=None)
        use_case = build(MarkInvoicePaid, make_invoice(status=DocumentStatus.SENT))

        result = await use_case.execute(_command())

        assert result.is_err()
        assert result.error.code == "CONFLICT"
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()

    async def test_not_found(self, build, mock_invoice_repo):
        use_case = build(SendInvoice, None)

        result = await use_case.execute(_command(invoice_id=99))

        assert result.is_err()
        assert result.error.code == "INVOICE_NOT_FOUND"
        mock_invoice_repo.get_by_id.assert_called_once_with("tenant_123", 99)

    async def test_unexpected_failure(self, build, make_invoice, mock_invoice_repo, mock_uow):
        mock_invoice_repo.compare_and_set = AsyncMock(side_effect=Exception("Database error"))
        use_case = build(CancelInvoice, make_invoice())

        result = await use_case.execute(_command())

        assert result.is_err()
        assert result.error.code == "CANCEL_INVOICE_FAILED"
        assert result.error.message == "Failed to cancel invoice"
        mock_uow.rollback.assert_called_once()
