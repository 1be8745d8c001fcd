"""Payment link use cases

A payment processor issues a hosted checkout page for the invoice. The link
is stored on the invoice with a PENDING payment; the processor's callback
later confirms or fails that payment.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import ConflictError, IllegalTransitionError, InvoiceEngineError, LineItemIssue, ValidationError
from src.domain.invoice import Invoice
from src.domain.invoice_line import InvoiceLine
from src.domain.invoice_lifecycle import DocumentStatus, PaymentStatus, record_payment
from src.domain.payment import Payment, PaymentMethod, PaymentRecordStatus
from .base import InvoiceOperation, lifecycle_changes
from .dtos import AttachPaymentLinkCommandDTO, ConfirmLinkPaymentCommandDTO


class PaymentNotFoundError(InvoiceEngineError):
    code = "PAYMENT_NOT_FOUND"


class PaymentNotSuccessfulError(InvoiceEngineError):
    code = "PAYMENT_NOT_SUCCESSFUL"


class _PaymentLinkOperation(InvoiceOperation):
    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
        payment_repo: PaymentRepository,
    ):
        super().__init__(uow, invoice_repo, invoice_line_repo)
        self.payment_repo = payment_repo


class AttachPaymentLink(_PaymentLinkOperation):
    """
    Use Case: Store a processor-issued payment link

    Business Rules:
    1. Not allowed on PAID or CANCELED invoices
    2. Amount defaults to what is outstanding and must be greater than 0
    3. The processor reference must not be in use yet
    """

    action = "attach a payment link to"
    failure_code = "ATTACH_PAYMENT_LINK_FAILED"
    failure_message = "Failed to attach payment link"

    async def apply(
        self, invoice: Invoice, lines: List[InvoiceLine], command: AttachPaymentLinkCommandDTO
    ) -> Dict[str, Any]:
        if invoice.payment_status == PaymentStatus.PAID:
            raise IllegalTransitionError(self.action, invoice.payment_status.value, "invoice is paid")
        if invoice.status == DocumentStatus.CANCELED:
            raise IllegalTransitionError(self.action, invoice.status.value)

        amount = command.amount if command.amount is not None else invoice.total - invoice.amount_paid
        if amount <= Decimal("0"):
            raise ValidationError(
                "Payment amount must be greater than 0",
                issues=[LineItemIssue(None, "amount", "Payment amount must be greater than 0")],
            )

        if await self.payment_repo.get_by_reference(invoice.tenant_id, command.reference) is not None:
            raise ConflictError(f"Payment reference {command.reference} is already in use")

        await self.payment_repo.create(
            Payment(
                tenant_id=invoice.tenant_id,
                invoice_id=invoice.id,
                amount=amount,
                method=PaymentMethod.PAYMENT_LINK,
                status=PaymentRecordStatus.PENDING,
                reference=command.reference,
            )
        )
        return {"payment_link": command.payment_link}


class ConfirmLinkPayment(_PaymentLinkOperation):
    """
    Use Case: Apply the processor's verdict on a payment-link checkout

    Business Rules:
    1. The reference must belong to a payment on this invoice
    2. Repeated callbacks are idempotent: a payment that already succeeded,
       or an invoice that is already PAID, changes nothing
    3. A failed checkout marks the payment FAILED and reports
       PAYMENT_NOT_SUCCESSFUL
    4. A successful checkout records the payment amount on the invoice
    """

    action = "confirm a payment on"
    failure_code = "CONFIRM_PAYMENT_FAILED"
    failure_message = "Failed to confirm link payment"

    async def apply(
        self, invoice: Invoice, lines: List[InvoiceLine], command: ConfirmLinkPaymentCommandDTO
    ) -> Dict[str, Any]:
        payment = await self.payment_repo.get_by_reference(invoice.tenant_id, command.reference)
        if payment is None or payment.invoice_id != invoice.id:
            raise PaymentNotFoundError(f"Payment {command.reference} not found for invoice {invoice.invoice_number}")

        if payment.status == PaymentRecordStatus.SUCCESS:
            return {}

        if not command.succeeded:
            # The failure is kept even though the operation reports an error
            await self.payment_repo.update_status(payment, PaymentRecordStatus.FAILED)
            await self.uow.commit()
            raise PaymentNotSuccessfulError(
                f"Payment {command.reference} was not successful",
                reason="processor reported a failed checkout",
            )

        paid_at = command.occurred_at or datetime.utcnow()
        await self.payment_repo.update_status(payment, PaymentRecordStatus.SUCCESS, paid_at)

        state = invoice.lifecycle_state()
        if state.payment_status == PaymentStatus.PAID:
            return {}
        return lifecycle_changes(state, record_payment(state, payment.amount, paid_at))
