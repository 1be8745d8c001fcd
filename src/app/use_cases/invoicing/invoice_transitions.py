"""Document and payment status operations

Each operation feeds the stored lifecycle state through one pure transition
and writes the difference back with compare-and-set.
"""

from datetime import datetime
from typing import Any, Dict, List
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.invoice import Invoice
from src.domain.invoice_line import InvoiceLine
from src.domain.invoice_lifecycle import cancel, mark_overdue, mark_paid, record_view, send
from src.domain.payment import Payment, PaymentMethod, PaymentRecordStatus
from .base import InvoiceOperation, lifecycle_changes
from .dtos import InvoiceActionCommandDTO, MarkInvoicePaidCommandDTO
from .record_payment import claim_payment_reference


class SendInvoice(InvoiceOperation):
    """
    DRAFT -> SENT once a customer and at least one valid line exist.
    Sending a delivered invoice again is a re-delivery and writes nothing.
    """

    action = "send"
    failure_code = "SEND_INVOICE_FAILED"
    failure_message = "Failed to send invoice"

    async def apply(
        self, invoice: Invoice, lines: List[InvoiceLine], command: InvoiceActionCommandDTO
    ) -> Dict[str, Any]:
        state = invoice.lifecycle_state()
        return lifecycle_changes(state, send(state, invoice.customer_id, lines, command.occurred_at))


class RecordInvoiceView(InvoiceOperation):
    """Recipient opened the public invoice page"""

    action = "view"
    failure_code = "RECORD_VIEW_FAILED"
    failure_message = "Failed to record invoice view"

    async def apply(
        self, invoice: Invoice, lines: List[InvoiceLine], command: InvoiceActionCommandDTO
    ) -> Dict[str, Any]:
        state = invoice.lifecycle_state()
        return lifecycle_changes(state, record_view(state, command.occurred_at))


class MarkInvoiceOverdue(InvoiceOperation):
    action = "mark overdue"
    failure_code = "MARK_OVERDUE_FAILED"
    failure_message = "Failed to mark invoice overdue"

    async def apply(
        self, invoice: Invoice, lines: List[InvoiceLine], command: InvoiceActionCommandDTO
    ) -> Dict[str, Any]:
        state = invoice.lifecycle_state()
        return lifecycle_changes(state, mark_overdue(state, command.occurred_at))


class CancelInvoice(InvoiceOperation):
    action = "cancel"
    failure_code = "CANCEL_INVOICE_FAILED"
    failure_message = "Failed to cancel invoice"

    async def apply(
        self, invoice: Invoice, lines: List[InvoiceLine], command: InvoiceActionCommandDTO
    ) -> Dict[str, Any]:
        state = invoice.lifecycle_state()
        return lifecycle_changes(state, cancel(state, command.occurred_at))


class MarkInvoicePaid(InvoiceOperation):
    """
    Manual settlement straight to PAID

    Whatever is still outstanding is stored as one SUCCESS manual payment with
    the given method, reference and notes, so amount_paid keeps matching the
    recorded payments.
    """

    action = "mark paid"
    failure_code = "MARK_PAID_FAILED"
    failure_message = "Failed to mark invoice paid"

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
        payment_repo: PaymentRepository,
    ):
        super().__init__(uow, invoice_repo, invoice_line_repo)
        self.payment_repo = payment_repo

    async def apply(
        self, invoice: Invoice, lines: List[InvoiceLine], command: MarkInvoicePaidCommandDTO
    ) -> Dict[str, Any]:
        state = invoice.lifecycle_state()
        paid_at = command.occurred_at or datetime.utcnow()
        after = mark_paid(state, paid_at)

        outstanding = state.total - state.amount_paid
        if outstanding > 0:
            reference = await claim_payment_reference(self.payment_repo, invoice.tenant_id, command.reference)
            await self.payment_repo.create(
                Payment(
                    tenant_id=invoice.tenant_id,
                    invoice_id=invoice.id,
                    amount=outstanding,
                    method=PaymentMethod.MANUAL,
                    status=PaymentRecordStatus.SUCCESS,
                    reference=reference,
                    channel=command.payment_method,
                    notes=command.notes,
                    paid_at=paid_at,
                )
            )
            after = after.evolve(amount_paid=state.total)
        return lifecycle_changes(state, after)
