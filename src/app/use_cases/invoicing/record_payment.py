"""RecordPayment Use Case

Staff records money received (cash, transfer, cheque) against an invoice.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import ConflictError
from src.domain.invoice import Invoice
from src.domain.invoice_line import InvoiceLine
from src.domain.invoice_lifecycle import record_payment
from src.domain.payment import Payment, PaymentMethod, PaymentRecordStatus
from .base import InvoiceOperation, lifecycle_changes
from .dtos import RecordPaymentCommandDTO


async def claim_payment_reference(payment_repo: PaymentRepository, tenant_id: str, reference: Optional[str]) -> str:
    """Generate a reference when none is given; a reference already used by the tenant conflicts"""
    reference = reference or f"PAY-{uuid.uuid4().hex[:12].upper()}"
    if await payment_repo.get_by_reference(tenant_id, reference) is not None:
        raise ConflictError(f"Payment {reference} is already recorded")
    return reference


class RecordPayment(InvoiceOperation):
    """
    Use Case: Record a manual payment

    Business Rules:
    1. Amount must be greater than 0
    2. A PAID invoice accepts no further payments
    3. amount_paid grows by the amount; payment status is re-derived
    4. The payment row is stored as SUCCESS with a unique reference
    5. Document status is not touched, so a CANCELED invoice can still be
       settled
    """

    action = "record payment"
    failure_code = "RECORD_PAYMENT_FAILED"
    failure_message = "Failed to record payment"

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
        self, invoice: Invoice, lines: List[InvoiceLine], command: RecordPaymentCommandDTO
    ) -> Dict[str, Any]:
        state = invoice.lifecycle_state()
        paid_at = command.occurred_at or datetime.utcnow()
        after = record_payment(state, command.amount, paid_at)

        reference = await claim_payment_reference(self.payment_repo, invoice.tenant_id, command.reference)

        await self.payment_repo.create(
            Payment(
                tenant_id=invoice.tenant_id,
                invoice_id=invoice.id,
                amount=after.amount_paid - state.amount_paid,
                method=PaymentMethod.MANUAL,
                status=PaymentRecordStatus.SUCCESS,
                reference=reference,
                paid_at=paid_at,
            )
        )
        return lifecycle_changes(state, after)
