"""Shared plumbing for invoicing use cases

Maps entities to DTOs, engine exceptions to Result errors, and implements
the compare-and-set write every status operation goes through.
"""

import logging
from typing import Any, Dict, List, Optional
from libs.result import Error, Result, Return
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import ConflictError, InvoiceEngineError, ValidationError
from src.domain.invoice import Invoice
from src.domain.invoice_line import InvoiceLine
from src.domain.invoice_lifecycle import LifecycleState
from .dtos import AppliedTaxRateDTO, InvoiceActionCommandDTO, InvoiceResponseDTO, LineItemDTO

logger = logging.getLogger(__name__)


class InvoiceNotFoundError(InvoiceEngineError):
    code = "INVOICE_NOT_FOUND"


def error_from(exc: InvoiceEngineError) -> Error:
    details = []
    if isinstance(exc, ValidationError):
        details = [issue.to_dict() for issue in exc.issues]
    return Error(code=exc.code, message=exc.message, reason=exc.reason, details=details)


def to_line_item_dto(line: InvoiceLine) -> LineItemDTO:
    return LineItemDTO(
        position=line.position,
        item_id=line.item_id,
        description=line.description,
        quantity=line.quantity,
        unit_price=line.unit_price,
        tax_rate=line.tax_rate,
        tax_override=line.tax_override,
        tax_amount=line.tax_amount,
        total=line.total,
    )


def to_invoice_response(
    invoice: Invoice,
    lines: Optional[List[InvoiceLine]] = None,
    numbering_fallback: bool = False,
) -> InvoiceResponseDTO:
    return InvoiceResponseDTO(
        invoice_id=invoice.id,
        tenant_id=invoice.tenant_id,
        invoice_number=invoice.invoice_number,
        customer_id=invoice.customer_id,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        status=invoice.status.value,
        payment_status=invoice.payment_status.value,
        subtotal=invoice.subtotal,
        tax_amount=invoice.tax_amount,
        total=invoice.total,
        amount_paid=invoice.amount_paid,
        effective_tax_rate=invoice.effective_tax_rate,
        tax_rates=[
            AppliedTaxRateDTO(id=rate.id, name=rate.name, percentage=rate.percentage)
            for rate in invoice.tax_selection().rates
        ],
        line_items=[to_line_item_dto(line) for line in sorted(lines or [], key=lambda l: l.position)],
        currency=invoice.currency,
        payment_link=invoice.payment_link,
        notes=invoice.notes,
        terms=invoice.terms,
        version=invoice.version,
        numbering_fallback=numbering_fallback,
        sent_at=invoice.sent_at,
        viewed_at=invoice.viewed_at,
        overdue_at=invoice.overdue_at,
        paid_at=invoice.paid_at,
        canceled_at=invoice.canceled_at,
        created_at=invoice.created_at,
        updated_at=invoice.updated_at,
    )


def lifecycle_changes(before: LifecycleState, after: LifecycleState) -> Dict[str, Any]:
    """Invoice columns that differ between two lifecycle states"""
    old = before.model_dump(exclude={"total"})
    new = after.model_dump(exclude={"total"})
    return {name: value for name, value in new.items() if old[name] != value}


class InvoiceOperation:
    """
    Template for operations on one existing invoice

    Flow:
    1. Load the invoice within the tenant (INVOICE_NOT_FOUND otherwise)
    2. Reject a stale ``expected_version`` with CONFLICT
    3. Let the subclass compute the column changes (pure engine call)
    4. Write them with compare-and-set on the version read in step 1
    5. Commit and return the refreshed invoice

    Engine errors come back as their own codes; anything unexpected rolls
    back and is reported under ``failure_code``.
    """

    action = "update"
    failure_code = "INVOICE_OPERATION_FAILED"
    failure_message = "Invoice operation failed"

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo

    async def apply(
        self, invoice: Invoice, lines: List[InvoiceLine], command: InvoiceActionCommandDTO
    ) -> Dict[str, Any]:
        raise NotImplementedError

    async def execute(self, command: InvoiceActionCommandDTO) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await self.load(command.tenant_id, command.invoice_id, command.expected_version)
            lines = await self.invoice_line_repo.get_by_invoice_id(invoice.id)

            changes = await self.apply(invoice, lines, command)
            if changes:
                invoice = await self.write(invoice, changes)

            await self.uow.commit()

            logger.info(
                f"Invoice {invoice.invoice_number} ({command.tenant_id}): {self.action} -> "
                f"status={invoice.status.value}, payment_status={invoice.payment_status.value}"
            )
            return Return.ok(to_invoice_response(invoice, lines))

        except InvoiceEngineError as e:
            await self.uow.rollback()
            logger.info(f"Invoice {command.invoice_id} ({command.tenant_id}): {self.action} rejected: {e.code} {e.message}")
            return Return.err(error_from(e))

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Invoice {command.invoice_id} ({command.tenant_id}): {self.action} failed: {e}")
            return Return.err(
                Error(
                    code=self.failure_code,
                    message=self.failure_message,
                    reason=str(e),
                )
            )

    async def load(self, tenant_id: str, invoice_id: int, expected_version: Optional[int]) -> Invoice:
        invoice = await self.invoice_repo.get_by_id(tenant_id, invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")
        if expected_version is not None and expected_version != invoice.version:
            raise ConflictError(
                f"Invoice {invoice.invoice_number} was modified concurrently",
                reason=f"expected version {expected_version}, found {invoice.version}",
            )
        return invoice

    async def write(self, invoice: Invoice, changes: Dict[str, Any]) -> Invoice:
        expected_version = invoice.version
        updated = await self.invoice_repo.compare_and_set(invoice, expected_version, changes)
        if updated is None:
            raise ConflictError(
                f"Invoice {invoice.invoice_number} was modified concurrently",
                reason=f"version {expected_version} is no longer current",
            )
        return updated
