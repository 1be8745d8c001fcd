"""UpdateInvoice Use Case

Edits header fields, line items and/or the tax selection of an invoice that
is neither PAID nor CANCELED, recomputing every derived figure.
"""

import logging
from datetime import datetime
from libs.result import Result, Return, Error
from src.app.repositories.catalog_item_repository import CatalogItemRepository
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.tax_rate_repository import TaxRateRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import InvoiceEngineError, LineItemIssue, ValidationError
from src.domain.invoice_draft import LineItemAdded, build_draft
from src.domain.invoice_line import InvoiceLine
from src.domain.invoice_lifecycle import DocumentStatus, PaymentStatus, ensure_editable, payment_status_for
from .base import InvoiceOperation, error_from, to_invoice_response
from .drafting import line_events, resolve_selection
from .dtos import InvoiceResponseDTO, UpdateInvoiceCommandDTO

logger = logging.getLogger(__name__)


def _events_from_stored(lines):
    """Re-emit stored lines, keeping hand-set rates as overrides"""
    return [
        LineItemAdded(
            item_id=line.item_id,
            description=line.description,
            quantity=line.quantity,
            unit_price=line.unit_price,
            tax_rate=line.tax_rate if line.tax_override else None,
        )
        for line in sorted(lines, key=lambda l: l.position)
    ]


class UpdateInvoice(InvoiceOperation):
    """
    Use Case: Edit an invoice

    Business Rules:
    1. PAID and CANCELED invoices cannot be edited
    2. Changing lines or tax selection recomputes lines and totals
    3. Lines without an override follow the (new) tax selection
    4. A delivered invoice must keep a customer and at least one line
    5. Payment status is re-derived from amount paid against the new total
    6. The write is compare-and-set on the version that was read
    """

    action = "update"
    failure_code = "UPDATE_INVOICE_FAILED"
    failure_message = "Failed to update invoice"

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
        tax_rate_repo: TaxRateRepository,
        catalog_repo: CatalogItemRepository,
    ):
        super().__init__(uow, invoice_repo, invoice_line_repo)
        self.tax_rate_repo = tax_rate_repo
        self.catalog_repo = catalog_repo

    async def execute(self, command: UpdateInvoiceCommandDTO) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await self.load(command.tenant_id, command.invoice_id, command.expected_version)
            state = invoice.lifecycle_state()
            ensure_editable(state)

            lines = await self.invoice_line_repo.get_by_invoice_id(invoice.id)

            changes = {
                name: getattr(command, name)
                for name in ("customer_id", "issue_date", "due_date", "notes", "terms")
                if getattr(command, name) is not None
            }

            recompute = command.items is not None or command.tax_rate_ids is not None
            draft = None
            if recompute:
                if command.tax_rate_ids is not None:
                    selection = await resolve_selection(self.tax_rate_repo, command.tenant_id, command.tax_rate_ids)
                else:
                    selection = invoice.tax_selection()

                if command.items is not None:
                    events = await line_events(self.catalog_repo, command.tenant_id, command.items)
                else:
                    events = _events_from_stored(lines)

                draft = build_draft(selection, events)
                payment_status = payment_status_for(state.amount_paid, draft.totals.total)
                changes.update(
                    subtotal=draft.totals.subtotal,
                    tax_amount=draft.totals.tax_amount,
                    total=draft.totals.total,
                    effective_tax_rate=selection.effective_rate,
                    tax_rates=selection.to_snapshot(),
                    payment_status=payment_status,
                )
                if payment_status == PaymentStatus.PAID:
                    changes["paid_at"] = datetime.utcnow()

            if state.status != DocumentStatus.DRAFT:
                issues = []
                if not changes.get("customer_id", invoice.customer_id):
                    issues.append(LineItemIssue(None, "customer_id", "Customer is required"))
                if draft is not None and not draft.lines:
                    issues.append(LineItemIssue(None, "items", "At least one line item is required"))
                if issues:
                    raise ValidationError("A sent invoice must keep a customer and its lines", issues=issues)

            if changes:
                invoice = await self.write(invoice, changes)

            if draft is not None:
                await self.invoice_line_repo.delete_by_invoice_id(invoice.id)
                lines = await self.invoice_line_repo.create_many(
                    [
                        InvoiceLine.from_line_item(invoice.id, position, line)
                        for position, line in enumerate(draft.lines)
                    ]
                )

            await self.uow.commit()

            logger.info(
                f"Updated invoice {invoice.invoice_number} for tenant {command.tenant_id} "
                f"(version={invoice.version}, total={invoice.total})"
            )
            return Return.ok(to_invoice_response(invoice, lines))

        except InvoiceEngineError as e:
            await self.uow.rollback()
            return Return.err(error_from(e))

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to update invoice {command.invoice_id} for tenant {command.tenant_id}: {e}")
            return Return.err(
                Error(
                    code=self.failure_code,
                    message=self.failure_message,
                    reason=str(e),
                )
            )
