"""CreateInvoice Use Case

Computes and persists a new invoice, either as a DRAFT or finalized as SENT.
"""

import logging
from datetime import datetime, timedelta
from libs.result import Result, Return, Error
from src.app.repositories.catalog_item_repository import CatalogItemRepository
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.tax_rate_repository import TaxRateRepository
from src.app.services.invoice_numbering import InvoiceNumberGenerator
from src.app.services.unit_of_work import UnitOfWork
from src.domain.errors import InvoiceEngineError, LineItemIssue, ValidationError
from src.domain.invoice import Invoice
from src.domain.invoice_line import InvoiceLine
from src.domain.invoice_lifecycle import DocumentStatus, LifecycleState, send
from .base import error_from, to_invoice_response
from .drafting import draft_from_inputs
from .dtos import CreateInvoiceCommandDTO, InvoiceResponseDTO

logger = logging.getLogger(__name__)


class CreateInvoice:
    """
    Use Case: Create an invoice

    Business Rules:
    1. Every line is validated up front; all problems are reported together
    2. A customer is required
    3. Tax rates default to the tenant's default selection
    4. Totals are the aggregate of the computed lines
    5. Invoice number is generated unless given; given numbers must be unused
    6. status=SENT runs the DRAFT -> SENT transition before persisting

    Flow:
    1. Build the draft (catalog defaults, tax selection, line computation)
    2. Determine the initial lifecycle state
    3. Resolve the invoice number
    4. Persist invoice and lines
    5. Commit transaction
    6. Return response
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        invoice_line_repo: InvoiceLineRepository,
        tax_rate_repo: TaxRateRepository,
        catalog_repo: CatalogItemRepository,
        number_generator: InvoiceNumberGenerator,
        default_due_days: int = 30,
        default_currency: str = "USD",
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo
        self.tax_rate_repo = tax_rate_repo
        self.catalog_repo = catalog_repo
        self.number_generator = number_generator
        self.default_due_days = default_due_days
        self.default_currency = default_currency

    async def execute(self, command: CreateInvoiceCommandDTO) -> Result[InvoiceResponseDTO]:
        """
        Execute invoice creation

        Args:
            command: CreateInvoiceCommandDTO with tenant, customer, items and tax selection

        Returns:
            Result[InvoiceResponseDTO]: Success with invoice details or error
        """
        try:
            # Step 1: Compute the draft, reporting customer and line problems together
            issues = []
            if not command.customer_id:
                issues.append(LineItemIssue(None, "customer_id", "Customer is required"))
            try:
                draft = await draft_from_inputs(
                    self.tax_rate_repo,
                    self.catalog_repo,
                    command.tenant_id,
                    command.items,
                    command.tax_rate_ids,
                )
            except ValidationError as e:
                raise ValidationError(e.message, issues=issues + e.issues)
            if issues:
                raise ValidationError("Customer is required", issues=issues)

            # Step 2: Initial lifecycle state
            state = LifecycleState(total=draft.totals.total)
            if command.status == DocumentStatus.SENT:
                state = send(state, command.customer_id, draft.lines)

            # Step 3: Invoice number
            numbering_fallback = False
            if command.invoice_number:
                if await self.invoice_repo.number_exists(command.tenant_id, command.invoice_number):
                    return Return.err(
                        Error(
                            code="INVOICE_NUMBER_EXISTS",
                            message=f"Invoice number {command.invoice_number} already exists",
                            reason="Invoice numbers are unique per tenant",
                        )
                    )
                invoice_number = command.invoice_number
            else:
                generated = await self.number_generator.generate(command.tenant_id)
                invoice_number = generated.invoice_number
                numbering_fallback = generated.is_fallback

            # Step 4: Persist
            issue_date = command.issue_date or datetime.utcnow().date()
            due_date = command.due_date or issue_date + timedelta(days=self.default_due_days)

            invoice = Invoice(
                tenant_id=command.tenant_id,
                invoice_number=invoice_number,
                customer_id=command.customer_id,
                issue_date=issue_date,
                due_date=due_date,
                status=state.status,
                payment_status=state.payment_status,
                subtotal=draft.totals.subtotal,
                tax_amount=draft.totals.tax_amount,
                total=draft.totals.total,
                amount_paid=state.amount_paid,
                effective_tax_rate=draft.tax_selection.effective_rate,
                tax_rates=draft.tax_selection.to_snapshot(),
                currency=command.currency or self.default_currency,
                notes=command.notes,
                terms=command.terms,
                sent_at=state.sent_at,
            )
            created_invoice = await self.invoice_repo.create(invoice)

            lines = await self.invoice_line_repo.create_many(
                [
                    InvoiceLine.from_line_item(created_invoice.id, position, line)
                    for position, line in enumerate(draft.lines)
                ]
            )

            # Step 5: Commit transaction
            await self.uow.commit()

            logger.info(
                f"Created invoice {created_invoice.invoice_number} for tenant {command.tenant_id} "
                f"({created_invoice.status.value}, total={created_invoice.total})"
            )

            # Step 6: Build response
            return Return.ok(to_invoice_response(created_invoice, lines, numbering_fallback))

        except InvoiceEngineError as e:
            await self.uow.rollback()
            return Return.err(error_from(e))

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to create invoice for tenant {command.tenant_id}: {e}")
            return Return.err(
                Error(
                    code="CREATE_INVOICE_FAILED",
                    message="Failed to create invoice",
                    reason=str(e),
                )
            )
