"""GetInvoice Use Case"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.invoice_line_repository import InvoiceLineRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from .base import to_invoice_response
from .dtos import InvoiceResponseDTO

logger = logging.getLogger(__name__)


class GetInvoice:
    """Use Case: Retrieve one invoice with its lines, scoped to the tenant"""

    def __init__(self, invoice_repo: InvoiceRepository, invoice_line_repo: InvoiceLineRepository):
        self.invoice_repo = invoice_repo
        self.invoice_line_repo = invoice_line_repo

    async def execute(self, tenant_id: str, invoice_id: int) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await self.invoice_repo.get_by_id(tenant_id, invoice_id)
            if invoice is None:
                return Return.err(
                    Error(
                        code="INVOICE_NOT_FOUND",
                        message=f"Invoice {invoice_id} not found",
                    )
                )
            lines = await self.invoice_line_repo.get_by_invoice_id(invoice.id)
            return Return.ok(to_invoice_response(invoice, lines))

        except Exception as e:
            logger.error(f"Failed to load invoice {invoice_id} for tenant {tenant_id}: {e}")
            return Return.err(Error(code="GET_INVOICE_FAILED", message="Failed to load invoice", reason=str(e)))
