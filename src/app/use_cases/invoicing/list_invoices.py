"""ListInvoices Use Case"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice_totals import summarize_invoices
from .base import to_invoice_response
from .dtos import InvoiceSummaryDTO, ListInvoicesQueryDTO, ListInvoicesResponseDTO

logger = logging.getLogger(__name__)


class ListInvoices:
    """
    Use Case: List a tenant's invoices with summed figures

    The summary covers the returned page only. Line items are not loaded.
    """

    def __init__(self, invoice_repo: InvoiceRepository):
        self.invoice_repo = invoice_repo

    async def execute(self, query: ListInvoicesQueryDTO) -> Result[ListInvoicesResponseDTO]:
        try:
            invoices = await self.invoice_repo.get_by_tenant_id(
                query.tenant_id,
                status=query.status,
                payment_status=query.payment_status,
                limit=query.limit,
                offset=query.offset,
            )
            summary = summarize_invoices(invoices)
            return Return.ok(
                ListInvoicesResponseDTO(
                    invoices=[to_invoice_response(invoice) for invoice in invoices],
                    summary=InvoiceSummaryDTO(**summary.model_dump()),
                    limit=query.limit,
                    offset=query.offset,
                )
            )

        except Exception as e:
            logger.error(f"Failed to list invoices for tenant {query.tenant_id}: {e}")
            return Return.err(Error(code="LIST_INVOICES_FAILED", message="Failed to list invoices", reason=str(e)))
