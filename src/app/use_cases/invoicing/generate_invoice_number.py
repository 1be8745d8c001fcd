"""GenerateInvoiceNumber Use Case

Reserves the next number so the editor can show it before saving. The
reservation is committed; an unused number simply leaves a gap.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.invoice_numbering import InvoiceNumberGenerator
from src.app.services.unit_of_work import UnitOfWork
from .dtos import InvoiceNumberResponseDTO

logger = logging.getLogger(__name__)


class GenerateInvoiceNumber:

    def __init__(self, uow: UnitOfWork, number_generator: InvoiceNumberGenerator):
        self.uow = uow
        self.number_generator = number_generator

    async def execute(self, tenant_id: str) -> Result[InvoiceNumberResponseDTO]:
        try:
            generated = await self.number_generator.generate(tenant_id)
            await self.uow.commit()
            return Return.ok(
                InvoiceNumberResponseDTO(
                    invoice_number=generated.invoice_number,
                    is_fallback=generated.is_fallback,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to generate invoice number for tenant {tenant_id}: {e}")
            return Return.err(
                Error(code="GENERATE_NUMBER_FAILED", message="Failed to generate invoice number", reason=str(e))
            )
