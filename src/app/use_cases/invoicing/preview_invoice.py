"""PreviewInvoice Use Case

Computes lines and totals for unsaved input so the editor can show live
figures. Nothing is persisted.
"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.catalog_item_repository import CatalogItemRepository
from src.app.repositories.tax_rate_repository import TaxRateRepository
from src.domain.errors import InvoiceEngineError
from .base import error_from
from .drafting import draft_from_inputs
from .dtos import AppliedTaxRateDTO, InvoicePreviewResponseDTO, LineItemDTO, PreviewInvoiceCommandDTO

logger = logging.getLogger(__name__)


class PreviewInvoice:
    """
    Use Case: Preview invoice figures

    Business Rules:
    1. Same validation and arithmetic as CreateInvoice
    2. No customer required, no number reserved, nothing written
    """

    def __init__(self, tax_rate_repo: TaxRateRepository, catalog_repo: CatalogItemRepository):
        self.tax_rate_repo = tax_rate_repo
        self.catalog_repo = catalog_repo

    async def execute(self, command: PreviewInvoiceCommandDTO) -> Result[InvoicePreviewResponseDTO]:
        try:
            draft = await draft_from_inputs(
                self.tax_rate_repo,
                self.catalog_repo,
                command.tenant_id,
                command.items,
                command.tax_rate_ids,
            )
            return Return.ok(
                InvoicePreviewResponseDTO(
                    effective_tax_rate=draft.tax_selection.effective_rate,
                    tax_rates=[
                        AppliedTaxRateDTO(id=rate.id, name=rate.name, percentage=rate.percentage)
                        for rate in draft.tax_selection.rates
                    ],
                    line_items=[
                        LineItemDTO(
                            position=position,
                            item_id=line.item_id,
                            description=line.description,
                            quantity=line.quantity,
                            unit_price=line.unit_price,
                            tax_rate=line.tax_rate,
                            tax_override=line.tax_override,
                            tax_amount=line.tax_amount,
                            total=line.total,
                        )
                        for position, line in enumerate(draft.lines)
                    ],
                    subtotal=draft.totals.subtotal,
                    tax_amount=draft.totals.tax_amount,
                    total=draft.totals.total,
                )
            )

        except InvoiceEngineError as e:
            return Return.err(error_from(e))

        except Exception as e:
            logger.error(f"Failed to preview invoice for tenant {command.tenant_id}: {e}")
            return Return.err(Error(code="PREVIEW_FAILED", message="Failed to preview invoice", reason=str(e)))
