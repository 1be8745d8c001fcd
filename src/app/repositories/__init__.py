from .invoice_repository import InvoiceRepository
from .invoice_line_repository import InvoiceLineRepository
from .payment_repository import PaymentRepository
from .tax_rate_repository import TaxRateRepository
from .catalog_item_repository import CatalogItemRepository
from .invoice_sequence_repository import InvoiceSequenceRepository

__all__ = [
    "InvoiceRepository",
    "InvoiceLineRepository",
    "PaymentRepository",
    "TaxRateRepository",
    "CatalogItemRepository",
    "InvoiceSequenceRepository",
]
