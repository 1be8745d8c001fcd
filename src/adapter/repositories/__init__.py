from .invoice_repository import SqlAlchemyInvoiceRepository
from .invoice_line_repository import SqlAlchemyInvoiceLineRepository
from .payment_repository import SqlAlchemyPaymentRepository
from .tax_rate_repository import SqlAlchemyTaxRateRepository
from .catalog_item_repository import SqlAlchemyCatalogItemRepository
from .invoice_sequence_repository import SqlAlchemyInvoiceSequenceRepository

__all__ = [
    "SqlAlchemyInvoiceRepository",
    "SqlAlchemyInvoiceLineRepository",
    "SqlAlchemyPaymentRepository",
    "SqlAlchemyTaxRateRepository",
    "SqlAlchemyCatalogItemRepository",
    "SqlAlchemyInvoiceSequenceRepository",
]
