from .unit_of_work import UnitOfWork
from .invoice_numbering import InvoiceNumberGenerator, GeneratedInvoiceNumber

__all__ = [
    "UnitOfWork",
    "InvoiceNumberGenerator",
    "GeneratedInvoiceNumber",
]
