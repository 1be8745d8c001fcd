from .base import BaseModel
from .errors import (
    InvoiceEngineError,
    LineItemIssue,
    ValidationError,
    IllegalTransitionError,
    ConflictError,
    NumberingFallbackWarning,
)
from .tax_selection import AppliedTaxRate, TaxSelection, resolve_tax_selection
from .line_item import LineItem, calculate_line, validate_line_items
from .invoice_totals import InvoiceTotals, InvoiceSummary, aggregate_line_items, summarize_invoices
from .invoice_draft import InvoiceDraft, reduce
from .invoice_lifecycle import DocumentStatus, PaymentStatus, LifecycleState
from .invoice import Invoice
from .invoice_line import InvoiceLine
from .payment import Payment, PaymentMethod, PaymentRecordStatus
from .tax_rate import TaxRate
from .catalog_item import CatalogItem
from .invoice_sequence import InvoiceSequence

__all__ = [
    "BaseModel",
    "InvoiceEngineError",
    "LineItemIssue",
    "ValidationError",
    "IllegalTransitionError",
    "ConflictError",
    "NumberingFallbackWarning",
    "AppliedTaxRate",
    "TaxSelection",
    "resolve_tax_selection",
    "LineItem",
    "calculate_line",
    "validate_line_items",
    "InvoiceTotals",
    "InvoiceSummary",
    "aggregate_line_items",
    "summarize_invoices",
    "InvoiceDraft",
    "reduce",
    "DocumentStatus",
    "PaymentStatus",
    "LifecycleState",
    "Invoice",
    "InvoiceLine",
    "Payment",
    "PaymentMethod",
    "PaymentRecordStatus",
    "TaxRate",
    "CatalogItem",
    "InvoiceSequence",
]
