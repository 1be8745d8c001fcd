from .create_invoice import CreateInvoice
from .update_invoice import UpdateInvoice
from .preview_invoice import PreviewInvoice
from .get_invoice import GetInvoice
from .list_invoices import ListInvoices
from .generate_invoice_number import GenerateInvoiceNumber
from .invoice_transitions import (
    SendInvoice,
    RecordInvoiceView,
    MarkInvoiceOverdue,
    CancelInvoice,
    MarkInvoicePaid,
)
from .record_payment import RecordPayment
from .payment_link import AttachPaymentLink, ConfirmLinkPayment

__all__ = [
    "CreateInvoice",
    "UpdateInvoice",
    "PreviewInvoice",
    "GetInvoice",
    "ListInvoices",
    "GenerateInvoiceNumber",
    "SendInvoice",
    "RecordInvoiceView",
    "MarkInvoiceOverdue",
    "CancelInvoice",
    "MarkInvoicePaid",
    "RecordPayment",
    "AttachPaymentLink",
    "ConfirmLinkPayment",
]
