"""Data Transfer Objects for Invoicing Use Cases

Pydantic models for command inputs and response outputs.

Line item inputs are deliberately loosely typed: quantity, price and rate
problems are reported by the engine per item, all at once, instead of
failing on the first field during parsing.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator
from src.domain.invoice_lifecycle import DocumentStatus, PaymentStatus


class LineItemInputDTO(BaseModel):
    """
    One line as entered by the user

    ``tax_rate`` set means the row overrides the invoice-wide selection.
    When ``item_id`` refers to a catalog item, missing description and price
    are taken from the catalog.
    """

    item_id: Optional[str] = Field(default=None, description="Catalog item reference")
    description: Optional[str] = Field(default=None, description="Line description")
    quantity: Optional[Any] = Field(default=1, description="Whole number, at least 1")
    unit_price: Optional[Any] = Field(default=None, description="Price per unit, zero or more")
    tax_rate: Optional[Any] = Field(default=None, description="Per-line override, 0-100")


class CreateInvoiceCommandDTO(BaseModel):
    """
    Command DTO for creating an invoice

    ``status`` is the user's chosen action: save as DRAFT or finalize as SENT.
    ``tax_rate_ids`` None selects the tenant's default rates; [] means untaxed.
    """

    tenant_id: str = Field(..., description="Tenant identifier")
    customer_id: Optional[str] = Field(default=None, description="Customer reference")
    invoice_number: Optional[str] = Field(
        default=None, description="Explicit number; generated when omitted"
    )
    issue_date: Optional[date] = Field(default=None, description="Defaults to today")
    due_date: Optional[date] = Field(default=None, description="Defaults to issue date + DEFAULT_DUE_DAYS")
    items: List[LineItemInputDTO] = Field(default_factory=list)
    tax_rate_ids: Optional[List[str]] = Field(default=None)
    status: DocumentStatus = Field(default=DocumentStatus.DRAFT)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    notes: Optional[str] = None
    terms: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        """Only DRAFT and SENT are valid initial states"""
        if v not in (DocumentStatus.DRAFT, DocumentStatus.SENT):
            raise ValueError("Invoices are created as DRAFT or SENT")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "tenant_id": "tenant_xyz789",
                "customer_id": "cust_42",
                "issue_date": "2024-01-01",
                "due_date": "2024-01-31",
                "items": [
                    {"description": "Consulting", "quantity": 3, "unit_price": "1000"},
                    {"item_id": "item_7", "quantity": 1},
                ],
                "tax_rate_ids": ["vat", "levy"],
                "status": "DRAFT",
            }
        }


class UpdateInvoiceCommandDTO(BaseModel):
    """
    Command DTO for editing an invoice that is neither PAID nor CANCELED

    Fields left as None keep their stored value. ``expected_version`` makes
    the edit fail with CONFLICT if someone else changed the invoice first.
    """

    tenant_id: str
    invoice_id: int
    expected_version: Optional[int] = None
    customer_id: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    items: Optional[List[LineItemInputDTO]] = None
    tax_rate_ids: Optional[List[str]] = None
    notes: Optional[str] = None
    terms: Optional[str] = None


class PreviewInvoiceCommandDTO(BaseModel):
    """Compute totals without persisting anything"""

    tenant_id: str
    items: List[LineItemInputDTO] = Field(default_factory=list)
    tax_rate_ids: Optional[List[str]] = None


class InvoiceActionCommandDTO(BaseModel):
    """
    Command DTO shared by the status operations
    (send, view, overdue, cancel, mark paid)
    """

    tenant_id: str
    invoice_id: int
    expected_version: Optional[int] = None
    occurred_at: Optional[datetime] = None


class RecordPaymentCommandDTO(InvoiceActionCommandDTO):
    amount: Any = Field(..., description="Amount received, must be > 0")
    reference: Optional[str] = Field(default=None, description="Receipt / transfer reference")


class MarkInvoicePaidCommandDTO(InvoiceActionCommandDTO):
    """Manual settlement of whatever is still outstanding"""

    payment_method: Optional[str] = Field(default=None, description="Cash, bank transfer, ...")
    reference: Optional[str] = Field(default=None, description="Receipt / transfer reference")
    notes: Optional[str] = None


class AttachPaymentLinkCommandDTO(InvoiceActionCommandDTO):
    """
    The payment processor has issued a hosted payment page; store it

    ``amount`` defaults to what is still outstanding on the invoice.
    """

    payment_link: str = Field(..., min_length=1)
    reference: str = Field(..., min_length=1)
    amount: Optional[Decimal] = None


class ConfirmLinkPaymentCommandDTO(InvoiceActionCommandDTO):
    """Outcome of a payment-link checkout, as reported by the processor"""

    reference: str = Field(..., min_length=1)
    succeeded: bool


class ListInvoicesQueryDTO(BaseModel):
    tenant_id: str
    status: Optional[DocumentStatus] = None
    payment_status: Optional[PaymentStatus] = None
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class AppliedTaxRateDTO(BaseModel):
    id: str
    name: str
    percentage: Decimal


class LineItemDTO(BaseModel):
    position: int
    item_id: Optional[str] = None
    description: str
    quantity: int
    unit_price: Decimal
    tax_rate: Decimal
    tax_override: bool = False
    tax_amount: Decimal
    total: Decimal


class InvoicePreviewResponseDTO(BaseModel):
    """Computed figures for an unsaved invoice"""

    effective_tax_rate: Decimal
    tax_rates: List[AppliedTaxRateDTO] = Field(default_factory=list)
    line_items: List[LineItemDTO] = Field(default_factory=list)
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


class InvoiceResponseDTO(BaseModel):
    """
    Response DTO for invoice operations

    ``numbering_fallback`` is True when the number had to be derived from a
    timestamp because sequencing failed.
    """

    invoice_id: int
    tenant_id: str
    invoice_number: str
    customer_id: Optional[str] = None
    issue_date: date
    due_date: date
    status: str
    payment_status: str
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    amount_paid: Decimal
    effective_tax_rate: Decimal
    tax_rates: List[AppliedTaxRateDTO] = Field(default_factory=list)
    line_items: List[LineItemDTO] = Field(default_factory=list)
    currency: str
    payment_link: Optional[str] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    version: int
    numbering_fallback: bool = False
    sent_at: Optional[datetime] = None
    viewed_at: Optional[datetime] = None
    overdue_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "invoice_id": 1,
                "tenant_id": "tenant_xyz789",
                "invoice_number": "INV-2024-0001",
                "customer_id": "cust_42",
                "issue_date": "2024-01-01",
                "due_date": "2024-01-31",
                "status": "SENT",
                "payment_status": "PARTIALLY_PAID",
                "subtotal": "3500.00",
                "tax_amount": "225.00",
                "total": "3725.00",
                "amount_paid": "1000.00",
                "effective_tax_rate": "7.5",
                "version": 3,
            }
        }


class InvoiceNumberResponseDTO(BaseModel):
    invoice_number: str
    is_fallback: bool = False


class InvoiceSummaryDTO(BaseModel):
    invoice_count: int
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    amount_paid: Decimal
    outstanding: Decimal


class ListInvoicesResponseDTO(BaseModel):
    invoices: List[InvoiceResponseDTO]
    summary: InvoiceSummaryDTO
    limit: int
    offset: int


class OverdueSweepResultDTO(BaseModel):
    """Summary of one overdue sweep run"""

    as_of: date
    candidates: int
    marked_overdue: int
    conflicts: int
    failed: int
    execution_time_ms: int
