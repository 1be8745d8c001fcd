"""Request schemas for Invoice API

Pydantic models for validating incoming HTTP requests. The tenant comes
from the X-Tenant-ID header, never from the body.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field
from src.app.use_cases.invoicing.dtos import LineItemInputDTO


class CreateInvoiceRequestSchema(BaseModel):
    """
    Request schema for creating an invoice

    Used for POST /invoices endpoint.
    """

    customer_id: Optional[str] = Field(default=None, description="Customer reference")
    invoice_number: Optional[str] = Field(default=None, max_length=50)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    items: List[LineItemInputDTO] = Field(default_factory=list)
    tax_rate_ids: Optional[List[str]] = Field(
        default=None, description="Selected tax rates; omitted means tenant defaults"
    )
    status: Literal["DRAFT", "SENT"] = Field(default="DRAFT", description="Save as draft or send")
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    notes: Optional[str] = None
    terms: Optional[str] = None


class UpdateInvoiceRequestSchema(BaseModel):
    """Used for PATCH /invoices/{invoice_id}; omitted fields are unchanged"""

    expected_version: Optional[int] = None
    customer_id: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    items: Optional[List[LineItemInputDTO]] = None
    tax_rate_ids: Optional[List[str]] = None
    notes: Optional[str] = None
    terms: Optional[str] = None


class PreviewInvoiceRequestSchema(BaseModel):
    items: List[LineItemInputDTO] = Field(default_factory=list)
    tax_rate_ids: Optional[List[str]] = None


class InvoiceActionRequestSchema(BaseModel):
    """Body of the status endpoints; both fields are optional"""

    expected_version: Optional[int] = Field(
        default=None, description="Reject with 409 if the invoice changed since it was read"
    )
    occurred_at: Optional[datetime] = None


class RecordPaymentRequestSchema(InvoiceActionRequestSchema):
    amount: Decimal = Field(..., description="Amount received (must be > 0)")
    reference: Optional[str] = Field(default=None, max_length=255)


class MarkPaidRequestSchema(InvoiceActionRequestSchema):
    payment_method: Optional[str] = Field(default=None, max_length=50)
    reference: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=1000)


class AttachPaymentLinkRequestSchema(InvoiceActionRequestSchema):
    payment_link: str = Field(..., min_length=1)
    reference: str = Field(..., min_length=1, max_length=255)
    amount: Optional[Decimal] = None


class ConfirmLinkPaymentRequestSchema(InvoiceActionRequestSchema):
    reference: str = Field(..., min_length=1, max_length=255)
    succeeded: bool = True
