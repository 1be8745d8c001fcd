"""Invoice Domain Entity

Persisted invoice: computed totals, the tax selection applied when it was
computed, and both status axes.
"""

from datetime import datetime, date
from decimal import Decimal
from typing import List, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import JSON, Numeric, String, Date, Integer
from src.domain.base import BaseModel, ID_TYPE
from src.domain.invoice_lifecycle import DocumentStatus, LifecycleState, PaymentStatus
from src.domain.tax_selection import TaxSelection


class Invoice(BaseModel, table=True):
    """
    Invoice - Tenant-scoped billing document

    Domain Rules:
    - invoice_number is unique per tenant
    - subtotal / tax_amount / total are the aggregate of invoice_lines
    - tax_rates snapshots the applied selection (id, name, percentage)
    - status and payment_status move independently
    - version increments on every write; status changes are compare-and-set
    """

    __tablename__ = "invoices"
    __table_args__ = (
        Index('ix_invoices_tenant_id', 'tenant_id'),
        Index('ix_invoices_status', 'status'),
        Index('ix_invoices_tenant_number', 'tenant_id', 'invoice_number', unique=True),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(ID_TYPE, primary_key=True, autoincrement=True),
        description="Unique invoice identifier (auto-increment)"
    )

    tenant_id: str = Field(
        description="Tenant ID"
    )

    invoice_number: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Invoice number, unique within the tenant (e.g., INV-2024-0001)"
    )

    customer_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Customer reference"
    )

    issue_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Issue date"
    )

    due_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Due date (expected on or after issue date)"
    )

    status: DocumentStatus = Field(
        default=DocumentStatus.DRAFT,
        description="Document status (DRAFT, SENT, VIEWED, OVERDUE, CANCELED)"
    )

    payment_status: PaymentStatus = Field(
        default=PaymentStatus.UNPAID,
        description="Payment status (UNPAID, PARTIALLY_PAID, PAID)"
    )

    subtotal: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Sum of quantity * unit_price over all lines"
    )

    tax_amount: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Sum of per-line tax amounts"
    )

    total: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="subtotal + tax_amount"
    )

    amount_paid: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(18, 6), nullable=False),
        description="Sum of recorded payments"
    )

    effective_tax_rate: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(9, 4), nullable=False),
        description="Combined percentage of the selected tax rates"
    )

    tax_rates: List[dict] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="Snapshot of the applied tax rates"
    )

    currency: str = Field(
        default="USD",
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217)"
    )

    payment_link: Optional[str] = Field(
        default=None,
        sa_column=Column(String(1024), nullable=True),
        description="Hosted payment page for this invoice"
    )

    notes: Optional[str] = Field(
        default=None,
        sa_column=Column(String(2000), nullable=True),
    )

    terms: Optional[str] = Field(
        default=None,
        sa_column=Column(String(2000), nullable=True),
    )

    version: int = Field(
        default=1,
        sa_column=Column(Integer, nullable=False, default=1),
        description="Optimistic concurrency token"
    )

    sent_at: Optional[datetime] = Field(default=None)
    viewed_at: Optional[datetime] = Field(default=None)
    overdue_at: Optional[datetime] = Field(default=None)
    paid_at: Optional[datetime] = Field(default=None)
    canceled_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Invoice creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    def lifecycle_state(self) -> LifecycleState:
        return LifecycleState(
            status=self.status,
            payment_status=self.payment_status,
            total=self.total,
            amount_paid=self.amount_paid or Decimal("0"),
            sent_at=self.sent_at,
            viewed_at=self.viewed_at,
            overdue_at=self.overdue_at,
            paid_at=self.paid_at,
            canceled_at=self.canceled_at,
        )

    def tax_selection(self) -> TaxSelection:
        return TaxSelection.from_snapshot(self.tax_rates)

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "tenant_id": "tenant_xyz789",
                "invoice_number": "INV-2024-0001",
                "customer_id": "cust_42",
                "issue_date": "2024-01-01",
                "due_date": "2024-01-31",
                "status": "SENT",
                "payment_status": "UNPAID",
                "subtotal": "3500.000000",
                "tax_amount": "225.000000",
                "total": "3725.000000",
                "amount_paid": "0.000000",
                "effective_tax_rate": "7.5000",
                "tax_rates": [{"id": "vat", "name": "VAT", "percentage": "7.5"}],
                "currency": "USD",
                "version": 2,
            }
        }
