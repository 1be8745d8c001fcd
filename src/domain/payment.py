"""Payment Domain Entity

Money received against an invoice, either recorded by staff or confirmed by
a payment-link callback.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Numeric, String
from src.domain.base import BaseModel, ID_TYPE


class PaymentRecordStatus(str, Enum):
    """Payment record states"""
    PENDING = "pending"    # Payment link issued, awaiting callback
    SUCCESS = "success"    # Money received
    FAILED = "failed"      # Processor reported failure


class PaymentMethod(str, Enum):
    MANUAL = "manual"
    PAYMENT_LINK = "payment_link"


class Payment(BaseModel, table=True):
    """
    Payment - One payment against an invoice

    Domain Rules:
    - reference is unique within a tenant (idempotent callbacks)
    - Only SUCCESS payments count towards invoice.amount_paid
    """

    __tablename__ = "invoice_payments"
    __table_args__ = (
        Index('ix_invoice_payments_invoice_id', 'invoice_id'),
        Index('ix_invoice_payments_tenant_reference', 'tenant_id', 'reference', unique=True),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(ID_TYPE, primary_key=True, autoincrement=True),
    )

    tenant_id: str = Field(
        index=True,
        description="Tenant ID"
    )

    invoice_id: int = Field(
        sa_column=Column(ID_TYPE, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
    )

    method: PaymentMethod = Field(
        default=PaymentMethod.MANUAL,
    )

    status: PaymentRecordStatus = Field(
        default=PaymentRecordStatus.PENDING,
    )

    reference: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Payment reference (processor reference or generated)"
    )

    channel: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
        description="How a manual payment was made (cash, bank transfer, ...)"
    )

    notes: Optional[str] = Field(
        default=None,
        sa_column=Column(String(1000), nullable=True),
    )

    paid_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)
