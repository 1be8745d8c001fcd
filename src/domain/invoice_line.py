"""Invoice Line Domain Entity

Persisted form of a computed line item.
"""

from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String
from src.domain.base import BaseModel, ID_TYPE
from src.domain.line_item import LineItem


class InvoiceLine(BaseModel, table=True):
    """
    Invoice Line - One billable row of an invoice

    Domain Rules:
    - tax_amount = quantity * unit_price * tax_rate / 100
    - total = quantity * unit_price + tax_amount
    - tax_override rows keep their own rate when the tax selection changes
    - position preserves display order
    """

    __tablename__ = "invoice_lines"
    __table_args__ = (
        Index('ix_invoice_lines_invoice_id', 'invoice_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(ID_TYPE, primary_key=True, autoincrement=True),
    )

    invoice_id: int = Field(
        sa_column=Column(ID_TYPE, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Invoice"
    )

    position: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
    )

    item_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Catalog item reference"
    )

    description: str = Field(
        sa_column=Column(String(255), nullable=False),
    )

    quantity: int = Field(
        sa_column=Column(Integer, nullable=False),
    )

    unit_price: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
    )

    tax_rate: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(9, 4), nullable=False),
    )

    tax_override: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
    )

    tax_amount: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
    )

    total: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
    )

    @classmethod
    def from_line_item(cls, invoice_id: int, position: int, line: LineItem) -> "InvoiceLine":
        return cls(
            invoice_id=invoice_id,
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
