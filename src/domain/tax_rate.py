"""Tax Rate Domain Entity

Tenant-defined tax rates. Maintained by admin screens; the engine only
reads them.
"""

from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Boolean, Numeric, String
from src.domain.base import BaseModel


class TaxRate(BaseModel, table=True):
    __tablename__ = "tax_rates"
    __table_args__ = (
        Index('ix_tax_rates_tenant_id', 'tenant_id'),
    )

    id: str = Field(
        sa_column=Column(String(64), primary_key=True),
    )

    tenant_id: str = Field(description="Tenant ID")

    name: str = Field(
        sa_column=Column(String(100), nullable=False),
    )

    percentage: Decimal = Field(
        sa_column=Column(Numeric(9, 4), nullable=False),
        description="Percentage, e.g. 7.5 for 7.5%"
    )

    is_default: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Selected automatically on new invoices"
    )

    description: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
    )
