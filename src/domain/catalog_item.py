"""Catalog Item Domain Entity

Products and services a tenant bills for. Read-only to the engine: used to
prefill description, price and taxability of a line.
"""

from decimal import Decimal
from sqlmodel import Field, Column, Index
from sqlalchemy import Boolean, Numeric, String
from src.domain.base import BaseModel


class CatalogItem(BaseModel, table=True):
    __tablename__ = "catalog_items"
    __table_args__ = (
        Index('ix_catalog_items_tenant_id', 'tenant_id'),
    )

    id: str = Field(
        sa_column=Column(String(64), primary_key=True),
    )

    tenant_id: str = Field(description="Tenant ID")

    name: str = Field(
        sa_column=Column(String(255), nullable=False),
    )

    price: Decimal = Field(
        sa_column=Column(Numeric(18, 6), nullable=False),
    )

    taxable: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
    )
