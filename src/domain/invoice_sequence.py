"""Invoice Sequence Domain Entity

Per-tenant, per-year counter behind invoice numbers. Incremented atomically
so concurrent creators never reserve the same value.
"""

from sqlmodel import Field, Column
from sqlalchemy import Integer, String
from src.domain.base import BaseModel


class InvoiceSequence(BaseModel, table=True):
    __tablename__ = "invoice_sequences"

    tenant_id: str = Field(
        sa_column=Column(String(64), primary_key=True),
    )

    year: int = Field(
        sa_column=Column(Integer, primary_key=True, autoincrement=False),
    )

    last_value: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
    )
