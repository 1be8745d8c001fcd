"""SQLAlchemy Invoice Repository Implementation

Implements invoice persistence using SQLAlchemy async session.
"""

from typing import Any, Dict, Optional, List
from datetime import date, datetime
from sqlalchemy import update
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import Invoice
from src.domain.invoice_lifecycle import OVERDUE_ELIGIBLE, DocumentStatus, PaymentStatus


class SqlAlchemyInvoiceRepository(InvoiceRepository):
    """
    SQLAlchemy implementation of InvoiceRepository

    Uses async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice with generated ID
        """
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def get_by_id(self, tenant_id: str, invoice_id: int) -> Optional[Invoice]:
        """Always reloads the row so the version read is the stored one"""
        statement = (
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .where(Invoice.tenant_id == tenant_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_tenant_id(
        self,
        tenant_id: str,
        status: Optional[DocumentStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[Invoice]:
        statement = select(Invoice).where(Invoice.tenant_id == tenant_id)

        if status:
            statement = statement.where(Invoice.status == status)
        if payment_status:
            statement = statement.where(Invoice.payment_status == payment_status)

        statement = statement.order_by(Invoice.created_at.desc(), Invoice.id.desc())
        statement = statement.limit(limit).offset(offset)

        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def number_exists(self, tenant_id: str, invoice_number: str) -> bool:
        statement = (
            select(func.count())
            .select_from(Invoice)
            .where(Invoice.tenant_id == tenant_id)
            .where(Invoice.invoice_number == invoice_number)
        )
        result = await self.session.execute(statement)
        return result.scalar_one() > 0

    async def compare_and_set(
        self,
        invoice: Invoice,
        expected_version: int,
        changes: Dict[str, Any],
    ) -> Optional[Invoice]:
        """
        Conditional UPDATE on (id, tenant_id, version)

        Zero affected rows means another writer bumped the version first.
        """
        statement = (
            update(Invoice)
            .where(Invoice.id == invoice.id)
            .where(Invoice.tenant_id == invoice.tenant_id)
            .where(Invoice.version == expected_version)
            .values(**changes, version=expected_version + 1, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        if result.rowcount != 1:
            return None

        await self.session.refresh(invoice)
        return invoice

    async def find_overdue_candidates(self, as_of: date, limit: int = 100) -> List[Invoice]:
        statement = (
            select(Invoice)
            .where(Invoice.status.in_(list(OVERDUE_ELIGIBLE)))
            .where(Invoice.payment_status != PaymentStatus.PAID)
            .where(Invoice.due_date < as_of)
            .order_by(Invoice.due_date, Invoice.id)
            .limit(limit)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())
