"""SQLAlchemy Payment Repository Implementation"""

from datetime import datetime
from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.payment import Payment, PaymentRecordStatus


class SqlAlchemyPaymentRepository(PaymentRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, payment: Payment) -> Payment:
        self.session.add(payment)
        await self.session.flush()
        await self.session.refresh(payment)
        return payment

    async def get_by_reference(self, tenant_id: str, reference: str) -> Optional[Payment]:
        statement = (
            select(Payment)
            .where(Payment.tenant_id == tenant_id)
            .where(Payment.reference == reference)
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def update_status(
        self,
        payment: Payment,
        status: PaymentRecordStatus,
        paid_at: Optional[datetime] = None,
    ) -> Payment:
        payment.status = status
        if paid_at is not None:
            payment.paid_at = paid_at
        payment.updated_at = datetime.utcnow()
        self.session.add(payment)
        await self.session.flush()
        await self.session.refresh(payment)
        return payment

